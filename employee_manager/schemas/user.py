from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import List, Optional
from datetime import datetime

from employee_manager.models.user import UserRole


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(min_length=6)
    role: UserRole = UserRole.EMPLOYEE

    @field_validator('name')
    def name_must_not_be_blank(cls, v):
        if not v.strip():
            raise ValueError('Name is required')
        return v.strip()


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class ForgotPassword(BaseModel):
    email: EmailStr


class ResetPassword(BaseModel):
    password: str = Field(min_length=6)


class UserBasic(BaseModel):
    id: int
    name: str
    email: str

    model_config = {
        "from_attributes": True
    }


class UserOut(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    password: Optional[str] = Field(default=None, min_length=6)


class UserIdList(BaseModel):
    user_ids: List[int] = Field(min_length=1)


class UserResponse(BaseModel):
    success: bool = True
    data: UserOut


class UserListResponse(BaseModel):
    success: bool = True
    count: int
    data: List[UserOut]
