# employee_manager/schemas/tokens.py
from pydantic import BaseModel
from employee_manager.schemas.user import UserOut

class Token(BaseModel):
    success: bool = True
    access_token: str
    token_type: str
    user: UserOut

    class Config:
        from_attributes = True
