from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from employee_manager.database import get_db
from employee_manager.models.user import User
from employee_manager.schemas.common import MessageResponse
from employee_manager.schemas.tokens import Token
from employee_manager.schemas.user import ForgotPassword, PasswordUpdate, ResetPassword, UserLogin, UserResponse
from employee_manager.routers.deps import get_user_service
from employee_manager.services.errors import ValidationFailed
from employee_manager.services.user_service import UserService
from employee_manager.utils.auth import get_current_user
from employee_manager.utils.security import create_access_token, get_password_hash, verify_password

router = APIRouter()


@router.post("/login", response_model=Token)
def login(user: UserLogin, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(func.lower(User.email) == str(user.email).lower()).first()
    if not db_user or not verify_password(user.password, db_user.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not db_user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User account is deactivated")

    token = create_access_token(data={"sub": str(db_user.id)})
    return {
        "success": True,
        "access_token": token,
        "token_type": "bearer",
        "user": db_user,
    }


@router.get("/me", response_model=UserResponse)
def get_me(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return {"success": True, "data": current_user}


@router.put("/updatepassword", response_model=MessageResponse)
def update_password(
    payload: PasswordUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if not verify_password(payload.current_password, current_user.hashed_password):
        raise ValidationFailed("Current password is incorrect")

    current_user.hashed_password = get_password_hash(payload.new_password)
    db.commit()
    return {"success": True, "message": "Password updated successfully"}


@router.post("/forgotpassword", response_model=MessageResponse)
def forgot_password(payload: ForgotPassword, service: UserService = Depends(get_user_service)):
    """Email a reset link; the answer is the same whether or not the account exists"""
    service.request_password_reset(str(payload.email))
    return {"success": True, "message": "If that account exists, a password reset email has been sent"}


@router.put("/resetpassword/{reset_token}", response_model=Token)
def reset_password(
    reset_token: str,
    payload: ResetPassword,
    service: UserService = Depends(get_user_service)
):
    user = service.reset_password(reset_token, payload.password)
    return {
        "success": True,
        "access_token": create_access_token(data={"sub": str(user.id)}),
        "token_type": "bearer",
        "user": user,
    }
