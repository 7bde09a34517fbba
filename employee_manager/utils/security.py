# employee_manager/utils/security.py
import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple

from jose import jwt
from passlib.context import CryptContext

from employee_manager.config import Settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=Settings.AUTH['access_token_expire_minutes'])
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, Settings.AUTH['secret_key'], algorithm=Settings.AUTH['algorithm'])


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> Tuple[str, str]:
    """Return (token to email, hash to store)"""
    token = secrets.token_hex(20)
    return token, hash_reset_token(token)
