# tajiri/core/security.py
from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from .config import settings

def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token for the given subject (user ID)
    """
    now = datetime.now(timezone.utc)
    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {"sub": subject, "exp": expire, "iat": now}
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> dict:
    """Decode and validate a token; raises jwt.InvalidTokenError subclasses on failure"""
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
