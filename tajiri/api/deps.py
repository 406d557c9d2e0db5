# tajiri/api/deps.py
import uuid
from typing import Optional

import jwt
from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from tajiri.core.config import settings
from tajiri.core.database import get_async_session
from tajiri.core.security import decode_access_token
from tajiri.crud.user import get_user_by_id
from tajiri.models.user import User

optional_security = HTTPBearer(auto_error=False)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _extract_token(request: Request, credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[str]:
    # Authorization header, then ?token= / ?access_token=, then the access_token cookie
    if credentials and credentials.credentials:
        return credentials.credentials
    token = request.query_params.get("token") or request.query_params.get("access_token")
    if token:
        return token
    token = request.cookies.get("access_token")
    if token and token.startswith("Bearer "):
        token = token[7:]
    return token or None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_async_session),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
) -> User:
    """
    Resolve the calling user from a bearer token found in:
    - Authorization header
    - Query parameters
    - Cookies
    """
    token = _extract_token(request, credentials)
    if not token:
        raise _unauthorized("Not authenticated")

    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise _unauthorized("Invalid token: missing user ID")
    try:
        user_id = uuid.UUID(str(user_id_str))
    except ValueError:
        raise _unauthorized("Invalid user ID format in token")

    user = await get_user_by_id(user_id, db)
    if user is None:
        raise _unauthorized("User not found")
    return user


async def require_job_token(x_job_token: Optional[str] = Header(None)) -> None:
    """Guard for scheduler-triggered job endpoints"""
    if not settings.JOB_TRIGGER_TOKEN:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Job triggers are not configured",
        )
    if x_job_token != settings.JOB_TRIGGER_TOKEN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid job token")
