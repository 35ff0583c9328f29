"""
Authentication dependencies
Bearer tokens are issued by the identity provider; `sub` carries the user id
"""

from typing import Optional
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import uuid

from app.core.database import get_db
from app.core.exceptions import ForbiddenException, UnauthorizedException
from app.core.security import SecurityUtils
from app.models import User

security = HTTPBearer(auto_error=False)

async def _load_user(token: str, db: AsyncSession) -> User:
    payload = SecurityUtils.decode_token(token)

    if payload.get("type") != "access":
        raise UnauthorizedException("Invalid token type")

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedException("Invalid authentication credentials")

    result = await db.execute(
        select(User).where(User.id == user_id, User.is_active == True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise UnauthorizedException("User not found or inactive")
    return user

async def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> Optional[User]:
    """
    Get current user if authenticated, otherwise None
    Used by the cart and checkout endpoints, which also serve anonymous visitors
    """
    if not credentials:
        return None

    try:
        return await _load_user(credentials.credentials, db)
    except UnauthorizedException:
        return None

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Get current authenticated user (required)
    Raises 401 if not authenticated or user not found
    """
    if not credentials:
        raise UnauthorizedException("Not authenticated")
    return await _load_user(credentials.credentials, db)

async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Get current user and ensure they have admin privileges"""
    if not current_user.is_admin:
        raise ForbiddenException("Admin privileges required")
    return current_user
