"""API dependencies for authentication and common operations."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from staymarket.core.exceptions import AuthenticationError, AuthorizationError
from staymarket.core.security import verify_token
from staymarket.database import get_db
from staymarket.models.user import User

# Security scheme
security = HTTPBearer()


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> User:
    """Get the current authenticated user from JWT token."""
    payload = verify_token(credentials.credentials, token_type="access")
    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationError("Invalid token payload")
    try:
        user_uuid = UUID(user_id)
    except ValueError:
        raise AuthenticationError("Invalid token subject")

    result = await db.execute(select(User).where(User.id == user_uuid))
    user = result.scalar_one_or_none()

    if not user:
        raise AuthenticationError("User not found")

    return user


async def get_current_manager(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get current user and verify they manage properties."""
    if current_user.role not in ("manager", "admin"):
        raise AuthorizationError("Manager access required")
    return current_user


async def get_current_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Get current user and verify they are an admin."""
    if current_user.role != "admin":
        raise AuthorizationError("Admin access required")
    return current_user


DbSession = Annotated[AsyncSession, Depends(get_db)]
CurrentUser = Annotated[User, Depends(get_current_user)]
CurrentManager = Annotated[User, Depends(get_current_manager)]
CurrentAdmin = Annotated[User, Depends(get_current_admin)]
