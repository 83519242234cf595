# app/api/deps.py

from typing import AsyncGenerator, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.errors import ForbiddenError, UnauthorizedError
from app.core.security import decode_token
from app.services.auth_service import get_user_by_id
from app.models.user import User, UserRole


# ------------------------------------------------------------
# HTTP Bearer Authentication
# ------------------------------------------------------------
# auto_error=False so a missing header is a 401 from us, not FastAPI's default
bearer_scheme = HTTPBearer(auto_error=False)


# ------------------------------------------------------------
# DB Session
# ------------------------------------------------------------
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


# ------------------------------------------------------------
# Get current logged-in user from JWT
# ------------------------------------------------------------
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    session: AsyncSession = Depends(get_db_session),
) -> User:

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Missing Authorization header")

    try:
        payload = decode_token(credentials.credentials)
        user_id = int(payload.get("sub"))
    except jwt.ExpiredSignatureError:
        raise UnauthorizedError("Token has expired")
    except (jwt.InvalidTokenError, TypeError, ValueError):
        raise UnauthorizedError("Invalid or expired token")

    user = await get_user_by_id(session, user_id)

    if not user:
        raise UnauthorizedError("User not found")

    if user.is_blocked:
        raise UnauthorizedError("Account is blocked")

    return user


# ------------------------------------------------------------
# Role-based access control
# ------------------------------------------------------------
def role_required(*allowed_roles: UserRole):
    """
    Enforces that the current user has one of the allowed roles.
    """
    allowed = set(allowed_roles)

    async def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            if allowed == {UserRole.Admin}:
                raise ForbiddenError("Admin access required")
            raise ForbiddenError(f"Access denied for role '{current_user.role.value}'")
        return current_user

    return checker


# ------------------------------------------------------------
# Exposed dependencies for routers
# ------------------------------------------------------------

require_admin = role_required(UserRole.Admin)
