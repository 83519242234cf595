# app/services/user_service.py

from loguru import logger
from sqlalchemy import delete, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import (
    DuplicateError,
    InvalidRoleError,
    NotFoundError,
    ValidationError,
)
from app.core.security import generate_temporary_password, hash_password
from app.models.assignment import Assignment
from app.models.enums import UserStatus
from app.models.user import User, UserRole
from app.services.auth_service import get_user_by_email, normalize_email


def coerce_role(role: UserRole | str) -> UserRole:
    """Closed set of roles; unknown values are rejected, never stored."""
    if isinstance(role, UserRole):
        return role
    try:
        return UserRole(str(role).strip().lower())
    except ValueError:
        allowed = [r.value for r in UserRole]
        raise InvalidRoleError(f"role: invalid role '{role}'. Allowed roles: {allowed}")


# ============================================================================
# CREATE USER
# ============================================================================
async def create_user(
    session: AsyncSession,
    full_name: str,
    email: str,
    role: UserRole | str,
    phone: str | None = None,
    password: str | None = None,
) -> tuple[User, str]:
    """
    Creates a user and returns it with the plain temporary password, which
    the caller hands to the email collaborator. Only the hash is stored.
    """
    role = coerce_role(role)

    full_name = (full_name or "").strip()
    if not full_name:
        raise ValidationError("full_name is required")

    email = normalize_email(email)
    if not email:
        raise ValidationError("email is required")

    if await get_user_by_email(session, email):
        raise DuplicateError("User with this email already exists")

    password = password or generate_temporary_password()
    user = User(
        full_name=full_name,
        email=email,
        phone=(phone or "").strip() or None,
        role=role,
        status=UserStatus.Active,
        password_hash=hash_password(password),
    )
    session.add(user)

    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise DuplicateError("User with this email already exists")

    await session.refresh(user)
    logger.info(f"User #{user.id} created ({role.value}, {email})")
    return user, password


# ============================================================================
# LIST / GET
# ============================================================================
async def list_users(session: AsyncSession, role: UserRole | str | None = None) -> list[User]:
    query = select(User).order_by(User.created_at.desc(), User.id.desc())
    if role is not None:
        query = query.where(User.role == coerce_role(role))

    result = await session.execute(query)
    return list(result.scalars().all())


async def get_user(session: AsyncSession, user_id: int, *, for_update: bool = False) -> User:
    query = select(User).where(User.id == user_id)
    if for_update:
        query = query.with_for_update()

    result = await session.execute(query)
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError("User not found")
    return user


async def get_users_by_ids(session: AsyncSession, user_ids: list[int]) -> list[User]:
    if not user_ids:
        raise ValidationError("User IDs array is required")

    result = await session.execute(select(User).where(User.id.in_(set(user_ids))).order_by(User.id))
    users = list(result.scalars().all())
    if not users:
        raise NotFoundError("No users found")
    return users


# ============================================================================
# BLOCK / UNBLOCK
# ============================================================================
async def set_user_blocked(session: AsyncSession, user_id: int, blocked: bool) -> User:
    user = await get_user(session, user_id, for_update=True)

    user.status = UserStatus.Blocked if blocked else UserStatus.Active
    session.add(user)
    await session.commit()
    await session.refresh(user)

    logger.info(f"User #{user.id} {'blocked' if blocked else 'unblocked'}")
    return user


# ============================================================================
# DELETE USER (cascades to assignments)
# ============================================================================
async def delete_user(session: AsyncSession, user_id: int, acting_user_id: int | None = None) -> User:
    if acting_user_id is not None and user_id == acting_user_id:
        raise ValidationError("Cannot delete your own account")

    user = await get_user(session, user_id, for_update=True)

    result = await session.execute(
        delete(Assignment).where(
            or_(
                Assignment.student_id == user_id,
                Assignment.trainer_id == user_id,
                Assignment.recruiter_id == user_id,
            )
        )
    )
    await session.delete(user)
    await session.commit()

    logger.info(f"User #{user_id} deleted along with {result.rowcount} assignment(s)")
    return user


# ============================================================================
# RE-ISSUE CREDENTIALS
# ============================================================================
async def reissue_credentials(session: AsyncSession, user_id: int) -> tuple[User, str]:
    user = await get_user(session, user_id, for_update=True)

    password = generate_temporary_password()
    user.password_hash = hash_password(password)
    session.add(user)
    await session.commit()
    await session.refresh(user)

    logger.info(f"Temporary credentials re-issued for user #{user.id}")
    return user, password
