# app/api/endpoints/users.py

from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db_session, require_admin
from app.models.user import User, UserRole
from app.schemas.user import (
    BlockRequest,
    CredentialsSentResponse,
    RatingEmailRequest,
    RatingEmailResponse,
    UserCreate,
    UserListResponse,
    UserRead,
    UserResponse,
)
from app.services import user_service
from app.services.email_service import send_account_created_email, send_rating_email

router = APIRouter(prefix="/api/users", tags=["Users"])


def _credentials_email(user: User, password: str) -> dict:
    return {
        "name": user.full_name,
        "email": user.email,
        "phone": user.phone,
        "role": user.role.value,
        "password": password,
    }


# -------------------------------------------------------------------
# List all users (Admin only)
# -------------------------------------------------------------------
@router.get("", response_model=UserListResponse)
async def list_users(
    role: Optional[UserRole] = None,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    users = await user_service.list_users(session, role=role)
    return UserListResponse(users=[UserRead.model_validate(u) for u in users])


# -------------------------------------------------------------------
# Create ANY user (Admin only); temporary password goes out by email
# -------------------------------------------------------------------
@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: UserCreate,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    user, password = await user_service.create_user(
        session,
        full_name=data.full_name,
        email=data.email,
        role=data.role,
        phone=data.phone,
    )

    background_tasks.add_task(send_account_created_email, _credentials_email(user, password))

    return UserResponse(
        message="User created successfully and welcome email sent",
        user=UserRead.model_validate(user),
    )


# -------------------------------------------------------------------
# Rating request email to selected users (Admin only)
# -------------------------------------------------------------------
@router.post("/send-rating-email", response_model=RatingEmailResponse)
async def send_rating_emails(
    payload: RatingEmailRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    users = await user_service.get_users_by_ids(session, payload.user_ids)

    for user in users:
        background_tasks.add_task(
            send_rating_email,
            {"name": user.full_name, "email": user.email, "phone": user.phone, "message": payload.message},
        )

    return RatingEmailResponse(
        message=f"Rating emails sent successfully to {len(users)} users",
        recipients=len(users),
    )


# -------------------------------------------------------------------
# Get one user (Admin only)
# -------------------------------------------------------------------
@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    user = await user_service.get_user(session, user_id)
    return UserResponse(user=UserRead.model_validate(user))


# -------------------------------------------------------------------
# Block / unblock (Admin only)
# -------------------------------------------------------------------
@router.put("/{user_id}/block", response_model=UserResponse)
async def block_user(
    user_id: int,
    payload: BlockRequest,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    user = await user_service.set_user_blocked(session, user_id, payload.blocked)
    return UserResponse(
        message=f"User {'blocked' if payload.blocked else 'unblocked'} successfully",
        user=UserRead.model_validate(user),
    )


# -------------------------------------------------------------------
# Re-send credentials with a fresh temporary password (Admin only)
# -------------------------------------------------------------------
@router.post("/{user_id}/send-credentials", response_model=CredentialsSentResponse)
async def send_credentials(
    user_id: int,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    user, password = await user_service.reissue_credentials(session, user_id)
    background_tasks.add_task(send_account_created_email, _credentials_email(user, password))
    return CredentialsSentResponse(message="Credentials email sent", recipient=user.email)


# -------------------------------------------------------------------
# Delete a user (Admin only); their assignments go with them
# -------------------------------------------------------------------
@router.delete("/{user_id}", response_model=UserResponse)
async def delete_user(
    user_id: int,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    user = await user_service.delete_user(session, user_id, acting_user_id=current_user.id)
    return UserResponse(message="User deleted successfully", user=UserRead.model_validate(user))
