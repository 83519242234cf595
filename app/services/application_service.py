from datetime import datetime, timezone

from fastapi import UploadFile
from loguru import logger
from sqlmodel import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from app.core.config import settings
from app.core.errors import (
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
    WeakPasswordError,
)
from app.core.security import hash_password
from app.core.storage import delete_resume, save_resume
from app.models.application import Application
from app.models.enums import ApplicationStatus, UserStatus
from app.models.user import User, UserRole
from app.services.auth_service import get_user_by_email, normalize_email


def _required(value: str | None, field: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(f"{field} is required")
    return value


# ---------------------------------------
# LOOKUPS
# ---------------------------------------
async def get_application(
    session: AsyncSession,
    application_id: int,
    *,
    for_update: bool = False,
) -> Application:
    query = select(Application).where(Application.id == application_id)
    if for_update:
        query = query.with_for_update()

    result = await session.execute(query)
    app = result.scalar_one_or_none()
    if not app:
        raise NotFoundError("Application not found")
    return app


async def get_application_by_email(session: AsyncSession, email: str) -> Application | None:
    result = await session.execute(
        select(Application).where(Application.email == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def list_applications(session: AsyncSession) -> list[Application]:
    """Most recent first; id breaks ties so repeated listings are identical."""
    result = await session.execute(
        select(Application).order_by(Application.created_at.desc(), Application.id.desc())
    )
    return list(result.scalars().all())


# ---------------------------------------
# SUBMIT (public intake form)
# ---------------------------------------
async def submit_application(
    session: AsyncSession,
    full_name: str,
    email: str,
    phone: str,
    about_me: str | None = None,
    resume: UploadFile | None = None,
) -> Application:

    full_name = _required(full_name, "fullName")
    email = normalize_email(_required(email, "email"))
    phone = _required(phone, "phone")

    # 1. One application per email
    if await get_application_by_email(session, email):
        raise DuplicateError("Email already exists")

    # 2. Resume goes to the storage collaborator; a backend failure leaves it unset
    stored = await save_resume(resume)
    resume_path, resume_filename = stored if stored else (None, None)

    app = Application(
        full_name=full_name,
        email=email,
        phone=phone,
        about_me=(about_me or "").strip() or None,
        resume_path=resume_path,
        resume_filename=resume_filename,
        status=ApplicationStatus.Applied,
        is_approved=False,
    )
    session.add(app)

    # 3. Commit (unique index catches a concurrent duplicate)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        await delete_resume(resume_path)
        raise DuplicateError("Email already exists")

    await session.refresh(app)
    logger.info(f"Application #{app.id} submitted by {email}")
    return app


# ---------------------------------------
# UPDATE (admin edits contact details)
# ---------------------------------------
async def update_application(
    session: AsyncSession,
    application_id: int,
    full_name: str | None = None,
    phone: str | None = None,
    about_me: str | None = None,
) -> Application:
    app = await get_application(session, application_id, for_update=True)

    if full_name is not None:
        app.full_name = _required(full_name, "full_name")
    if phone is not None:
        app.phone = _required(phone, "phone")
    if about_me is not None:
        app.about_me = about_me.strip() or None

    app.updated_at = datetime.now(timezone.utc)
    session.add(app)
    await session.commit()
    await session.refresh(app)
    return app


# ---------------------------------------
# APPROVE (issues student credentials)
# ---------------------------------------
async def approve_application(
    session: AsyncSession,
    application_id: int,
    temporary_password: str,
    approved_by: str | None = None,
) -> Application:
    """
    applied -> approved. The applicant's student account is created (or its
    password reset and status reactivated) with the temporary password; mailing
    it is the caller's job. An email owned by a non-student account is refused.
    """
    app = await get_application(session, application_id, for_update=True)

    if temporary_password is None or len(temporary_password) < settings.MIN_PASSWORD_LENGTH:
        raise WeakPasswordError(
            f"password must be at least {settings.MIN_PASSWORD_LENGTH} characters",
        )

    if app.status != ApplicationStatus.Applied:
        raise InvalidTransitionError(f"Application is already {app.status.value}")

    user = await get_user_by_email(session, app.email)
    if user and user.role != UserRole.Student:
        raise DuplicateError(f"Email already belongs to a {user.role.value} account")

    if user:
        # existing student: new credentials, and a blocked account is reactivated
        user.password_hash = hash_password(temporary_password)
        user.status = UserStatus.Active
    else:
        user = User(
            full_name=app.full_name,
            email=app.email,
            phone=app.phone,
            role=UserRole.Student,
            status=UserStatus.Active,
            password_hash=hash_password(temporary_password),
        )
    session.add(user)

    now = datetime.now(timezone.utc)
    app.status = ApplicationStatus.Approved
    app.is_approved = True
    app.approved_date = now
    app.approved_by = approved_by
    app.updated_at = now
    session.add(app)

    await session.commit()
    await session.refresh(app)

    logger.info(f"Application #{app.id} approved by {approved_by}; student account ready for {app.email}")
    return app


# ---------------------------------------
# REJECT
# ---------------------------------------
async def reject_application(session: AsyncSession, application_id: int) -> Application:
    app = await get_application(session, application_id, for_update=True)

    if app.status != ApplicationStatus.Applied:
        raise InvalidTransitionError(f"Application is already {app.status.value}")

    app.status = ApplicationStatus.Rejected
    app.is_approved = False
    app.updated_at = datetime.now(timezone.utc)
    session.add(app)

    await session.commit()
    await session.refresh(app)

    logger.info(f"Application #{app.id} rejected")
    return app


# ---------------------------------------
# DELETE (record and its stored resume)
# ---------------------------------------
async def delete_application(session: AsyncSession, application_id: int) -> Application:
    app = await get_application(session, application_id, for_update=True)

    await session.delete(app)
    await session.commit()
    await delete_resume(app.resume_path)

    logger.info(f"Application #{application_id} deleted")
    return app


# ---------------------------------------
# RESUME LOOKUP
# ---------------------------------------
async def get_application_resume(session: AsyncSession, application_id: int) -> Application:
    app = await get_application(session, application_id)
    if not app.resume_path:
        raise NotFoundError("Resume not found")
    return app
