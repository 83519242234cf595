from typing import List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import FileResponse, RedirectResponse
from pydantic import EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_db_session, require_admin
from app.core.config import settings
from app.core.errors import NotFoundError
from app.core.rate_limiter import limiter
from app.core.storage import get_signed_url, resolve_local_path
from app.models.user import User
from app.schemas.application import (
    ApplicationActionResponse,
    ApplicationRead,
    ApplicationSubmitResponse,
    ApplicationUpdate,
    ApproveRequest,
)
from app.services import application_service
from app.services.email_service import (
    send_application_approved_email,
    send_application_received_email,
    send_application_rejected_email,
)

router = APIRouter(
    prefix="/api/applications",
    tags=["Applications"]
)

# Legacy un-prefixed paths still used by the intake form
legacy_router = APIRouter(tags=["Applications"], include_in_schema=False)


# ------------------------------------------------------------
# LIST APPLICATIONS (newest first)
# ------------------------------------------------------------
@router.get("", response_model=List[ApplicationRead])
async def list_applications(session: AsyncSession = Depends(get_db_session)):
    return await application_service.list_applications(session)


# ------------------------------------------------------------
# SUBMIT APPLICATION (multipart intake form)
# ------------------------------------------------------------
@router.post("", response_model=ApplicationSubmitResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.INTAKE_RATE_LIMIT)
async def submit_application(
    request: Request,
    background_tasks: BackgroundTasks,
    full_name: str = Form(..., alias="fullName"),
    email: EmailStr = Form(...),
    phone: str = Form(...),
    about_me: Optional[str] = Form(None, alias="aboutMe"),
    resume: Optional[UploadFile] = File(None),
    session: AsyncSession = Depends(get_db_session),
):
    app = await application_service.submit_application(
        session,
        full_name=full_name,
        email=email,
        phone=phone,
        about_me=about_me,
        resume=resume,
    )

    background_tasks.add_task(
        send_application_received_email,
        {"name": app.full_name, "email": app.email, "application_id": app.id},
    )

    return ApplicationSubmitResponse(
        message="Application submitted successfully",
        user=ApplicationRead.model_validate(app),
    )


legacy_router.add_api_route(
    "/applications", list_applications, methods=["GET"], response_model=List[ApplicationRead]
)
legacy_router.add_api_route(
    "/applications",
    submit_application,
    methods=["POST"],
    response_model=ApplicationSubmitResponse,
    status_code=status.HTTP_201_CREATED,
)


# ------------------------------------------------------------
# GET / UPDATE ONE APPLICATION (Admin only)
# ------------------------------------------------------------
@router.get("/{application_id}", response_model=ApplicationRead)
async def get_application(
    application_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    return await application_service.get_application(session, application_id)


@router.put("/{application_id}", response_model=ApplicationRead)
async def update_application(
    application_id: int,
    payload: ApplicationUpdate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    return await application_service.update_application(
        session,
        application_id,
        full_name=payload.full_name,
        phone=payload.phone,
        about_me=payload.about_me,
    )


# ------------------------------------------------------------
# DOWNLOAD RESUME (Admin only)
# ------------------------------------------------------------
@router.get("/{application_id}/resume")
async def download_resume(
    application_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    app = await application_service.get_application_resume(session, application_id)

    local_path = resolve_local_path(app.resume_path)
    if local_path:
        return FileResponse(
            local_path,
            media_type="application/octet-stream",
            filename=app.resume_filename or local_path.name,
        )

    signed_url = get_signed_url(app.resume_path)
    if signed_url:
        return RedirectResponse(signed_url)

    raise NotFoundError("Resume file is not available")


# ------------------------------------------------------------
# APPROVE (Admin only) -> student account + credentials email
# ------------------------------------------------------------
@router.post("/{application_id}/approve", response_model=ApplicationActionResponse)
async def approve_application(
    application_id: int,
    payload: ApproveRequest,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(require_admin),
):
    app = await application_service.approve_application(
        session,
        application_id,
        temporary_password=payload.password,
        approved_by=payload.approved_by or current_user.email,
    )

    # Queued after commit; a delivery failure is only logged
    background_tasks.add_task(
        send_application_approved_email,
        {"name": app.full_name, "email": app.email, "password": payload.password},
    )

    return ApplicationActionResponse(
        message="Student approved and account created",
        application=ApplicationRead.model_validate(app),
    )


# ------------------------------------------------------------
# REJECT (Admin only)
# ------------------------------------------------------------
@router.post("/{application_id}/reject", response_model=ApplicationActionResponse)
async def reject_application(
    application_id: int,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    app = await application_service.reject_application(session, application_id)

    background_tasks.add_task(
        send_application_rejected_email,
        {"name": app.full_name, "email": app.email},
    )

    return ApplicationActionResponse(
        message="Application rejected",
        application=ApplicationRead.model_validate(app),
    )


# ------------------------------------------------------------
# DELETE (Admin only)
# ------------------------------------------------------------
@router.delete("/{application_id}", response_model=ApplicationActionResponse)
async def delete_application(
    application_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    app = await application_service.delete_application(session, application_id)
    return ApplicationActionResponse(
        message="Application deleted successfully",
        application=ApplicationRead.model_validate(app),
    )
