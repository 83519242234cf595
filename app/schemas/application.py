# app/schemas/application.py

from pydantic import AliasChoices, BaseModel, Field
from typing import Optional
from datetime import datetime

from app.models.enums import ApplicationStatus


# ============================================================
# APPLICATION READ (admin dashboard / intake response)
# ============================================================
class ApplicationRead(BaseModel):
    id: int
    full_name: str
    email: str
    phone: str
    about_me: Optional[str] = None
    resume_path: Optional[str] = None
    resume_filename: Optional[str] = None
    status: ApplicationStatus
    is_approved: bool
    approved_date: Optional[datetime] = None
    approved_by: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ============================================================
# APPLICATION UPDATE (admin edits contact details)
# ============================================================
class ApplicationUpdate(BaseModel):
    full_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("full_name", "fullName")
    )
    phone: Optional[str] = None
    about_me: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("about_me", "aboutMe")
    )


# ============================================================
# APPROVAL (temporary password is mailed to the applicant)
# ============================================================
class ApproveRequest(BaseModel):
    password: str
    approved_by: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("approved_by", "approvedBy")
    )

    class Config:
        json_schema_extra = {
            "examples": [{"password": "Secure1!", "approved_by": "admin@zgenai.org"}]
        }


# ============================================================
# RESPONSES
# ============================================================
class ApplicationSubmitResponse(BaseModel):
    message: str
    # key kept as "user" for the intake form
    user: ApplicationRead


class ApplicationActionResponse(BaseModel):
    message: str
    application: ApplicationRead
