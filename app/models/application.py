# app/models/application.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import Boolean, DateTime, String, Text
from sqlalchemy import Enum as SAEnum
from datetime import datetime, timezone
from typing import Optional

from app.models.enums import ApplicationStatus


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Application(SQLModel, table=True):
    __tablename__ = "applications"

    id: Optional[int] = Field(default=None, primary_key=True)

    full_name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True, index=True))
    phone: str = Field(sa_column=Column(String(50), nullable=False))

    about_me: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )

    # Reference returned by the storage backend, never the file itself
    resume_path: Optional[str] = Field(
        default=None,
        sa_column=Column(String(500), nullable=True)
    )
    resume_filename: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True)
    )

    status: ApplicationStatus = Field(
        default=ApplicationStatus.Applied,
        sa_column=Column(
            SAEnum(
                ApplicationStatus,
                name="application_status",
                values_callable=lambda e: [m.value for m in e],
            ),
            nullable=False,
        )
    )

    # is_approved <=> status == approved <=> approved_date is set
    is_approved: bool = Field(
        default=False,
        sa_column=Column(Boolean, nullable=False, default=False)
    )
    approved_date: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    approved_by: Optional[str] = Field(
        default=None,
        sa_column=Column(String(255), nullable=True)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
