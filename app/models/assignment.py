# app/models/assignment.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, Integer, Text
from datetime import datetime
from typing import Optional

from app.models.application import utcnow


class Assignment(SQLModel, table=True):
    """
    Links a student to a trainer and/or recruiter.
    Users are referenced by id only; names are joined at read time.
    """
    __tablename__ = "assignments"

    id: Optional[int] = Field(default=None, primary_key=True)

    student_id: int = Field(sa_column=Column(Integer, nullable=False, index=True))

    trainer_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True, index=True)
    )

    recruiter_id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, nullable=True, index=True)
    )

    notes: Optional[str] = Field(
        default=None,
        sa_column=Column(Text, nullable=True)
    )

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )
