# app/models/user.py

from sqlmodel import SQLModel, Field, Column
from sqlalchemy import DateTime, String
from sqlalchemy import Enum as SAEnum
from datetime import datetime
from enum import Enum
from typing import Optional

from app.models.application import utcnow
from app.models.enums import UserStatus


class UserRole(str, Enum):
    Student = "student"
    Trainer = "trainer"
    Recruiter = "recruiter"
    Admin = "admin"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)

    full_name: str = Field(sa_column=Column(String(255), nullable=False))
    email: str = Field(sa_column=Column(String(255), nullable=False, unique=True, index=True))
    phone: Optional[str] = Field(
        default=None,
        sa_column=Column(String(50), nullable=True)
    )

    role: UserRole = Field(
        sa_column=Column(
            SAEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
            nullable=False,
        )
    )

    status: UserStatus = Field(
        default=UserStatus.Active,
        sa_column=Column(
            SAEnum(UserStatus, name="user_status", values_callable=lambda e: [m.value for m in e]),
            nullable=False,
        )
    )

    password_hash: str = Field(sa_column=Column(String(255), nullable=False))

    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False)
    )

    @property
    def is_blocked(self) -> bool:
        return self.status == UserStatus.Blocked
