from typing import List, Optional
from datetime import datetime
from pydantic import AliasChoices, BaseModel, EmailStr, Field
from app.models.enums import UserStatus
from app.models.user import UserRole


# ---------------------------------------------------------
# CREATE USER (Admin creates any user; password is generated)
# ---------------------------------------------------------
class UserCreate(BaseModel):
    full_name: str = Field(
        min_length=1,
        validation_alias=AliasChoices("full_name", "fullName", "name"),
    )
    email: EmailStr
    phone: Optional[str] = None
    role: UserRole

    class Config:
        json_schema_extra = {
            "examples": [
                {"name": "Tom Trainer", "email": "tom@example.com", "role": "trainer"},
                {"name": "Rita Recruiter", "email": "rita@example.com", "phone": "555-0101", "role": "recruiter"},
            ]
        }


# ---------------------------------------------------------
# BLOCK / UNBLOCK
# ---------------------------------------------------------
class BlockRequest(BaseModel):
    blocked: bool


# ---------------------------------------------------------
# READ USER (response)
# ---------------------------------------------------------
class UserRead(BaseModel):
    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    status: UserStatus
    created_at: datetime

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    message: Optional[str] = None
    user: UserRead


class UserListResponse(BaseModel):
    users: List[UserRead]


class CredentialsSentResponse(BaseModel):
    message: str
    recipient: str


class RatingEmailRequest(BaseModel):
    user_ids: List[int] = Field(validation_alias=AliasChoices("userIds", "user_ids"))
    message: Optional[str] = None


class RatingEmailResponse(BaseModel):
    message: str
    recipients: int
