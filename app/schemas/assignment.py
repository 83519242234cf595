# app/schemas/assignment.py

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel


class AssignmentCreate(BaseModel):
    student_id: int
    trainer_id: Optional[int] = None
    recruiter_id: Optional[int] = None
    notes: Optional[str] = None

    class Config:
        json_schema_extra = {
            "examples": [
                {"student_id": 4, "trainer_id": 2},
                {"student_id": 4, "recruiter_id": 3, "notes": "Fintech track"},
            ]
        }


class UserSummary(BaseModel):
    id: int
    full_name: str
    email: str


class AssignmentRead(BaseModel):
    id: int
    student_id: int
    trainer_id: Optional[int] = None
    recruiter_id: Optional[int] = None
    notes: Optional[str] = None
    created_at: datetime

    # read-time join; None when the referenced user no longer resolves
    student: Optional[UserSummary] = None
    trainer: Optional[UserSummary] = None
    recruiter: Optional[UserSummary] = None


class AssignmentResponse(BaseModel):
    message: Optional[str] = None
    assignment: AssignmentRead


class AssignmentListResponse(BaseModel):
    assignments: List[AssignmentRead]
