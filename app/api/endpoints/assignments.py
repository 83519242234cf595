# app/api/endpoints/assignments.py

from typing import Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db_session, require_admin
from app.models.user import User
from app.schemas.assignment import (
    AssignmentCreate,
    AssignmentListResponse,
    AssignmentRead,
    AssignmentResponse,
)
from app.services import assignment_service

router = APIRouter(prefix="/api/assignments", tags=["Assignments"])


# -------------------------------------------------------------------
# List (Admin only), optionally filtered by participant
# -------------------------------------------------------------------
@router.get("", response_model=AssignmentListResponse)
async def list_assignments(
    student_id: Optional[int] = None,
    trainer_id: Optional[int] = None,
    recruiter_id: Optional[int] = None,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    assignments = await assignment_service.list_assignments(
        session,
        student_id=student_id,
        trainer_id=trainer_id,
        recruiter_id=recruiter_id,
    )
    return AssignmentListResponse(assignments=assignments)


# -------------------------------------------------------------------
# My assignments (student / trainer / recruiter dashboards)
# -------------------------------------------------------------------
@router.get("/me", response_model=AssignmentListResponse)
async def my_assignments(
    session: AsyncSession = Depends(get_db_session),
    current_user: User = Depends(get_current_user),
):
    assignments = await assignment_service.list_assignments_for_user(session, current_user)
    return AssignmentListResponse(assignments=assignments)


# -------------------------------------------------------------------
# Create (Admin only)
# -------------------------------------------------------------------
@router.post("", response_model=AssignmentResponse, status_code=status.HTTP_201_CREATED)
async def create_assignment(
    payload: AssignmentCreate,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    assignment = await assignment_service.create_assignment(
        session,
        student_id=payload.student_id,
        trainer_id=payload.trainer_id,
        recruiter_id=payload.recruiter_id,
        notes=payload.notes,
    )
    return AssignmentResponse(message="User assignment created successfully", assignment=assignment)


# -------------------------------------------------------------------
# Get / delete one (Admin only)
# -------------------------------------------------------------------
@router.get("/{assignment_id}", response_model=AssignmentRead)
async def get_assignment(
    assignment_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    return await assignment_service.get_assignment(session, assignment_id)


@router.delete("/{assignment_id}")
async def delete_assignment(
    assignment_id: int,
    session: AsyncSession = Depends(get_db_session),
    _: User = Depends(require_admin),
):
    await assignment_service.delete_assignment(session, assignment_id)
    return {"message": "Assignment deleted successfully"}
