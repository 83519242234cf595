# app/services/assignment_service.py

from loguru import logger
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError, ValidationError
from app.models.assignment import Assignment
from app.models.user import User, UserRole
from app.schemas.assignment import AssignmentRead, UserSummary


async def _require_role(session: AsyncSession, user_id: int, role: UserRole, field: str) -> User:
    user = await session.get(User, user_id)
    if not user or user.role != role:
        raise ValidationError(f"{field} must reference a user with role '{role.value}'")
    return user


async def _to_read_models(session: AsyncSession, assignments: list[Assignment]) -> list[AssignmentRead]:
    """Joins display names/emails for every referenced user in one query."""
    ids = {
        uid
        for a in assignments
        for uid in (a.student_id, a.trainer_id, a.recruiter_id)
        if uid is not None
    }
    users = {}
    if ids:
        result = await session.execute(select(User).where(User.id.in_(ids)))
        users = {
            u.id: UserSummary(id=u.id, full_name=u.full_name, email=u.email)
            for u in result.scalars().all()
        }

    return [
        AssignmentRead(
            id=a.id,
            student_id=a.student_id,
            trainer_id=a.trainer_id,
            recruiter_id=a.recruiter_id,
            notes=a.notes,
            created_at=a.created_at,
            student=users.get(a.student_id),
            trainer=users.get(a.trainer_id),
            recruiter=users.get(a.recruiter_id),
        )
        for a in assignments
    ]


# ============================================================================
# CREATE
# ============================================================================
async def create_assignment(
    session: AsyncSession,
    student_id: int,
    trainer_id: int | None = None,
    recruiter_id: int | None = None,
    notes: str | None = None,
) -> AssignmentRead:
    """
    A student has at most one trainer and one recruiter: a new link replaces
    the previous one of the same kind, and an older assignment left without
    any target is removed.
    """
    if trainer_id is None and recruiter_id is None:
        raise ValidationError("trainer_id or recruiter_id is required")

    await _require_role(session, student_id, UserRole.Student, "student_id")
    if trainer_id is not None:
        await _require_role(session, trainer_id, UserRole.Trainer, "trainer_id")
    if recruiter_id is not None:
        await _require_role(session, recruiter_id, UserRole.Recruiter, "recruiter_id")

    result = await session.execute(
        select(Assignment).where(Assignment.student_id == student_id).with_for_update()
    )
    for previous in result.scalars().all():
        if trainer_id is not None:
            previous.trainer_id = None
        if recruiter_id is not None:
            previous.recruiter_id = None

        if previous.trainer_id is None and previous.recruiter_id is None:
            await session.delete(previous)
        else:
            session.add(previous)

    assignment = Assignment(
        student_id=student_id,
        trainer_id=trainer_id,
        recruiter_id=recruiter_id,
        notes=(notes or "").strip() or None,
    )
    session.add(assignment)
    await session.commit()
    await session.refresh(assignment)

    logger.info(
        f"Assignment #{assignment.id}: student #{student_id} -> "
        f"trainer #{trainer_id}, recruiter #{recruiter_id}"
    )
    return (await _to_read_models(session, [assignment]))[0]


# ============================================================================
# LIST
# ============================================================================
async def list_assignments(
    session: AsyncSession,
    student_id: int | None = None,
    trainer_id: int | None = None,
    recruiter_id: int | None = None,
) -> list[AssignmentRead]:
    query = select(Assignment).order_by(Assignment.created_at.desc(), Assignment.id.desc())
    if student_id is not None:
        query = query.where(Assignment.student_id == student_id)
    if trainer_id is not None:
        query = query.where(Assignment.trainer_id == trainer_id)
    if recruiter_id is not None:
        query = query.where(Assignment.recruiter_id == recruiter_id)

    result = await session.execute(query)
    return await _to_read_models(session, list(result.scalars().all()))


async def list_assignments_for_user(session: AsyncSession, user: User) -> list[AssignmentRead]:
    """Dashboard view: every assignment the user takes part in, whatever the role."""
    result = await session.execute(
        select(Assignment)
        .where(
            or_(
                Assignment.student_id == user.id,
                Assignment.trainer_id == user.id,
                Assignment.recruiter_id == user.id,
            )
        )
        .order_by(Assignment.created_at.desc(), Assignment.id.desc())
    )
    return await _to_read_models(session, list(result.scalars().all()))


# ============================================================================
# GET / DELETE
# ============================================================================
async def _get_assignment_row(session: AsyncSession, assignment_id: int) -> Assignment:
    assignment = await session.get(Assignment, assignment_id)
    if not assignment:
        raise NotFoundError("Assignment not found")
    return assignment


async def get_assignment(session: AsyncSession, assignment_id: int) -> AssignmentRead:
    assignment = await _get_assignment_row(session, assignment_id)
    return (await _to_read_models(session, [assignment]))[0]


async def delete_assignment(session: AsyncSession, assignment_id: int) -> None:
    assignment = await _get_assignment_row(session, assignment_id)
    await session.delete(assignment)
    await session.commit()
    logger.info(f"Assignment #{assignment_id} deleted")
