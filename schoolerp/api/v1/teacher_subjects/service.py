from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.api.v1.classes import service as class_service
from schoolerp.api.v1.teachers import service as teacher_service
from schoolerp.auth import policies
from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.exceptions import ServiceError
from schoolerp.core.logging import get_logger
from schoolerp.core.models import Subject, TeacherSubject

from .schemas import TeacherSubjectCreate, TeacherSubjectResponse

logger = get_logger(__name__)


async def list_assignments(
    db: AsyncSession,
    current_user: CurrentUser,
    teacher_id: Optional[UUID] = None,
    class_id: Optional[UUID] = None,
    academic_year: Optional[str] = None,
) -> List[TeacherSubjectResponse]:
    stmt = policies.scoped(select(TeacherSubject), TeacherSubject, current_user)
    if teacher_id is not None:
        stmt = stmt.where(TeacherSubject.teacher_id == teacher_id)
    if class_id is not None:
        stmt = stmt.where(TeacherSubject.class_id == class_id)
    if academic_year:
        stmt = stmt.where(TeacherSubject.academic_year == academic_year)
    stmt = stmt.order_by(TeacherSubject.created_at)
    result = await db.execute(stmt)
    return [TeacherSubjectResponse.model_validate(ts) for ts in result.scalars().all()]


async def create_assignment(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: TeacherSubjectCreate,
) -> TeacherSubjectResponse:
    """Assign a teacher to teach a subject to a class for an academic year."""
    obj = TeacherSubject(**payload.model_dump())
    policies.enforce(TeacherSubject, current_user, obj, policies.INSERT)
    if not await teacher_service.get_teacher_for_reference(db, payload.teacher_id):
        raise ServiceError("Teacher not found", status.HTTP_400_BAD_REQUEST)
    if not await db.get(Subject, payload.subject_id):
        raise ServiceError("Subject not found", status.HTTP_400_BAD_REQUEST)
    if not await class_service.get_class_for_reference(db, payload.class_id):
        raise ServiceError("Class not found", status.HTTP_400_BAD_REQUEST)
    try:
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError(
            "Teacher is already assigned to this subject and class for the academic year",
            status.HTTP_409_CONFLICT,
        )
    logger.info("teacher_subject_assigned", id=str(obj.id), teacher_id=str(obj.teacher_id))
    return TeacherSubjectResponse.model_validate(obj)


async def delete_assignment(db: AsyncSession, current_user: CurrentUser, assignment_id: UUID) -> bool:
    stmt = select(TeacherSubject).where(TeacherSubject.id == assignment_id)
    result = await db.execute(policies.scoped(stmt, TeacherSubject, current_user, policies.DELETE))
    obj = result.scalar_one_or_none()
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    logger.info("teacher_subject_removed", id=str(assignment_id))
    return True
