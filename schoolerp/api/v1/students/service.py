from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from schoolerp.api.v1.classes import service as class_service
from schoolerp.api.v1.classes.schemas import ClassSummary
from schoolerp.api.v1.profiles import service as profile_service
from schoolerp.api.v1.profiles.schemas import ProfileSummary
from schoolerp.auth import policies
from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.exceptions import ServiceError
from schoolerp.core.logging import get_logger
from schoolerp.core.models import Student

from .schemas import StudentCreate, StudentDetailResponse, StudentResponse, StudentUpdate

logger = get_logger(__name__)

# Columns that may be cleared with an explicit null on update
_NULLABLE_FIELDS = {
    "class_id",
    "parent_name",
    "parent_phone",
    "parent_email",
    "emergency_contact",
    "medical_notes",
    "photo_url",
}


def _to_response(s: Student) -> StudentResponse:
    return StudentResponse.model_validate(s)


def _to_detail(s: Student) -> StudentDetailResponse:
    data = StudentResponse.model_validate(s).model_dump()
    return StudentDetailResponse(
        **data,
        user_profile=ProfileSummary.model_validate(s.profile) if s.profile else None,
        school_class=ClassSummary.model_validate(s.school_class) if s.school_class else None,
    )


def _with_relations(stmt):
    return stmt.options(
        selectinload(Student.profile), selectinload(Student.school_class)
    ).execution_options(populate_existing=True)


async def _get_visible(
    db: AsyncSession, current_user: CurrentUser, student_id: UUID, command: str
) -> Optional[Student]:
    stmt = select(Student).where(Student.id == student_id)
    result = await db.execute(policies.scoped(stmt, Student, current_user, command))
    return result.scalar_one_or_none()


async def _validate_references(db: AsyncSession, user_id: Optional[UUID], class_id: Optional[UUID]) -> None:
    if user_id is not None and not await profile_service.get_profile_for_reference(db, user_id):
        raise ServiceError("User profile not found", status.HTTP_400_BAD_REQUEST)
    if class_id is not None and not await class_service.get_class_for_reference(db, class_id):
        raise ServiceError("Class not found", status.HTTP_400_BAD_REQUEST)


async def list_students(
    db: AsyncSession,
    current_user: CurrentUser,
    class_id: Optional[UUID] = None,
) -> List[StudentDetailResponse]:
    """Students visible to the caller, newest first."""
    stmt = policies.scoped(_with_relations(select(Student)), Student, current_user)
    if class_id is not None:
        stmt = stmt.where(Student.class_id == class_id)
    stmt = stmt.order_by(Student.created_at.desc())
    result = await db.execute(stmt)
    return [_to_detail(s) for s in result.scalars().all()]


async def get_student(
    db: AsyncSession, current_user: CurrentUser, student_id: UUID
) -> Optional[StudentDetailResponse]:
    stmt = _with_relations(select(Student).where(Student.id == student_id))
    result = await db.execute(policies.scoped(stmt, Student, current_user))
    obj = result.scalar_one_or_none()
    return _to_detail(obj) if obj else None


async def create_student(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: StudentCreate,
) -> StudentResponse:
    obj = Student(**payload.model_dump())
    policies.enforce(Student, current_user, obj, policies.INSERT)
    await _validate_references(db, payload.user_id, payload.class_id)
    try:
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Student ID already exists", status.HTTP_409_CONFLICT)
    logger.info("student_created", student_id=obj.student_id, id=str(obj.id))
    return _to_response(obj)


async def update_student(
    db: AsyncSession,
    current_user: CurrentUser,
    student_id: UUID,
    payload: StudentUpdate,
) -> Optional[StudentResponse]:
    obj = await _get_visible(db, current_user, student_id, policies.UPDATE)
    if not obj:
        return None
    changes = payload.model_dump(exclude_unset=True)
    # Look up references before dirtying the row; the lookup autoflushes
    await _validate_references(db, None, changes.get("class_id"))
    for field, value in changes.items():
        if value is None and field not in _NULLABLE_FIELDS:
            continue
        setattr(obj, field, value)
    policies.enforce(Student, current_user, obj, policies.UPDATE)
    try:
        await db.commit()
        await db.refresh(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Student ID already exists", status.HTTP_409_CONFLICT)
    logger.info("student_updated", id=str(student_id), fields=sorted(changes))
    return _to_response(obj)


async def delete_student(db: AsyncSession, current_user: CurrentUser, student_id: UUID) -> bool:
    obj = await _get_visible(db, current_user, student_id, policies.DELETE)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    logger.info("student_deleted", id=str(student_id))
    return True
