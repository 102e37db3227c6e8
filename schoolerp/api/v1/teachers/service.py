from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from schoolerp.api.v1.profiles import service as profile_service
from schoolerp.api.v1.profiles.schemas import ProfileSummary
from schoolerp.api.v1.teacher_subjects.schemas import TeacherSubjectSummary
from schoolerp.auth import policies
from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.exceptions import ServiceError
from schoolerp.core.logging import get_logger
from schoolerp.core.models import Teacher, TeacherSubject

from .schemas import TeacherCreate, TeacherDetailResponse, TeacherResponse, TeacherUpdate

logger = get_logger(__name__)

_NULLABLE_FIELDS = {
    "department",
    "qualification",
    "experience_years",
    "salary",
    "emergency_contact",
    "photo_url",
}


def _to_response(t: Teacher) -> TeacherResponse:
    return TeacherResponse.model_validate(t)


def _to_detail(t: Teacher) -> TeacherDetailResponse:
    data = TeacherResponse.model_validate(t).model_dump()
    return TeacherDetailResponse(
        **data,
        user_profile=ProfileSummary.model_validate(t.profile) if t.profile else None,
        teacher_subjects=[TeacherSubjectSummary.model_validate(ts) for ts in t.teacher_subjects],
    )


def _with_relations(stmt):
    return stmt.options(
        selectinload(Teacher.profile),
        selectinload(Teacher.teacher_subjects).selectinload(TeacherSubject.subject),
        selectinload(Teacher.teacher_subjects).selectinload(TeacherSubject.school_class),
    ).execution_options(populate_existing=True)


async def _get_visible(
    db: AsyncSession, current_user: CurrentUser, teacher_id: UUID, command: str
) -> Optional[Teacher]:
    stmt = select(Teacher).where(Teacher.id == teacher_id)
    result = await db.execute(policies.scoped(stmt, Teacher, current_user, command))
    return result.scalar_one_or_none()


async def list_teachers(db: AsyncSession, current_user: CurrentUser) -> List[TeacherDetailResponse]:
    """Teachers visible to the caller, newest first."""
    stmt = policies.scoped(_with_relations(select(Teacher)), Teacher, current_user)
    stmt = stmt.order_by(Teacher.created_at.desc())
    result = await db.execute(stmt)
    return [_to_detail(t) for t in result.scalars().all()]


async def get_teacher(
    db: AsyncSession, current_user: CurrentUser, teacher_id: UUID
) -> Optional[TeacherDetailResponse]:
    stmt = _with_relations(select(Teacher).where(Teacher.id == teacher_id))
    result = await db.execute(policies.scoped(stmt, Teacher, current_user))
    obj = result.scalar_one_or_none()
    return _to_detail(obj) if obj else None


async def create_teacher(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: TeacherCreate,
) -> TeacherResponse:
    obj = Teacher(**payload.model_dump())
    policies.enforce(Teacher, current_user, obj, policies.INSERT)
    if not await profile_service.get_profile_for_reference(db, payload.user_id):
        raise ServiceError("User profile not found", status.HTTP_400_BAD_REQUEST)
    try:
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Employee ID already exists", status.HTTP_409_CONFLICT)
    logger.info("teacher_created", employee_id=obj.employee_id, id=str(obj.id))
    return _to_response(obj)


async def update_teacher(
    db: AsyncSession,
    current_user: CurrentUser,
    teacher_id: UUID,
    payload: TeacherUpdate,
) -> Optional[TeacherResponse]:
    obj = await _get_visible(db, current_user, teacher_id, policies.UPDATE)
    if not obj:
        return None
    changes = payload.model_dump(exclude_unset=True)
    for field, value in changes.items():
        if value is None and field not in _NULLABLE_FIELDS:
            continue
        setattr(obj, field, value)
    policies.enforce(Teacher, current_user, obj, policies.UPDATE)
    try:
        await db.commit()
        await db.refresh(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Employee ID already exists", status.HTTP_409_CONFLICT)
    logger.info("teacher_updated", id=str(teacher_id), fields=sorted(changes))
    return _to_response(obj)


async def delete_teacher(db: AsyncSession, current_user: CurrentUser, teacher_id: UUID) -> bool:
    """Delete a teacher; their subject assignments go with them."""
    obj = await _get_visible(db, current_user, teacher_id, policies.DELETE)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    logger.info("teacher_deleted", id=str(teacher_id))
    return True


async def get_teacher_for_reference(db: AsyncSession, teacher_id: UUID) -> Optional[Teacher]:
    return await db.get(Teacher, teacher_id)
