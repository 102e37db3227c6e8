from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.auth import policies
from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.exceptions import ServiceError
from schoolerp.core.logging import get_logger
from schoolerp.core.models import Subject

from .schemas import SubjectCreate, SubjectResponse, SubjectUpdate

logger = get_logger(__name__)


def _to_response(s: Subject) -> SubjectResponse:
    return SubjectResponse.model_validate(s)


def _normalize_code(code: Optional[str]) -> Optional[str]:
    if code is None or not code.strip():
        return None
    return code.strip().upper()


async def _get_visible(
    db: AsyncSession, current_user: CurrentUser, subject_id: UUID, command: str
) -> Optional[Subject]:
    stmt = select(Subject).where(Subject.id == subject_id)
    result = await db.execute(policies.scoped(stmt, Subject, current_user, command))
    return result.scalar_one_or_none()


async def create_subject(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: SubjectCreate,
) -> SubjectResponse:
    obj = Subject(
        name=payload.name.strip(),
        code=_normalize_code(payload.code),
        description=payload.description,
    )
    policies.enforce(Subject, current_user, obj, policies.INSERT)
    try:
        db.add(obj)
        await db.commit()
        await db.refresh(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Subject name or code already exists", status.HTTP_409_CONFLICT)
    logger.info("subject_created", subject_id=str(obj.id), code=obj.code)
    return _to_response(obj)


async def list_subjects(db: AsyncSession, current_user: CurrentUser) -> List[SubjectResponse]:
    stmt = policies.scoped(select(Subject), Subject, current_user).order_by(Subject.name)
    result = await db.execute(stmt)
    return [_to_response(s) for s in result.scalars().all()]


async def get_subject(
    db: AsyncSession, current_user: CurrentUser, subject_id: UUID
) -> Optional[SubjectResponse]:
    obj = await _get_visible(db, current_user, subject_id, policies.SELECT)
    return _to_response(obj) if obj else None


async def update_subject(
    db: AsyncSession,
    current_user: CurrentUser,
    subject_id: UUID,
    payload: SubjectUpdate,
) -> Optional[SubjectResponse]:
    obj = await _get_visible(db, current_user, subject_id, policies.UPDATE)
    if not obj:
        return None
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        obj.name = changes["name"].strip()
    if "code" in changes:
        obj.code = _normalize_code(changes["code"])
    if "description" in changes:
        obj.description = changes["description"]
    policies.enforce(Subject, current_user, obj, policies.UPDATE)
    try:
        await db.commit()
        await db.refresh(obj)
    except IntegrityError:
        await db.rollback()
        raise ServiceError("Subject name or code already exists", status.HTTP_409_CONFLICT)
    return _to_response(obj)


async def delete_subject(db: AsyncSession, current_user: CurrentUser, subject_id: UUID) -> bool:
    obj = await _get_visible(db, current_user, subject_id, policies.DELETE)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    logger.info("subject_deleted", subject_id=str(subject_id))
    return True
