from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.auth import policies
from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.enums import CLASS_LEVEL_ORDER
from schoolerp.core.logging import get_logger
from schoolerp.core.models import SchoolClass

from .schemas import ClassCreate, ClassResponse, ClassUpdate

logger = get_logger(__name__)


def _class_to_response(c: SchoolClass) -> ClassResponse:
    return ClassResponse.model_validate(c)


def _level_sort_key(c: SchoolClass):
    # Enum declaration order, not string order (grade_2 before grade_10)
    return (CLASS_LEVEL_ORDER[c.level], c.section, c.name)


async def _get_visible(
    db: AsyncSession, current_user: CurrentUser, class_id: UUID, command: str
) -> Optional[SchoolClass]:
    stmt = select(SchoolClass).where(SchoolClass.id == class_id)
    result = await db.execute(policies.scoped(stmt, SchoolClass, current_user, command))
    return result.scalar_one_or_none()


async def create_class(
    db: AsyncSession,
    current_user: CurrentUser,
    payload: ClassCreate,
) -> ClassResponse:
    obj = SchoolClass(
        name=payload.name.strip(),
        level=payload.level,
        section=payload.section.strip(),
        capacity=payload.capacity,
        academic_year=payload.academic_year.strip(),
        room_number=payload.room_number,
    )
    policies.enforce(SchoolClass, current_user, obj, policies.INSERT)
    db.add(obj)
    await db.commit()
    await db.refresh(obj)
    logger.info("class_created", class_id=str(obj.id), name=obj.name)
    return _class_to_response(obj)


async def list_classes(
    db: AsyncSession,
    current_user: CurrentUser,
    academic_year: Optional[str] = None,
) -> List[ClassResponse]:
    stmt = policies.scoped(select(SchoolClass), SchoolClass, current_user)
    if academic_year is not None:
        stmt = stmt.where(SchoolClass.academic_year == academic_year)
    result = await db.execute(stmt)
    rows = sorted(result.scalars().all(), key=_level_sort_key)
    return [_class_to_response(c) for c in rows]


async def get_class(
    db: AsyncSession,
    current_user: CurrentUser,
    class_id: UUID,
) -> Optional[ClassResponse]:
    obj = await _get_visible(db, current_user, class_id, policies.SELECT)
    return _class_to_response(obj) if obj else None


async def update_class(
    db: AsyncSession,
    current_user: CurrentUser,
    class_id: UUID,
    payload: ClassUpdate,
) -> Optional[ClassResponse]:
    obj = await _get_visible(db, current_user, class_id, policies.UPDATE)
    if not obj:
        return None
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is None and field != "room_number":
            continue
        setattr(obj, field, value.strip() if isinstance(value, str) else value)
    policies.enforce(SchoolClass, current_user, obj, policies.UPDATE)
    await db.commit()
    await db.refresh(obj)
    return _class_to_response(obj)


async def delete_class(
    db: AsyncSession,
    current_user: CurrentUser,
    class_id: UUID,
) -> bool:
    """Delete a class. Its students stay, detached; its subject assignments go."""
    obj = await _get_visible(db, current_user, class_id, policies.DELETE)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    logger.info("class_deleted", class_id=str(class_id))
    return True


async def get_class_for_reference(db: AsyncSession, class_id: UUID) -> Optional[SchoolClass]:
    return await db.get(SchoolClass, class_id)
