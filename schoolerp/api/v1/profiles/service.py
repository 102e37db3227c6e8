from typing import List, Optional, Union
from uuid import UUID

from fastapi import status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.auth import policies
from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.exceptions import ServiceError
from schoolerp.core.logging import get_logger
from schoolerp.core.models import UserProfile

from .schemas import AdminProfileUpdate, ProfileResponse, ProfileUpdate

logger = get_logger(__name__)


def _to_response(p: UserProfile) -> ProfileResponse:
    return ProfileResponse.model_validate(p)


async def _get_visible(
    db: AsyncSession, current_user: CurrentUser, profile_id: UUID, command: str
) -> Optional[UserProfile]:
    stmt = select(UserProfile).where(UserProfile.id == profile_id)
    stmt = policies.scoped(stmt, UserProfile, current_user, command)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def list_profiles(db: AsyncSession, current_user: CurrentUser) -> List[ProfileResponse]:
    stmt = policies.scoped(select(UserProfile), UserProfile, current_user)
    stmt = stmt.order_by(UserProfile.full_name)
    result = await db.execute(stmt)
    return [_to_response(p) for p in result.scalars().all()]


async def get_profile(
    db: AsyncSession, current_user: CurrentUser, profile_id: UUID
) -> Optional[ProfileResponse]:
    obj = await _get_visible(db, current_user, profile_id, policies.SELECT)
    return _to_response(obj) if obj else None


async def update_profile(
    db: AsyncSession,
    current_user: CurrentUser,
    profile_id: UUID,
    payload: Union[ProfileUpdate, AdminProfileUpdate],
) -> Optional[ProfileResponse]:
    obj = await _get_visible(db, current_user, profile_id, policies.UPDATE)
    if not obj:
        return None
    changes = payload.model_dump(exclude_unset=True)
    if "role" in changes and not current_user.is_admin:
        raise ServiceError("Only administrators can change roles", status.HTTP_403_FORBIDDEN)
    for field, value in changes.items():
        if field in ("full_name", "role") and value is None:
            continue
        if field == "full_name":
            value = value.strip()
        setattr(obj, field, value)
    policies.enforce(UserProfile, current_user, obj, policies.UPDATE)
    await db.commit()
    await db.refresh(obj)
    logger.info("profile_updated", profile_id=str(profile_id), fields=sorted(changes))
    return _to_response(obj)


async def get_profile_for_reference(db: AsyncSession, profile_id: UUID) -> Optional[UserProfile]:
    """Unscoped lookup used to validate foreign references on admin writes."""
    return await db.get(UserProfile, profile_id)
