from typing import Optional, Tuple
from urllib.parse import quote

from fastapi import status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.auth import policies
from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.config import settings
from schoolerp.core.exceptions import PolicyViolation, ServiceError
from schoolerp.core.file_store import LocalFileStore
from schoolerp.core.logging import get_logger
from schoolerp.core.models import StorageBucket, StorageObject

from .schemas import StorageObjectResponse

logger = get_logger(__name__)


def _normalize_path(path: str) -> str:
    return path.strip("/")


async def _get_bucket(db: AsyncSession, bucket_id: str) -> StorageBucket:
    bucket = await db.get(StorageBucket, bucket_id)
    if not bucket:
        raise ServiceError("Bucket not found", status.HTTP_404_NOT_FOUND)
    return bucket


def _check_limits(bucket: StorageBucket, size: int, mime_type: Optional[str]) -> None:
    if bucket.file_size_limit is not None and size > bucket.file_size_limit:
        raise ServiceError(
            f"File exceeds the {bucket.file_size_limit} byte limit of bucket {bucket.id}",
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        )
    if bucket.allowed_mime_types and mime_type not in bucket.allowed_mime_types:
        raise ServiceError(
            f"Mime type {mime_type} is not supported",
            status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
        )


async def _find_object(
    db: AsyncSession, bucket_id: str, path: str, current_user: Optional[CurrentUser], command: str
) -> Optional[StorageObject]:
    stmt = select(StorageObject).where(StorageObject.bucket_id == bucket_id, StorageObject.name == path)
    if current_user is not None:
        stmt = policies.scoped(stmt, StorageObject, current_user, command)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def upload(
    db: AsyncSession,
    store: LocalFileStore,
    current_user: CurrentUser,
    bucket_id: str,
    path: str,
    content: bytes,
    mime_type: Optional[str],
    upsert: bool = True,
) -> StorageObjectResponse:
    """Store ``content`` at ``bucket_id/path``; replaces an existing object when ``upsert``."""
    path = _normalize_path(path)
    bucket = await _get_bucket(db, bucket_id)
    store.check_path(bucket_id, path)
    _check_limits(bucket, len(content), mime_type)

    existing = await _find_object(db, bucket_id, path, None, policies.SELECT)
    if existing is not None:
        if not upsert:
            raise ServiceError("The resource already exists", status.HTTP_409_CONFLICT)
        if not await _find_object(db, bucket_id, path, current_user, policies.UPDATE):
            raise PolicyViolation(StorageObject.__tablename__)
        existing.size = len(content)
        existing.mime_type = mime_type
        policies.enforce(StorageObject, current_user, existing, policies.UPDATE)
        obj = existing
    else:
        obj = StorageObject(
            bucket_id=bucket_id,
            name=path,
            owner=current_user.id,
            size=len(content),
            mime_type=mime_type,
        )
        policies.enforce(StorageObject, current_user, obj, policies.INSERT)
        db.add(obj)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ServiceError("The resource already exists", status.HTTP_409_CONFLICT)
    # Bytes land only once the metadata row is committed
    store.write(bucket_id, path, content)
    await db.refresh(obj)
    logger.info("object_uploaded", bucket=bucket_id, path=path, size=obj.size)
    return StorageObjectResponse.model_validate(obj)


async def download(
    db: AsyncSession,
    store: LocalFileStore,
    current_user: CurrentUser,
    bucket_id: str,
    path: str,
) -> Optional[Tuple[bytes, Optional[str]]]:
    path = _normalize_path(path)
    obj = await _find_object(db, bucket_id, path, current_user, policies.SELECT)
    if not obj:
        return None
    content = store.read(bucket_id, path)
    if content is None:
        return None
    return content, obj.mime_type


async def download_public(
    db: AsyncSession,
    store: LocalFileStore,
    bucket_id: str,
    path: str,
) -> Optional[Tuple[bytes, Optional[str]]]:
    """Serve an object without authentication; only objects in public buckets."""
    bucket = await db.get(StorageBucket, bucket_id)
    if not bucket or not bucket.public:
        return None
    path = _normalize_path(path)
    obj = await _find_object(db, bucket_id, path, None, policies.SELECT)
    if not obj:
        return None
    content = store.read(bucket_id, path)
    if content is None:
        return None
    return content, obj.mime_type


async def remove(
    db: AsyncSession,
    store: LocalFileStore,
    current_user: CurrentUser,
    bucket_id: str,
    path: str,
) -> bool:
    path = _normalize_path(path)
    obj = await _find_object(db, bucket_id, path, current_user, policies.DELETE)
    if not obj:
        return False
    await db.delete(obj)
    await db.commit()
    store.delete(bucket_id, path)
    logger.info("object_deleted", bucket=bucket_id, path=path)
    return True


def public_url(bucket_id: str, path: str) -> str:
    """URL of an object under the public route. No lookup is made."""
    base = settings.public_base_url.rstrip("/")
    return f"{base}/api/v1/storage/public/{quote(bucket_id)}/{quote(_normalize_path(path))}"
