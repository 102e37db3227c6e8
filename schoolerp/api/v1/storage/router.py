from fastapi import APIRouter, Depends, File, HTTPException, Query, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.auth.dependencies import get_current_user
from schoolerp.auth.schemas import CurrentUser
from schoolerp.core.exceptions import ServiceError
from schoolerp.core.file_store import LocalFileStore, get_file_store
from schoolerp.db.session import get_db

from .schemas import PublicUrlResponse, StorageObjectResponse
from . import service

router = APIRouter(prefix="/api/v1/storage", tags=["storage"])


@router.post(
    "/object/{bucket_id}/{path:path}",
    response_model=StorageObjectResponse,
    status_code=status.HTTP_200_OK,
)
async def upload_object(
    bucket_id: str,
    path: str,
    file: UploadFile = File(..., description="File contents; its content type is checked against the bucket"),
    upsert: bool = Query(True, description="Replace an existing object at the same path"),
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> StorageObjectResponse:
    content = await file.read()
    try:
        return await service.upload(
            db, store, current_user, bucket_id, path, content, file.content_type, upsert=upsert
        )
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/object/{bucket_id}/{path:path}")
async def download_object(
    bucket_id: str,
    path: str,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> Response:
    try:
        found = await service.download(db, store, current_user, bucket_id, path)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    content, mime_type = found
    return Response(content=content, media_type=mime_type or "application/octet-stream")


@router.delete("/object/{bucket_id}/{path:path}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_object(
    bucket_id: str,
    path: str,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        deleted = await service.remove(db, store, current_user, bucket_id, path)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")


@router.get("/public-url/{bucket_id}/{path:path}", response_model=PublicUrlResponse)
async def get_public_url(bucket_id: str, path: str) -> PublicUrlResponse:
    return PublicUrlResponse(public_url=service.public_url(bucket_id, path))


@router.get("/public/{bucket_id}/{path:path}")
async def download_public_object(
    bucket_id: str,
    path: str,
    db: AsyncSession = Depends(get_db),
    store: LocalFileStore = Depends(get_file_store),
) -> Response:
    try:
        found = await service.download_public(db, store, bucket_id, path)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if not found:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Object not found")
    content, mime_type = found
    return Response(content=content, media_type=mime_type or "application/octet-stream")
