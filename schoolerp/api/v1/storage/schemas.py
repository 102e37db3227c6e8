from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class StorageObjectResponse(BaseModel):
    id: UUID
    bucket_id: str
    name: str
    owner: Optional[UUID] = None
    size: int
    mime_type: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PublicUrlResponse(BaseModel):
    public_url: str
