"""File buckets and the objects stored in them. Bytes live on disk; rows hold metadata."""

import uuid
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Column, DateTime, ForeignKey, JSON, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from schoolerp.db.session import Base


class StorageBucket(Base):
    __tablename__ = "storage_buckets"

    id = Column(String(100), primary_key=True)
    name = Column(String(100), nullable=False, unique=True)
    public = Column(Boolean, nullable=False, default=False)
    file_size_limit = Column(BigInteger, nullable=True)  # bytes; None = unlimited
    allowed_mime_types = Column(JSON, nullable=True)  # None = any type
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    objects = relationship("StorageObject", back_populates="bucket", cascade="all, delete-orphan")


class StorageObject(Base):
    __tablename__ = "storage_objects"
    __table_args__ = (
        UniqueConstraint("bucket_id", "name", name="uq_storage_object_bucket_name"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    bucket_id = Column(String(100), ForeignKey("storage_buckets.id"), nullable=False)
    name = Column(String(1024), nullable=False)  # path inside the bucket
    # Uploader; kept when the identity is removed so admins still see the file
    owner = Column(Uuid, ForeignKey("auth_users.id", ondelete="SET NULL"), nullable=True)
    size = Column(BigInteger, nullable=False, default=0)
    mime_type = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    bucket = relationship("StorageBucket", back_populates="objects")
