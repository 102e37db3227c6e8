import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, String, Text, JSON, Uuid
from sqlalchemy.orm import relationship

from schoolerp.core.enums import Gender, UserRole
from schoolerp.db.session import Base, pg_enum


class AuthUser(Base):
    """Authentication identity. A UserProfile with the same id is created on insert."""

    __tablename__ = "auth_users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    # Caller-supplied at sign-up (full_name, role, ...)
    raw_user_meta_data = Column(JSON, nullable=False, default=dict)
    # Only writable by admins / seed scripts
    raw_app_meta_data = Column(JSON, nullable=False, default=dict)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    profile = relationship(
        "UserProfile", back_populates="auth_user", uselist=False, cascade="all, delete-orphan"
    )
    refresh_tokens = relationship(
        "RefreshToken", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def is_admin(self) -> bool:
        user_meta = self.raw_user_meta_data or {}
        app_meta = self.raw_app_meta_data or {}
        return user_meta.get("role") == UserRole.admin.value or app_meta.get("role") == UserRole.admin.value


class RefreshToken(Base):
    """Stored refresh tokens for identities. Revoked on sign-out and on rotation."""

    __tablename__ = "refresh_tokens"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("auth_users.id", ondelete="CASCADE"), nullable=False, index=True)
    token = Column(String(512), nullable=False, unique=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    user = relationship("AuthUser", back_populates="refresh_tokens")


class UserProfile(Base):
    """Public profile keyed to an identity. Students and teachers hang off it."""

    __tablename__ = "user_profiles"

    id = Column(Uuid, ForeignKey("auth_users.id", ondelete="CASCADE"), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    role = Column(pg_enum(UserRole, "user_role"), nullable=False, default=UserRole.student, index=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    gender = Column(pg_enum(Gender, "gender"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    auth_user = relationship("AuthUser", back_populates="profile")
    students = relationship("Student", back_populates="profile", cascade="all, delete-orphan")
    teachers = relationship("Teacher", back_populates="profile", cascade="all, delete-orphan")
