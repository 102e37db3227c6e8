from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolerp.core.enums import Gender, UserRole


class ProfileUpdate(BaseModel):
    """Fields a user may change on their own profile. Role is admin-only."""

    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None


class AdminProfileUpdate(ProfileUpdate):
    role: Optional[UserRole] = None


class ProfileResponse(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: UserRole
    phone: Optional[str] = None
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileSummary(BaseModel):
    """Embedded in student/teacher listings."""

    full_name: str
    email: str
    phone: Optional[str] = None
    gender: Optional[Gender] = None
    date_of_birth: Optional[date] = None

    class Config:
        from_attributes = True
