from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from schoolerp.api.v1.classes.schemas import ClassSummary
from schoolerp.api.v1.profiles.schemas import ProfileSummary
from schoolerp.core.enums import EnrollmentStatus


class StudentCreate(BaseModel):
    user_id: UUID = Field(..., description="user_profiles.id of the student")
    student_id: str = Field(..., min_length=1, max_length=50, description="School-issued number, e.g. S001")
    class_id: Optional[UUID] = None
    enrollment_status: EnrollmentStatus = EnrollmentStatus.active
    admission_date: date
    parent_name: Optional[str] = Field(None, max_length=255)
    parent_phone: Optional[str] = Field(None, max_length=50)
    parent_email: Optional[EmailStr] = None
    emergency_contact: Optional[str] = Field(None, max_length=255)
    medical_notes: Optional[str] = None
    photo_url: Optional[str] = None


class StudentUpdate(BaseModel):
    student_id: Optional[str] = Field(None, min_length=1, max_length=50)
    class_id: Optional[UUID] = None
    enrollment_status: Optional[EnrollmentStatus] = None
    admission_date: Optional[date] = None
    parent_name: Optional[str] = Field(None, max_length=255)
    parent_phone: Optional[str] = Field(None, max_length=50)
    parent_email: Optional[EmailStr] = None
    emergency_contact: Optional[str] = Field(None, max_length=255)
    medical_notes: Optional[str] = None
    photo_url: Optional[str] = None


class StudentResponse(BaseModel):
    id: UUID
    user_id: UUID
    student_id: str
    class_id: Optional[UUID] = None
    enrollment_status: EnrollmentStatus
    admission_date: date
    parent_name: Optional[str] = None
    parent_phone: Optional[str] = None
    parent_email: Optional[str] = None
    emergency_contact: Optional[str] = None
    medical_notes: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class StudentDetailResponse(StudentResponse):
    """Student row with the profile and class summaries used by listing screens."""

    user_profile: Optional[ProfileSummary] = None
    school_class: Optional[ClassSummary] = None
