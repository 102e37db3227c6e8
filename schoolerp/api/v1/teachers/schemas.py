from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolerp.api.v1.profiles.schemas import ProfileSummary
from schoolerp.api.v1.teacher_subjects.schemas import TeacherSubjectSummary
from schoolerp.core.enums import EmploymentStatus


class TeacherCreate(BaseModel):
    user_id: UUID = Field(..., description="user_profiles.id of the teacher")
    employee_id: str = Field(..., min_length=1, max_length=50, description="e.g. T001")
    employment_status: EmploymentStatus = EmploymentStatus.active
    hire_date: date
    department: Optional[str] = Field(None, max_length=100)
    qualification: Optional[str] = Field(None, max_length=255)
    experience_years: Optional[int] = Field(0, ge=0)
    salary: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    emergency_contact: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = None


class TeacherUpdate(BaseModel):
    employee_id: Optional[str] = Field(None, min_length=1, max_length=50)
    employment_status: Optional[EmploymentStatus] = None
    hire_date: Optional[date] = None
    department: Optional[str] = Field(None, max_length=100)
    qualification: Optional[str] = Field(None, max_length=255)
    experience_years: Optional[int] = Field(None, ge=0)
    salary: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    emergency_contact: Optional[str] = Field(None, max_length=255)
    photo_url: Optional[str] = None


class TeacherResponse(BaseModel):
    id: UUID
    user_id: UUID
    employee_id: str
    employment_status: EmploymentStatus
    hire_date: date
    department: Optional[str] = None
    qualification: Optional[str] = None
    experience_years: Optional[int] = None
    salary: Optional[Decimal] = None
    emergency_contact: Optional[str] = None
    photo_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TeacherDetailResponse(TeacherResponse):
    """Teacher row with profile summary and the subjects/classes they are assigned."""

    user_profile: Optional[ProfileSummary] = None
    teacher_subjects: List[TeacherSubjectSummary] = Field(default_factory=list)
