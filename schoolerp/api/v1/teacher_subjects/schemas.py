from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolerp.api.v1.classes.schemas import ClassSummary
from schoolerp.api.v1.subjects.schemas import SubjectSummary


class TeacherSubjectCreate(BaseModel):
    teacher_id: UUID
    subject_id: UUID
    class_id: UUID
    academic_year: str = Field(..., min_length=1, max_length=20, description="e.g. 2024-2025")


class TeacherSubjectResponse(BaseModel):
    id: UUID
    teacher_id: UUID
    subject_id: UUID
    class_id: UUID
    academic_year: str
    created_at: datetime

    class Config:
        from_attributes = True


class TeacherSubjectSummary(BaseModel):
    """Assignment nested under its teacher."""

    id: UUID
    academic_year: str
    subject: Optional[SubjectSummary] = None
    school_class: Optional[ClassSummary] = None

    class Config:
        from_attributes = True
