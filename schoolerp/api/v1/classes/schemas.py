from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from schoolerp.core.enums import ClassLevel


class ClassCreate(BaseModel):
    name: str = Field(..., max_length=50)
    level: ClassLevel
    section: str = Field(..., max_length=10)
    capacity: Optional[int] = Field(30, ge=0)
    academic_year: str = Field(..., max_length=20, description="e.g. 2024-2025")
    room_number: Optional[str] = Field(None, max_length=20)


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=50)
    level: Optional[ClassLevel] = None
    section: Optional[str] = Field(None, max_length=10)
    capacity: Optional[int] = Field(None, ge=0)
    academic_year: Optional[str] = Field(None, max_length=20)
    room_number: Optional[str] = Field(None, max_length=20)


class ClassResponse(BaseModel):
    id: UUID
    name: str
    level: ClassLevel
    section: str
    capacity: Optional[int] = None
    academic_year: str
    room_number: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ClassSummary(BaseModel):
    """Embedded in student listings."""

    name: str
    level: ClassLevel
    section: str
    room_number: Optional[str] = None

    class Config:
        from_attributes = True
