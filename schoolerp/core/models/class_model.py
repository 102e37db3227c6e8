"""School classes (e.g. 10-A). Model named SchoolClass to avoid Python 'class' keyword."""
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Uuid
from sqlalchemy.orm import relationship

from schoolerp.core.enums import ClassLevel
from schoolerp.db.session import Base, pg_enum


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(50), nullable=False)  # e.g. "10-A", "Grade 5-B"
    level = Column(pg_enum(ClassLevel, "class_level"), nullable=False, index=True)
    section = Column(String(10), nullable=False)
    capacity = Column(Integer, nullable=True, default=30)
    academic_year = Column(String(20), nullable=False)  # e.g. "2024-2025"
    room_number = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    # No delete cascade: deleting a class detaches its students (class_id -> NULL)
    students = relationship("Student", back_populates="school_class")
    teacher_subjects = relationship(
        "TeacherSubject", back_populates="school_class", cascade="all, delete-orphan"
    )
