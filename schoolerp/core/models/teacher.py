import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from schoolerp.core.enums import EmploymentStatus
from schoolerp.db.session import Base, pg_enum


class Teacher(Base):
    """Employment record for a user profile. Removed together with the profile."""

    __tablename__ = "teachers"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id = Column(String(50), nullable=False, unique=True, index=True)
    employment_status = Column(
        pg_enum(EmploymentStatus, "employment_status"), nullable=False, default=EmploymentStatus.active
    )
    hire_date = Column(Date, nullable=False)
    department = Column(String(100), nullable=True)
    qualification = Column(String(255), nullable=True)
    experience_years = Column(Integer, nullable=True, default=0)
    salary = Column(Numeric(10, 2), nullable=True)
    emergency_contact = Column(String(255), nullable=True)
    photo_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    profile = relationship("UserProfile", back_populates="teachers")
    teacher_subjects = relationship(
        "TeacherSubject", back_populates="teacher", cascade="all, delete-orphan"
    )
