import uuid
from datetime import datetime

from sqlalchemy import Column, Date, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from schoolerp.core.enums import EnrollmentStatus
from schoolerp.db.session import Base, pg_enum


class Student(Base):
    """Enrollment record for a user profile. Removed together with the profile."""

    __tablename__ = "students"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user_profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(String(50), nullable=False, unique=True, index=True)
    class_id = Column(Uuid, ForeignKey("classes.id", ondelete="SET NULL"), nullable=True, index=True)
    enrollment_status = Column(
        pg_enum(EnrollmentStatus, "enrollment_status"), nullable=False, default=EnrollmentStatus.active
    )
    admission_date = Column(Date, nullable=False)
    parent_name = Column(String(255), nullable=True)
    parent_phone = Column(String(50), nullable=True)
    parent_email = Column(String(255), nullable=True)
    emergency_contact = Column(String(255), nullable=True)
    medical_notes = Column(Text, nullable=True)
    photo_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    profile = relationship("UserProfile", back_populates="students")
    school_class = relationship("SchoolClass", back_populates="students")
