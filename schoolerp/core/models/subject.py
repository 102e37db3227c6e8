"""Curriculum subjects (e.g. Mathematics / MATH)."""

import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text, Uuid
from sqlalchemy.orm import relationship

from schoolerp.db.session import Base


class Subject(Base):
    __tablename__ = "subjects"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, unique=True)
    code = Column(String(50), nullable=True, unique=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    teacher_subjects = relationship(
        "TeacherSubject", back_populates="subject", cascade="all, delete-orphan"
    )
