from schoolerp.auth.models import AuthUser, RefreshToken, UserProfile
from schoolerp.core.models.class_model import SchoolClass
from schoolerp.core.models.storage import StorageBucket, StorageObject
from schoolerp.core.models.student import Student
from schoolerp.core.models.subject import Subject
from schoolerp.core.models.teacher import Teacher
from schoolerp.core.models.teacher_subject import TeacherSubject

# Registers the identity -> profile hook
from schoolerp.auth import triggers  # noqa: E402,F401

__all__ = [
    "AuthUser",
    "RefreshToken",
    "SchoolClass",
    "StorageBucket",
    "StorageObject",
    "Student",
    "Subject",
    "Teacher",
    "TeacherSubject",
    "UserProfile",
]
