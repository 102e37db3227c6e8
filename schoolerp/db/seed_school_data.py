"""
Seed demo data for development.

Run after schema_check:
  python -m schoolerp.db.seed_school_data

Creates:
- default storage buckets (if missing)
- six identities (admin, two teachers, three students); profiles follow from the identity hook
- classes 10-A and 9-B for 2024-2025
- subjects MATH, ENG, SCI
- teachers T001/T002, students S001-S003 and four teacher-subject assignments

Skipped entirely when the demo admin already exists.
"""
import asyncio
from datetime import date
from typing import Dict

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.auth.security import hash_password
from schoolerp.core.enums import ClassLevel
from schoolerp.core.logging import configure_logging, get_logger
from schoolerp.core.models import (
    AuthUser,
    SchoolClass,
    StorageBucket,
    Student,
    Subject,
    Teacher,
    TeacherSubject,
)
from schoolerp.db.schema_check import DEFAULT_BUCKETS
from schoolerp.db.session import AsyncSessionLocal

logger = get_logger(__name__)

DEMO_ACADEMIC_YEAR = "2024-2025"
DEMO_ADMIN_EMAIL = "admin@schoolerp.com"

# key -> (email, password, full_name, role)
DEMO_USERS = {
    "admin": (DEMO_ADMIN_EMAIL, "admin123", "John Anderson", "admin"),
    "teacher1": ("teacher1@schoolerp.com", "teacher123", "Sarah Wilson", "teacher"),
    "teacher2": ("teacher2@schoolerp.com", "teacher123", "Michael Brown", "teacher"),
    "student1": ("student1@schoolerp.com", "student123", "Emma Johnson", "student"),
    "student2": ("student2@schoolerp.com", "student123", "David Martinez", "student"),
    "student3": ("student3@schoolerp.com", "student123", "Sophia Davis", "student"),
}


async def ensure_storage_buckets(db: AsyncSession) -> None:
    """Create the default buckets that do not exist yet. Caller commits."""
    for bucket_id, name, public, size_limit, mime_types in DEFAULT_BUCKETS:
        if await db.get(StorageBucket, bucket_id) is None:
            db.add(
                StorageBucket(
                    id=bucket_id,
                    name=name,
                    public=public,
                    file_size_limit=size_limit,
                    allowed_mime_types=list(mime_types),
                )
            )
    await db.flush()


async def seed_school_data(db: AsyncSession) -> bool:
    """Insert the demo data set. Returns False when it was already present."""
    await ensure_storage_buckets(db)

    existing = await db.execute(select(AuthUser.id).where(AuthUser.email == DEMO_ADMIN_EMAIL))
    if existing.scalar_one_or_none() is not None:
        await db.commit()
        logger.info("seed_skipped", reason="demo admin already exists")
        return False

    users: Dict[str, AuthUser] = {}
    for key, (email, password, full_name, role) in DEMO_USERS.items():
        user = AuthUser(
            email=email,
            password_hash=hash_password(password),
            raw_user_meta_data={"full_name": full_name, "role": role},
            raw_app_meta_data={"provider": "email", "providers": ["email"]},
        )
        db.add(user)
        users[key] = user
    # Flush identities first so the hook has created their profiles
    await db.flush()

    class_10a = SchoolClass(
        name="10-A", level=ClassLevel.grade_10, section="A",
        academic_year=DEMO_ACADEMIC_YEAR, room_number="101",
    )
    class_9b = SchoolClass(
        name="9-B", level=ClassLevel.grade_9, section="B",
        academic_year=DEMO_ACADEMIC_YEAR, room_number="102",
    )
    math = Subject(name="Mathematics", code="MATH")
    english = Subject(name="English Literature", code="ENG")
    science = Subject(name="Physical Science", code="SCI")
    db.add_all([class_10a, class_9b, math, english, science])

    teacher1 = Teacher(
        user_id=users["teacher1"].id, employee_id="T001", hire_date=date(2020, 8, 15),
        department="Mathematics", qualification="M.Sc Mathematics", experience_years=5,
    )
    teacher2 = Teacher(
        user_id=users["teacher2"].id, employee_id="T002", hire_date=date(2019, 7, 20),
        department="English", qualification="M.A English Literature", experience_years=8,
    )
    db.add_all([teacher1, teacher2])
    await db.flush()

    db.add_all(
        [
            Student(
                user_id=users["student1"].id, student_id="S001", class_id=class_10a.id,
                admission_date=date(2024, 4, 1), parent_name="Robert Johnson",
                parent_phone="+1234567890", parent_email="robert.johnson@email.com",
            ),
            Student(
                user_id=users["student2"].id, student_id="S002", class_id=class_9b.id,
                admission_date=date(2024, 4, 1), parent_name="Maria Martinez",
                parent_phone="+1234567891", parent_email="maria.martinez@email.com",
            ),
            Student(
                user_id=users["student3"].id, student_id="S003", class_id=class_10a.id,
                admission_date=date(2024, 4, 1), parent_name="James Davis",
                parent_phone="+1234567892", parent_email="james.davis@email.com",
            ),
        ]
    )
    db.add_all(
        [
            TeacherSubject(teacher_id=teacher1.id, subject_id=math.id, class_id=class_10a.id, academic_year=DEMO_ACADEMIC_YEAR),
            TeacherSubject(teacher_id=teacher1.id, subject_id=math.id, class_id=class_9b.id, academic_year=DEMO_ACADEMIC_YEAR),
            TeacherSubject(teacher_id=teacher2.id, subject_id=english.id, class_id=class_10a.id, academic_year=DEMO_ACADEMIC_YEAR),
            TeacherSubject(teacher_id=teacher2.id, subject_id=english.id, class_id=class_9b.id, academic_year=DEMO_ACADEMIC_YEAR),
        ]
    )
    await db.commit()
    logger.info("seed_completed", users=len(users), classes=2, subjects=3, assignments=4)
    return True


async def main() -> None:
    configure_logging()
    async with AsyncSessionLocal() as session:
        await seed_school_data(session)


if __name__ == "__main__":
    asyncio.run(main())
