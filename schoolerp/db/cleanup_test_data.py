"""
Remove the demo data created by seed_school_data.

  python -m schoolerp.db.cleanup_test_data
"""
import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.core.logging import configure_logging, get_logger
from schoolerp.core.models import AuthUser, SchoolClass, Subject
from schoolerp.db.seed_school_data import DEMO_ACADEMIC_YEAR
from schoolerp.db.session import AsyncSessionLocal

logger = get_logger(__name__)

DEMO_EMAIL_DOMAIN = "@schoolerp.com"
DEMO_SUBJECT_CODES = ("MATH", "ENG", "SCI")


async def cleanup_school_test_data(db: AsyncSession) -> None:
    # ORM deletes so profile/student/teacher/assignment cascades run
    users = (await db.execute(select(AuthUser).where(AuthUser.email.like(f"%{DEMO_EMAIL_DOMAIN}")))).scalars().all()
    for user in users:
        await db.delete(user)

    classes = (await db.execute(select(SchoolClass).where(SchoolClass.academic_year == DEMO_ACADEMIC_YEAR))).scalars().all()
    for school_class in classes:
        await db.delete(school_class)

    subjects = (await db.execute(select(Subject).where(Subject.code.in_(DEMO_SUBJECT_CODES)))).scalars().all()
    for subject in subjects:
        await db.delete(subject)

    await db.commit()
    logger.info("cleanup_completed", users=len(users), classes=len(classes), subjects=len(subjects))


async def main() -> None:
    configure_logging()
    async with AsyncSessionLocal() as session:
        await cleanup_school_test_data(session)


if __name__ == "__main__":
    asyncio.run(main())
