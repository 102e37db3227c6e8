import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from schoolerp.core.models import AuthUser, SchoolClass, StorageBucket, Student, Subject, Teacher, TeacherSubject, UserProfile
from schoolerp.db.cleanup_test_data import cleanup_school_test_data
from schoolerp.db.seed_school_data import seed_school_data


async def _count(session: AsyncSession, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.mark.asyncio
async def test_seed_creates_demo_school(client: AsyncClient, session_factory: async_sessionmaker) -> None:
    async with session_factory() as session:
        assert await seed_school_data(session) is True

    async with session_factory() as session:
        assert await _count(session, AuthUser) == 6
        assert await _count(session, UserProfile) == 6
        assert await _count(session, SchoolClass) == 2
        assert await _count(session, Subject) == 3
        assert await _count(session, Teacher) == 2
        assert await _count(session, Student) == 3
        assert await _count(session, TeacherSubject) == 4
        assert await _count(session, StorageBucket) == 3

        admin_profile = (
            await session.execute(select(UserProfile).where(UserProfile.email == "admin@schoolerp.com"))
        ).scalar_one()
        assert admin_profile.full_name == "John Anderson"
        assert admin_profile.role.value == "admin"

    signin = await client.post(
        "/api/v1/auth/signin", json={"email": "admin@schoolerp.com", "password": "admin123"}
    )
    assert signin.status_code == 200
    headers = {"Authorization": f"Bearer {signin.json()['access_token']}"}

    classes = await client.get("/api/v1/classes", headers=headers)
    assert [c["name"] for c in classes.json()] == ["9-B", "10-A"]

    teachers = await client.get("/api/v1/teachers", headers=headers)
    assert {t["employee_id"]: len(t["teacher_subjects"]) for t in teachers.json()} == {"T001": 2, "T002": 2}


@pytest.mark.asyncio
async def test_seed_is_skipped_when_present(session_factory: async_sessionmaker) -> None:
    async with session_factory() as session:
        assert await seed_school_data(session) is True
    async with session_factory() as session:
        assert await seed_school_data(session) is False
    async with session_factory() as session:
        assert await _count(session, AuthUser) == 6


@pytest.mark.asyncio
async def test_cleanup_removes_demo_data(session_factory: async_sessionmaker) -> None:
    async with session_factory() as session:
        await seed_school_data(session)
    async with session_factory() as session:
        await cleanup_school_test_data(session)

    async with session_factory() as session:
        for model in (AuthUser, UserProfile, SchoolClass, Subject, Teacher, Student, TeacherSubject):
            assert await _count(session, model) == 0
        # Buckets are part of the schema, not demo data
        assert await _count(session, StorageBucket) == 3
