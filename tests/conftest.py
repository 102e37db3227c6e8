import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["LOG_LEVEL"] = "WARNING"

from typing import AsyncGenerator, Awaitable, Callable, Dict

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from schoolerp.auth.security import hash_password
from schoolerp.core.file_store import LocalFileStore, get_file_store
from schoolerp.core.models import AuthUser
from schoolerp.db.seed_school_data import ensure_storage_buckets
from schoolerp.db.session import Base, get_db
from schoolerp.main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "secret123"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test, shared by every connection of the test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture()
async def db_session(session_factory: async_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture()
def file_store(tmp_path) -> LocalFileStore:
    return LocalFileStore(str(tmp_path / "storage"))


@pytest.fixture()
async def client(session_factory: async_sessionmaker, file_store: LocalFileStore) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app; one session per request."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_file_store] = lambda: file_store
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
async def buckets(db_session: AsyncSession) -> None:
    await ensure_storage_buckets(db_session)
    await db_session.commit()


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def make_user(client: AsyncClient) -> Callable[..., Awaitable[dict]]:
    """Sign up a user through the API. Returns id, headers and the raw session."""

    async def _make(email: str, **user_data) -> dict:
        resp = await client.post(
            "/api/v1/auth/signup",
            json={"email": email, "password": TEST_PASSWORD, "user_data": user_data},
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {
            "id": body["user"]["id"],
            "headers": bearer(body["session"]["access_token"]),
            "session": body["session"],
        }

    return _make


@pytest.fixture()
async def admin(client: AsyncClient, session_factory: async_sessionmaker) -> dict:
    """Admin identity inserted directly (sign-up cannot grant admin), then signed in."""
    async with session_factory() as session:
        session.add(
            AuthUser(
                email="admin@example.com",
                password_hash=hash_password(TEST_PASSWORD),
                raw_user_meta_data={"full_name": "Ada Admin", "role": "admin"},
                raw_app_meta_data={"provider": "email", "providers": ["email"]},
            )
        )
        await session.commit()

    resp = await client.post(
        "/api/v1/auth/signin",
        json={"email": "admin@example.com", "password": TEST_PASSWORD},
    )
    assert resp.status_code == 200, resp.text
    body = resp.json()
    return {"id": body["user"]["id"], "headers": bearer(body["access_token"])}
