from datetime import datetime, timedelta, timezone
from uuid import UUID

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.core.models import AuthUser, RefreshToken, Student, UserProfile


@pytest.mark.asyncio
async def test_signup_creates_identity_profile_and_session(client: AsyncClient, db_session: AsyncSession) -> None:
    response = await client.post(
        "/api/v1/auth/signup",
        json={
            "email": "jane.doe@example.com",
            "password": "secret123",
            "user_data": {"full_name": "Jane Doe", "role": "teacher"},
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["user"]["email"] == "jane.doe@example.com"
    assert data["user"]["user_metadata"] == {"full_name": "Jane Doe", "role": "teacher"}
    assert data["session"]["token_type"] == "bearer"
    assert data["session"]["expires_in"] == 3600
    assert data["session"]["refresh_token"]

    user_id = UUID(data["user"]["id"])
    profile = (
        await db_session.execute(select(UserProfile).where(UserProfile.id == user_id))
    ).scalar_one_or_none()
    assert profile is not None
    assert profile.email == "jane.doe@example.com"
    assert profile.full_name == "Jane Doe"
    assert profile.role.value == "teacher"


@pytest.mark.asyncio
async def test_signup_profile_defaults(client: AsyncClient, make_user) -> None:
    user = await make_user("sam.lee@example.com")

    response = await client.get("/api/v1/profiles/me", headers=user["headers"])
    assert response.status_code == 200
    profile = response.json()
    assert profile["id"] == user["id"]
    assert profile["full_name"] == "sam.lee"
    assert profile["role"] == "student"


@pytest.mark.asyncio
async def test_signup_cannot_claim_admin_role(client: AsyncClient, db_session: AsyncSession) -> None:
    response = await client.post(
        "/api/v1/auth/signup",
        json={"email": "eve@example.com", "password": "secret123", "user_data": {"role": "admin"}},
    )
    assert response.status_code == 403

    count = (await db_session.execute(select(AuthUser).where(AuthUser.email == "eve@example.com"))).all()
    assert count == []


@pytest.mark.asyncio
async def test_signup_rejects_unknown_role(client: AsyncClient) -> None:
    response = await client.post(
        "/api/v1/auth/signup",
        json={"email": "x@example.com", "password": "secret123", "user_data": {"role": "janitor"}},
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_signup_duplicate_email_conflicts(client: AsyncClient, make_user) -> None:
    await make_user("dup@example.com")
    response = await client.post(
        "/api/v1/auth/signup",
        json={"email": "DUP@example.com", "password": "secret123"},
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_signin_success_and_failures(client: AsyncClient, make_user) -> None:
    user = await make_user("kim@example.com")

    response = await client.post(
        "/api/v1/auth/signin", json={"email": "kim@example.com", "password": "secret123"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["id"] == user["id"]
    assert data["user"]["last_sign_in_at"] is not None

    bad_password = await client.post(
        "/api/v1/auth/signin", json={"email": "kim@example.com", "password": "nope-nope"}
    )
    assert bad_password.status_code == 401
    assert bad_password.json()["detail"] == "Invalid login credentials"

    unknown = await client.post(
        "/api/v1/auth/signin", json={"email": "ghost@example.com", "password": "secret123"}
    )
    assert unknown.status_code == 401


@pytest.mark.asyncio
async def test_oauth_token_endpoint(client: AsyncClient, make_user) -> None:
    await make_user("form@example.com")
    response = await client.post(
        "/api/v1/auth/token", data={"username": "form@example.com", "password": "secret123"}
    )
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"


@pytest.mark.asyncio
async def test_refresh_rotates_token(client: AsyncClient, make_user) -> None:
    user = await make_user("rot@example.com")
    old_token = user["session"]["refresh_token"]

    response = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_token})
    assert response.status_code == 200
    new_token = response.json()["refresh_token"]
    assert new_token != old_token

    reused = await client.post("/api/v1/auth/refresh", json={"refresh_token": old_token})
    assert reused.status_code == 401

    again = await client.post("/api/v1/auth/refresh", json={"refresh_token": new_token})
    assert again.status_code == 200


@pytest.mark.asyncio
async def test_signout_revokes_refresh_tokens(client: AsyncClient, make_user, db_session: AsyncSession) -> None:
    user = await make_user("bye@example.com")

    response = await client.post("/api/v1/auth/signout", headers=user["headers"])
    assert response.status_code == 204

    refresh = await client.post(
        "/api/v1/auth/refresh", json={"refresh_token": user["session"]["refresh_token"]}
    )
    assert refresh.status_code == 401

    tokens = (
        await db_session.execute(select(RefreshToken).where(RefreshToken.user_id == UUID(user["id"])))
    ).scalars().all()
    assert tokens
    assert all(t.revoked for t in tokens)


@pytest.mark.asyncio
async def test_current_user(client: AsyncClient, make_user) -> None:
    user = await make_user("me@example.com", full_name="Me Myself")

    response = await client.get("/api/v1/auth/user", headers=user["headers"])
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == user["id"]
    assert data["user_metadata"]["full_name"] == "Me Myself"
    assert data["app_metadata"]["provider"] == "email"
    assert "password_hash" not in data

    anonymous = await client.get("/api/v1/auth/user")
    assert anonymous.status_code == 401

    garbage = await client.get("/api/v1/auth/user", headers={"Authorization": "Bearer not-a-jwt"})
    assert garbage.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_is_not_an_access_token(client: AsyncClient, make_user) -> None:
    user = await make_user("mix@example.com")
    response = await client.get(
        "/api/v1/auth/user",
        headers={"Authorization": f"Bearer {user['session']['refresh_token']}"},
    )
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_creates_admin_via_app_metadata(client: AsyncClient, admin: dict) -> None:
    response = await client.post(
        "/api/v1/auth/admin/users",
        headers=admin["headers"],
        json={
            "email": "second.admin@example.com",
            "password": "secret123",
            "user_metadata": {"full_name": "Second Admin"},
            "app_metadata": {"role": "admin"},
        },
    )
    assert response.status_code == 201
    assert response.json()["app_metadata"]["role"] == "admin"

    signin = await client.post(
        "/api/v1/auth/signin", json={"email": "second.admin@example.com", "password": "secret123"}
    )
    headers = {"Authorization": f"Bearer {signin.json()['access_token']}"}
    created = await client.post(
        "/api/v1/subjects", headers=headers, json={"name": "Biology", "code": "bio"}
    )
    assert created.status_code == 201


@pytest.mark.asyncio
async def test_admin_endpoints_require_admin(client: AsyncClient, make_user) -> None:
    user = await make_user("plain@example.com")
    response = await client.post(
        "/api/v1/auth/admin/users",
        headers=user["headers"],
        json={"email": "other@example.com", "password": "secret123"},
    )
    assert response.status_code == 403

    delete = await client.delete(f"/api/v1/auth/admin/users/{user['id']}", headers=user["headers"])
    assert delete.status_code == 403


@pytest.mark.asyncio
async def test_admin_delete_user_cascades(
    client: AsyncClient, admin: dict, make_user, db_session: AsyncSession
) -> None:
    user = await make_user("leaver@example.com")
    created = await client.post(
        "/api/v1/students",
        headers=admin["headers"],
        json={"user_id": user["id"], "student_id": "S900", "admission_date": "2024-04-01"},
    )
    assert created.status_code == 201

    response = await client.delete(f"/api/v1/auth/admin/users/{user['id']}", headers=admin["headers"])
    assert response.status_code == 204

    user_id = UUID(user["id"])
    assert (await db_session.execute(select(AuthUser).where(AuthUser.id == user_id))).scalar_one_or_none() is None
    assert (await db_session.execute(select(UserProfile).where(UserProfile.id == user_id))).scalar_one_or_none() is None
    assert (await db_session.execute(select(Student).where(Student.user_id == user_id))).scalar_one_or_none() is None

    # Tokens of a removed identity no longer authenticate
    stale = await client.get("/api/v1/auth/user", headers=user["headers"])
    assert stale.status_code == 401

    missing = await client.delete(f"/api/v1/auth/admin/users/{user['id']}", headers=admin["headers"])
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_expired_refresh_token_rejected(client: AsyncClient, make_user, db_session: AsyncSession) -> None:
    user = await make_user("late@example.com")
    stored = (
        await db_session.execute(
            select(RefreshToken).where(RefreshToken.token == user["session"]["refresh_token"])
        )
    ).scalar_one()
    stored.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
    await db_session.commit()

    response = await client.post(
        "/api/v1/auth/refresh", json={"refresh_token": user["session"]["refresh_token"]}
    )
    assert response.status_code == 401
    assert response.json()["detail"] == "Refresh token expired"


@pytest.mark.asyncio
async def test_signup_non_text_full_name_stored_as_text(client: AsyncClient, make_user) -> None:
    user = await make_user("numeric@example.com", full_name=42)

    response = await client.get("/api/v1/profiles/me", headers=user["headers"])
    assert response.status_code == 200
    assert response.json()["full_name"] == "42"
