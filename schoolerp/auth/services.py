from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.auth.schemas import (
    AdminCreateUserRequest,
    AuthUserResponse,
    CurrentUser,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
)
from schoolerp.auth.security import (
    create_access_token,
    create_refresh_token,
    hash_password,
    verify_password,
)
from schoolerp.core.enums import UserRole
from schoolerp.core.exceptions import ServiceError
from schoolerp.core.logging import get_logger
from schoolerp.core.models import AuthUser, RefreshToken

logger = get_logger(__name__)


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; stored values are always UTC
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def to_user_response(user: AuthUser) -> AuthUserResponse:
    return AuthUserResponse(
        id=user.id,
        email=user.email,
        user_metadata=user.raw_user_meta_data or {},
        app_metadata=user.raw_app_meta_data or {},
        created_at=user.created_at,
        last_sign_in_at=user.last_sign_in_at,
    )


async def _issue_session(db: AsyncSession, user: AuthUser) -> SessionResponse:
    """Create an access token and a stored refresh token. Caller commits."""
    access_token, expires_in = create_access_token(
        subject={"sub": str(user.id), "email": user.email, "role": "authenticated"}
    )
    refresh_token_str, refresh_expires_at = create_refresh_token()
    db.add(RefreshToken(user_id=user.id, token=refresh_token_str, expires_at=refresh_expires_at))
    return SessionResponse(
        access_token=access_token,
        refresh_token=refresh_token_str,
        expires_in=expires_in,
        user=to_user_response(user),
    )


async def _create_identity(
    db: AsyncSession,
    email: str,
    password: str,
    user_metadata: Dict[str, Any],
    app_metadata: Optional[Dict[str, Any]] = None,
) -> AuthUser:
    """Insert an identity; the profile row is created by the after-insert hook."""
    existing = await db.execute(select(AuthUser.id).where(func.lower(AuthUser.email) == email.lower()))
    if existing.scalar_one_or_none() is not None:
        raise ServiceError("User already registered", status.HTTP_409_CONFLICT)

    user = AuthUser(
        email=email.lower(),
        password_hash=hash_password(password),
        raw_user_meta_data=user_metadata,
        raw_app_meta_data=app_metadata or {"provider": "email", "providers": ["email"]},
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        await db.rollback()
        raise ServiceError("User already registered", status.HTTP_409_CONFLICT) from e
    return user


async def sign_up(db: AsyncSession, payload: SignUpRequest) -> SignUpResponse:
    if payload.user_data.get("role") == UserRole.admin.value:
        raise ServiceError("Cannot self-register with the admin role", status.HTTP_403_FORBIDDEN)

    user = await _create_identity(db, payload.email, payload.password, dict(payload.user_data))
    user.last_sign_in_at = datetime.now(timezone.utc)
    session = await _issue_session(db, user)
    await db.commit()
    await db.refresh(user)

    logger.info("user_signed_up", user_id=str(user.id))
    return SignUpResponse(user=to_user_response(user), session=session)


async def sign_in(db: AsyncSession, payload: SignInRequest) -> SessionResponse:
    result = await db.execute(select(AuthUser).where(func.lower(AuthUser.email) == payload.email.lower()))
    user: Optional[AuthUser] = result.scalar_one_or_none()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("sign_in_failed", email_domain=payload.email.split("@", 1)[-1])
        raise ServiceError("Invalid login credentials", status.HTTP_401_UNAUTHORIZED)

    user.last_sign_in_at = datetime.now(timezone.utc)
    session = await _issue_session(db, user)
    await db.commit()

    logger.info("user_signed_in", user_id=str(user.id))
    return session


async def refresh_session(db: AsyncSession, refresh_token: str) -> SessionResponse:
    """Exchange a live refresh token for a new session. The old token is revoked."""
    result = await db.execute(select(RefreshToken).where(RefreshToken.token == refresh_token))
    stored: Optional[RefreshToken] = result.scalar_one_or_none()
    if not stored or stored.revoked:
        raise ServiceError("Invalid refresh token", status.HTTP_401_UNAUTHORIZED)
    if _as_aware(stored.expires_at) <= datetime.now(timezone.utc):
        raise ServiceError("Refresh token expired", status.HTTP_401_UNAUTHORIZED)

    user = await db.get(AuthUser, stored.user_id)
    if not user:
        raise ServiceError("Invalid refresh token", status.HTTP_401_UNAUTHORIZED)

    stored.revoked = True
    session = await _issue_session(db, user)
    await db.commit()
    return session


async def sign_out(db: AsyncSession, current_user: CurrentUser) -> None:
    """Revoke every refresh token of the caller. Access tokens expire on their own."""
    await db.execute(
        update(RefreshToken)
        .where(RefreshToken.user_id == current_user.id, RefreshToken.revoked.is_(False))
        .values(revoked=True)
    )
    await db.commit()
    logger.info("user_signed_out", user_id=str(current_user.id))


async def get_user(db: AsyncSession, user_id: UUID) -> Optional[AuthUserResponse]:
    user = await db.get(AuthUser, user_id)
    return to_user_response(user) if user else None


async def admin_create_user(db: AsyncSession, payload: AdminCreateUserRequest) -> AuthUserResponse:
    app_metadata = {"provider": "email", "providers": ["email"], **payload.app_metadata}
    user = await _create_identity(
        db, payload.email, payload.password, dict(payload.user_metadata), app_metadata
    )
    await db.commit()
    await db.refresh(user)
    logger.info("user_created_by_admin", user_id=str(user.id))
    return to_user_response(user)


async def admin_delete_user(db: AsyncSession, user_id: UUID) -> bool:
    """Delete an identity; its profile, student/teacher rows and tokens go with it."""
    user = await db.get(AuthUser, user_id)
    if not user:
        return False
    await db.delete(user)
    await db.commit()
    logger.info("user_deleted", user_id=str(user_id))
    return True
