from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi import status as http_status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from schoolerp.auth import services
from schoolerp.auth.dependencies import get_current_user, require_admin
from schoolerp.auth.schemas import (
    AdminCreateUserRequest,
    AuthUserResponse,
    CurrentUser,
    RefreshRequest,
    SessionResponse,
    SignInRequest,
    SignUpRequest,
    SignUpResponse,
)
from schoolerp.core.exceptions import ServiceError
from schoolerp.db.session import get_db

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/signup",
    response_model=SignUpResponse,
    status_code=http_status.HTTP_201_CREATED,
)
async def sign_up(
    payload: SignUpRequest,
    db: AsyncSession = Depends(get_db),
) -> SignUpResponse:
    try:
        return await services.sign_up(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "/signin",
    response_model=SessionResponse,
    status_code=http_status.HTTP_200_OK,
)
async def sign_in(
    payload: SignInRequest,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    try:
        return await services.sign_in(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/token")
async def sign_in_oauth(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """OAuth2 password flow for the interactive docs."""
    payload = SignInRequest(
        email=form_data.username.strip(),
        password=form_data.password,
    )
    try:
        result = await services.sign_in(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    return {
        "access_token": result.access_token,
        "token_type": "bearer",
    }


@router.post("/refresh", response_model=SessionResponse)
async def refresh(
    payload: RefreshRequest,
    db: AsyncSession = Depends(get_db),
) -> SessionResponse:
    try:
        return await services.refresh_session(db, payload.refresh_token)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/signout", status_code=http_status.HTTP_204_NO_CONTENT)
async def sign_out(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    await services.sign_out(db, current_user)


@router.get("/user", response_model=AuthUserResponse)
async def get_user(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AuthUserResponse:
    user = await services.get_user(db, current_user.id)
    if not user:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.post(
    "/admin/users",
    response_model=AuthUserResponse,
    status_code=http_status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
async def admin_create_user(
    payload: AdminCreateUserRequest,
    db: AsyncSession = Depends(get_db),
) -> AuthUserResponse:
    try:
        return await services.admin_create_user(db, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete(
    "/admin/users/{user_id}",
    status_code=http_status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
async def admin_delete_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
) -> None:
    deleted = await services.admin_delete_user(db, user_id)
    if not deleted:
        raise HTTPException(status_code=http_status.HTTP_404_NOT_FOUND, detail="User not found")
