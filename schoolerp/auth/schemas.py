from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field, field_validator

from schoolerp.core.enums import UserRole


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    # Stored as identity user metadata; full_name and role feed the new profile
    user_data: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("user_data")
    @classmethod
    def validate_role(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        role = value.get("role")
        if role is not None:
            UserRole(role)
        return value


class SignInRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshRequest(BaseModel):
    refresh_token: str


class AdminCreateUserRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    app_metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("user_metadata")
    @classmethod
    def validate_role(cls, value: Dict[str, Any]) -> Dict[str, Any]:
        role = value.get("role")
        if role is not None:
            UserRole(role)
        return value


class AuthUserResponse(BaseModel):
    """Identity as returned to clients. Never carries the password hash."""

    id: UUID
    email: EmailStr
    user_metadata: Dict[str, Any]
    app_metadata: Dict[str, Any]
    created_at: datetime
    last_sign_in_at: Optional[datetime] = None


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: AuthUserResponse


class SignUpResponse(BaseModel):
    user: AuthUserResponse
    session: SessionResponse


class CurrentUser(BaseModel):
    """Lightweight representation of the authenticated identity for policy checks."""

    id: UUID
    email: str
    is_admin: bool = False
