"""Authentication and account schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, EmailStr, Field, field_validator

from app.schemas.common import ApiModel, Pagination


class Role(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"


class AuthPrincipal(BaseModel):
    """Normalized authenticated principal used by business services."""

    user_id: str = Field(min_length=1)
    email: str = Field(min_length=1)
    role: Role = Role.EDITOR


def _normalize_email(value: str) -> str:
    return value.strip().lower()


class RegisterRequest(ApiModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return _normalize_email(value)


class LoginRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return _normalize_email(value)


class UpdateProfileRequest(ApiModel):
    name: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str | None) -> str | None:
        return _normalize_email(value) if value is not None else None


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(min_length=6)
    new_password: str = Field(min_length=6)


class User(ApiModel):
    id: str
    name: str
    email: str
    role: Role
    active: bool
    created_at: datetime
    updated_at: datetime


class AuthResponse(ApiModel):
    user: User
    token: str


class ProfileResponse(ApiModel):
    user: User


class UserList(ApiModel):
    users: list[User]
    pagination: Pagination
