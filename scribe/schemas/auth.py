"""Request/response schemas for auth, profile and admin user endpoints."""

from datetime import datetime
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

from scribe.auth.abilities import Role
from scribe.core.security import (
    NAME_MAX_LEN,
    NAME_MIN_LEN,
    PASSWORD_COMPLEXITY_MESSAGE,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    is_complex_password,
)

PersonName = Annotated[
    str,
    StringConstraints(strip_whitespace=True, min_length=NAME_MIN_LEN, max_length=NAME_MAX_LEN),
]


def _normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().lower()


def _validate_complexity(value: str) -> str:
    if not is_complex_password(value):
        raise ValueError(PASSWORD_COMPLEXITY_MESSAGE)
    return value


class RegisterRequest(BaseModel):
    """New account; the role is always guest."""

    first_name: PersonName
    last_name: PersonName
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _validate_complexity(v)


class LoginRequest(BaseModel):
    """Credentials for login."""

    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _normalize_email(v)


class RefreshRequest(BaseModel):
    """Refresh token exchange. Missing token is reported by the endpoint, not the schema."""

    refresh_token: str | None = None


class UpdateProfileRequest(BaseModel):
    first_name: PersonName | None = None
    last_name: PersonName | None = None
    email: EmailStr | None = None

    @field_validator("email", mode="after")
    @classmethod
    def normalize_email(cls, v: str | None) -> str | None:
        return _normalize_email(v)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    confirm_password: str = Field(..., min_length=1)

    @field_validator("new_password")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return _validate_complexity(v)

    @model_validator(mode="after")
    def passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class Principal(BaseModel):
    """Authenticated user as exposed to handlers and clients (no password)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    full_name: str
    email: str
    role: Role
    created_at: datetime | None = None
    updated_at: datetime | None = None


class LoginResponse(BaseModel):
    user: Principal
    access_token: str
    refresh_token: str
    access_expires_in_ms: int
    token_type: str = Field(default="bearer", description="Token type")


class RefreshResponse(BaseModel):
    access_token: str
    refresh_token: str
    access_expires_in_ms: int
    token_type: str = "bearer"


class UpdateRoleRequest(BaseModel):
    """Role elevation target (admin only)."""

    role: Role
