"""
API request and response models for the user-admin REST endpoints.

These Pydantic v2 models define the HTTP transport contract. They are
intentionally separate from the dataclass in auth/models.py, which owns the
internal domain representation. Route handlers map between the two.

Wire format is camelCase (isActive, createdAt, secretKey) to match the SPA.
Python attribute names stay snake_case; the alias generator handles the rest.

There is deliberately no password or hash field on any response model.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from pydantic_core import PydanticCustomError

from auth.models import User

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

# Shape check only: one "@", no whitespace, a dot in the domain part.
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

PASSWORD_MIN_LENGTH = 6
PASSWORD_MAX_LENGTH = 72
# bcrypt refuses secrets longer than 72 bytes, and multibyte text gets there
# before 72 characters.
PASSWORD_MAX_BYTES = 72
NAME_MIN_LENGTH = 2


class _RequestModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def normalize_email(cls, value):
        """Lower-case emails before the pattern check so lookups are case-insensitive."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("password", check_fields=False)
    @classmethod
    def password_fits_bcrypt(cls, value):
        if isinstance(value, str) and len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise PydanticCustomError(
                "password_too_long",
                "Password must be at most {max_bytes} bytes",
                {"max_bytes": PASSWORD_MAX_BYTES},
            )
        return value


class _ResponseModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    admin = "admin"
    user = "user"


# ---------------------------------------------------------------------------
# Auth request models
# ---------------------------------------------------------------------------


class LoginRequest(_RequestModel):
    """Request body for POST /api/auth/login."""

    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=1, max_length=PASSWORD_MAX_LENGTH)


class RegisterRequest(_RequestModel):
    """Request body for POST /api/auth/register.

    secretKey is optional on the wire, but registration without the correct
    admin key is always refused by the service.
    """

    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    name: Optional[str] = Field(default=None, min_length=NAME_MIN_LENGTH, max_length=255)
    secret_key: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# User request models
# ---------------------------------------------------------------------------


class UserSelfUpdate(_RequestModel):
    """Request body for PUT /api/users/{id}. All fields optional."""

    name: Optional[str] = Field(default=None, min_length=NAME_MIN_LENGTH, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    password: Optional[str] = Field(default=None, min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)


class UserCreate(_RequestModel):
    """Request body for POST /api/admin/users.

    isActive omitted means active for admins and pending for regular users.
    """

    email: str = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=PASSWORD_MAX_LENGTH)
    name: Optional[str] = Field(default=None, min_length=NAME_MIN_LENGTH, max_length=255)
    role: RoleEnum = RoleEnum.user
    is_active: Optional[bool] = None


class AdminUserUpdate(UserSelfUpdate):
    """Request body for PUT /api/admin/users/{id}."""

    role: Optional[RoleEnum] = None
    is_active: Optional[bool] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(_ResponseModel):
    """Public view of a user record. Never carries the password hash."""

    id: int
    email: str
    name: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    last_login: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
            last_login=user.last_login,
        )


class UserEnvelope(_ResponseModel):
    """{message, user} body returned by mutating endpoints."""

    message: str
    user: UserResponse


class MessageResponse(_ResponseModel):
    message: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    env: str
    version: str
    components: dict[str, str]
