"""
API request and response models for RecordVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
records/models.py, which own the internal domain representation. Route
handlers map between the two.

Request validation: every request model checks its own fields in a
model_validator and raises PydanticCustomError with type INVALID_FIELDS and
the exact client-facing message. The RequestValidationError handler in
api/main.py looks for that type and returns its message with a 400, so each
endpoint keeps its own wording without any per-route error plumbing.

Response models never include hashed_password -- they are built field by field
from the domain objects.
"""

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic_core import PydanticCustomError

from auth.models import User
from records.models import Record

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

INVALID_FIELDS = "invalid_fields"

MIN_PASSWORD_LENGTH = 6
# bcrypt ignores (or, in newer releases, rejects) input past 72 bytes.
MAX_PASSWORD_BYTES = 72

_Trimmed = Annotated[str, StringConstraints(strip_whitespace=True)]


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/auth/register.

    Fields are Optional at the type level so a missing key reaches the
    model_validator and gets the endpoint's own message instead of pydantic's
    generic "Field required". The password is not trimmed.
    """

    name: Optional[_Trimmed] = Field(default=None, max_length=100)
    email: Optional[_Trimmed] = Field(default=None, max_length=255)
    password: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self) -> "RegisterRequest":
        if not self.name or not self.email or not self.password:
            raise PydanticCustomError(INVALID_FIELDS, "All fields are required")
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise PydanticCustomError(
                INVALID_FIELDS,
                "Password must be at least {min_length} characters",
                {"min_length": MIN_PASSWORD_LENGTH},
            )
        if len(self.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise PydanticCustomError(
                INVALID_FIELDS,
                "Password must be at most {max_bytes} bytes",
                {"max_bytes": MAX_PASSWORD_BYTES},
            )
        return self


class LoginRequest(BaseModel):
    """Request body for POST /api/auth/login."""

    email: Optional[_Trimmed] = Field(default=None, max_length=255)
    password: Optional[str] = None

    @model_validator(mode="after")
    def check_fields(self) -> "LoginRequest":
        if not self.email or not self.password:
            raise PydanticCustomError(INVALID_FIELDS, "Email and password are required")
        return self


class RecordWrite(BaseModel):
    """Request body for POST /api/data and PUT /api/data/{id}."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = Field(default=None, max_length=10_000)

    @model_validator(mode="after")
    def check_fields(self) -> "RecordWrite":
        if not self.title or not self.description:
            raise PydanticCustomError(INVALID_FIELDS, "Title and description are required")
        return self


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of an identity. Never carries the password hash."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    email: str
    role: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(id=user.id, name=user.name, email=user.email, role=user.role)


class AuthResponse(BaseModel):
    """Response body for register (201) and login (200)."""

    model_config = ConfigDict(frozen=True)

    message: str
    token: str
    user: UserResponse


class MeResponse(BaseModel):
    """Response for GET /api/auth/me."""

    model_config = ConfigDict(frozen=True)

    user: UserResponse


class RecordResponse(BaseModel):
    """One ownership-scoped record as returned by every /api/data route."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    owner_id: int
    created_at: str
    updated_at: str

    @classmethod
    def from_record(cls, record: Record) -> "RecordResponse":
        """Factory Method -- the mapping lives next to the output model."""
        return cls(
            id=record.id,
            title=record.title,
            description=record.description,
            owner_id=record.owner_id,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


class MessageResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str


class ErrorResponse(BaseModel):
    """Error envelope returned on every 4xx/5xx response."""

    model_config = ConfigDict(frozen=True)

    error: str


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "OK"
    timestamp: str
