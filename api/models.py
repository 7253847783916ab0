"""
API request and response models for NoteVault REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request fields are Optional on purpose: a missing identifier or password is a
400 raised by SessionService with a stable message, not a schema error.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from auth.models import User

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register. `username` is accepted as an alias of `identifier`."""

    identifier: Optional[str] = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("identifier", "username"),
    )
    password: Optional[str] = Field(default=None, max_length=255)
    display_name: Optional[str] = Field(default=None, max_length=255)
    email: Optional[str] = Field(default=None, max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""

    identifier: Optional[str] = Field(
        default=None,
        max_length=255,
        validation_alias=AliasChoices("identifier", "username"),
    )
    password: Optional[str] = Field(default=None, max_length=255)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public fields of a User. There is deliberately no password_hash field."""

    model_config = ConfigDict(frozen=True)

    id: int
    username: str
    display_name: Optional[str] = None
    email: Optional[str] = None
    created_at: str = ""

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        """Factory Method -- the domain-to-transport mapping lives next to the model."""
        return cls(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            email=user.email,
            created_at=user.created_at or "",
        )


class LoginResponse(BaseModel):
    """Response for POST /auth/login. The same token is also set as a cookie."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserResponse


class LogoutResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool = True


class StatsResponse(BaseModel):
    """Response for GET /admin/stats. Serialized with camelCase keys."""

    model_config = ConfigDict(frozen=True)

    users_count: int = Field(serialization_alias="usersCount")
    notes_count: int = Field(serialization_alias="notesCount")
    uptime: float  # seconds since application startup


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

    status: str = "healthy"
    version: str
    components: dict[str, str]
