"""
API request and response models for Gatekeeper REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request fields are all optional on purpose: an absent field must reach the
service so it can answer MissingFields (400) rather than the framework's
generic 422.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import AccountSession

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register."""

    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login."""

    email: Optional[str] = None
    password: Optional[str] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class SessionUser(BaseModel):
    """An account as returned to the client -- never includes the password hash."""

    model_config = ConfigDict(frozen=True)

    username: str
    email: str
    token: str

    @classmethod
    def from_session(cls, session: AccountSession) -> "SessionUser":
        return cls(username=session.account.username, email=session.account.email, token=session.token)


class RegisterResponse(BaseModel):
    """Response body for POST /api/v1/auth/register (201)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    registered_user: SessionUser = Field(alias="registeredUser")


class LoginResponse(BaseModel):
    """Response body for POST /api/v1/auth/login (200)."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    logged_user: SessionUser = Field(alias="loggedUser")


class TokenCheckResponse(BaseModel):
    """Response body for GET /api/v1/auth/check."""

    model_config = ConfigDict(frozen=True)

    ok: bool = True


class SessionResponse(BaseModel):
    """Response body for GET /api/v1/auth/session."""

    model_config = ConfigDict(frozen=True)

    email: str
    issued_at: Optional[datetime]
    expires_at: datetime


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
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
