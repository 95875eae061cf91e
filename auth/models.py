"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; the store and service do the work.

Account is the only type that carries a password hash. Everything that leaves
the service -- responses, token claims -- is built from PublicAccount, which has
no hash field at all, so a hash cannot leak by forgetting to delete it.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Union


@dataclass
class Account:
    """A registered account as stored by AccountStore.

    username and email are each unique; the store enforces both.
    """

    username: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None

    def public(self) -> PublicAccount:
        return PublicAccount(username=self.username, email=self.email)


@dataclass(frozen=True)
class PublicAccount:
    """Output-only view of an Account. Structurally excludes the password hash."""

    username: str
    email: str


@dataclass(frozen=True)
class AccountSession:
    """Result of a successful registration or login."""

    account: PublicAccount
    token: str


@dataclass(frozen=True)
class SessionClaims:
    """Verified claims carried by a session token."""

    email: str
    issued_at: datetime | None
    expires_at: datetime


# ---------------------------------------------------------------------------
# Store results
#
# AccountStore.create_account() returns one of these instead of raising, so
# the service matches on the outcome rather than inspecting driver errors.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Created:
    account: Account


@dataclass(frozen=True)
class Conflict:
    """A uniqueness violation. field is None when the column is not recognized."""

    field: str | None


@dataclass(frozen=True)
class Failure:
    cause: Exception


CreateResult = Union[Created, Conflict, Failure]
