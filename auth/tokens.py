"""
auth/tokens.py -- Session token signing and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with JWT_PRIVATE_KEY and carry
       the account email plus iat/exp. Tokens are stateless; nothing is stored
       server-side and there is no revocation list, so a token is valid until
       exp whatever happens to the account.

  Verification collapses every failure -- bad signature, malformed token,
       elapsed expiry, missing email claim -- into InvalidOrExpiredToken so the
       response never reveals which check failed.

  The signing key is injected at construction and never changes afterwards.
       api/main.py builds one TokenSigner from Settings in the lifespan.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.errors import InvalidOrExpiredToken, MissingAuthHeader, MissingToken
from auth.models import SessionClaims

logger = logging.getLogger("gatekeeper.auth")

_ALGORITHM = "HS256"


class TokenSigner:
    """Issue and verify HS256 session tokens with a fixed key and lifetime."""

    def __init__(self, secret_key: str, expire_seconds: int) -> None:
        self._secret_key = secret_key
        self._expire_seconds = expire_seconds

    @property
    def expire_seconds(self) -> int:
        return self._expire_seconds

    def issue(self, email: str, now: datetime | None = None) -> str:
        """Encode a signed token scoped to the given account email."""
        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "email": email,
            "iat": issued_at,
            "exp": issued_at + timedelta(seconds=self._expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=_ALGORITHM)

    def verify(self, token: str) -> SessionClaims:
        """Verify signature and expiry. Raises InvalidOrExpiredToken on any failure."""
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[_ALGORITHM])
        except JWTError as exc:
            logger.debug("Token rejected: %s", type(exc).__name__)
            raise InvalidOrExpiredToken() from None
        email = payload.get("email")
        exp = payload.get("exp")
        if not isinstance(email, str) or not email or not isinstance(exp, (int, float)):
            raise InvalidOrExpiredToken()
        iat = payload.get("iat")
        return SessionClaims(
            email=email,
            issued_at=datetime.fromtimestamp(iat, tz=timezone.utc) if isinstance(iat, (int, float)) else None,
            expires_at=datetime.fromtimestamp(exp, tz=timezone.utc),
        )


def extract_bearer_token(authorization: str | None) -> str:
    """Return the token segment of an "Authorization: Bearer <token>" value.

    The token is the second space-separated segment; the scheme word itself is
    not checked, so a non-Bearer credential simply fails verification.
    """
    if not authorization:
        raise MissingAuthHeader()
    parts = authorization.split(" ")
    if len(parts) < 2 or not parts[1]:
        raise MissingToken()
    return parts[1]
