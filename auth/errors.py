"""
auth/errors.py -- Client-facing error taxonomy for authentication.

Every failure an auth operation can report is an AuthError subclass. Each one
carries a stable error code and exactly one HTTP status; api/main.py turns any
AuthError into the standard error envelope:

    {"error": {"code": "<code>", "message": "<message>"}}

The code/status pairs are a client contract -- do not renumber them.

Enumeration resistance: an unknown email and a wrong password both raise
InvalidEmailOrPassword with the same message, so the response body cannot tell
the two apart.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for all client-facing authentication errors."""

    code: str = "InternalError"
    status_code: int = 500
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Input validation (400)
# ---------------------------------------------------------------------------


class MissingFields(AuthError):
    code = "MissingFields"
    status_code = 400
    message = "All required fields must be provided."


class PasswordTooShort(AuthError):
    code = "PasswordTooShort"
    status_code = 400
    message = "Password must be at least 6 characters long."


class InvalidEmailFormat(AuthError):
    code = "InvalidEmailFormat"
    status_code = 400
    message = "Email address is not valid."


# ---------------------------------------------------------------------------
# Credentials (401)
# ---------------------------------------------------------------------------


class InvalidEmailOrPassword(AuthError):
    code = "InvalidEmailOrPassword"
    status_code = 401
    message = "Invalid email or password."


class MissingAuthHeader(AuthError):
    code = "MissingAuthHeader"
    status_code = 401
    message = "Authorization header is required."


class MissingToken(AuthError):
    code = "MissingToken"
    status_code = 401
    message = "Bearer token is missing from the Authorization header."


class InvalidOrExpiredToken(AuthError):
    code = "InvalidOrExpiredToken"
    status_code = 401
    message = "Token is invalid or has expired."


# ---------------------------------------------------------------------------
# Uniqueness conflicts (409)
# ---------------------------------------------------------------------------


class UsernameInUse(AuthError):
    code = "UsernameInUse"
    status_code = 409
    message = "Username is already in use."


class EmailInUse(AuthError):
    code = "EmailInUse"
    status_code = 409
    message = "Email is already in use."


class ConflictInUse(AuthError):
    code = "ConflictInUse"
    status_code = 409
    message = "A unique value is already in use."


# ---------------------------------------------------------------------------
# Server (500)
# ---------------------------------------------------------------------------


class InternalError(AuthError):
    code = "InternalError"
    status_code = 500
    message = "An unexpected error occurred."
