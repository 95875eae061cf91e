"""
auth/service.py -- Registration, login, and token verification.

AuthService is thin orchestration over three collaborators: AccountStore
(persistence), PasswordHasher (bcrypt) and TokenSigner (JWT). Each operation is
a single linear pass -- validate, act, respond -- and reports failure by raising
an AuthError subclass. Nothing is retried.

Concurrency:
  bcrypt at cost 15 takes seconds, and the store is synchronous SQLAlchemy.
  Both run in the threadpool via run_in_threadpool so a slow hash never stalls
  other requests on the event loop. Token verification is a single HMAC and
  runs inline.

Enumeration resistance [C1]:
  login() runs a full bcrypt comparison even when no account has the email
  (against the hasher's dummy hash) and raises the same InvalidEmailOrPassword
  in both cases.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import re

from fastapi.concurrency import run_in_threadpool

from auth.errors import (
    ConflictInUse,
    EmailInUse,
    InternalError,
    InvalidEmailFormat,
    InvalidEmailOrPassword,
    MissingFields,
    PasswordTooShort,
    UsernameInUse,
)
from auth.models import Account, AccountSession, Conflict, Created, Failure, SessionClaims
from auth.passwords import PasswordHasher
from auth.store import AccountStore
from auth.tokens import TokenSigner, extract_bearer_token
from core.config import Settings

logger = logging.getLogger("gatekeeper.auth")

MIN_PASSWORD_LENGTH = 6

# local-part "@" domain-with-dot, no whitespace anywhere. Used with fullmatch
# so a trailing newline is rejected.
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

_CONFLICT_ERRORS = {
    "username": UsernameInUse,
    "email": EmailInUse,
}


def is_valid_email(email: str) -> bool:
    return _EMAIL_RE.fullmatch(email) is not None


class AuthService:
    def __init__(self, store: AccountStore, hasher: PasswordHasher, signer: TokenSigner) -> None:
        self.store = store
        self.hasher = hasher
        self.signer = signer

    async def register(self, username: str | None, email: str | None, password: str | None) -> AccountSession:
        """Create an account and return it with a fresh session token.

        Raises MissingFields, PasswordTooShort, InvalidEmailFormat,
        UsernameInUse, EmailInUse, ConflictInUse, or InternalError.
        """
        if not username or not email or not password:
            raise MissingFields()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise PasswordTooShort()
        if not is_valid_email(email):
            raise InvalidEmailFormat()

        hashed = await run_in_threadpool(self.hasher.hash, password)
        result = await run_in_threadpool(
            self.store.create_account,
            Account(username=username, email=email, hashed_password=hashed),
        )

        if isinstance(result, Conflict):
            logger.info("Registration conflict on %s", result.field or "unknown field")
            raise _CONFLICT_ERRORS.get(result.field, ConflictInUse)()
        if isinstance(result, Failure):
            logger.error("Unexpected error while registering %s", username, exc_info=result.cause)
            raise InternalError()
        if not isinstance(result, Created):
            raise InternalError()

        account = result.account
        logger.info("Registered account %s (%s)", account.username, account.id)
        return AccountSession(account=account.public(), token=self.signer.issue(account.email))

    async def login(self, email: str | None, password: str | None) -> AccountSession:
        """Check credentials and return the account with a fresh session token.

        Raises MissingFields or InvalidEmailOrPassword. Do NOT split the
        unknown-email and wrong-password branches into different errors.
        """
        if not email or not password:
            raise MissingFields()

        account = await run_in_threadpool(self.store.get_by_email, email)
        if account is None:
            # Equalize timing -- do NOT return before running bcrypt [C1]
            await run_in_threadpool(self.hasher.check_dummy, password)
            raise InvalidEmailOrPassword()
        if not await run_in_threadpool(self.hasher.verify, password, account.hashed_password):
            raise InvalidEmailOrPassword()

        logger.info("Login: %s (%s)", account.username, account.id)
        return AccountSession(account=account.public(), token=self.signer.issue(account.email))

    def verify_authorization(self, authorization: str | None) -> SessionClaims:
        """Verify the token in an Authorization header value.

        Raises MissingAuthHeader, MissingToken, or InvalidOrExpiredToken.
        """
        token = extract_bearer_token(authorization)
        return self.signer.verify(token)


def build_auth_service(settings: Settings, store: AccountStore) -> AuthService:
    """Wire an AuthService from resolved settings."""
    return AuthService(
        store=store,
        hasher=PasswordHasher(rounds=settings.bcrypt_rounds),
        signer=TokenSigner(settings.jwt_private_key, settings.token_expire_seconds),
    )
