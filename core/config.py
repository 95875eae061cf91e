"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Gatekeeper happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. jwt_private_key -> JWT_PRIVATE_KEY).

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. A missing signing key is a startup failure outside of
      debug mode, so the service can never issue or verify a token without it.

Security notes:
  [M6] JWT_PRIVATE_KEY shorter than 32 chars is rejected outright. HS256
       signing relies on key entropy -- a short key weakens every token.

  [M7] In production mode (DEBUG not set or false), a missing JWT_PRIVATE_KEY
       is a hard startup failure.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("gatekeeper.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'gatekeeper_accounts.db'}"

# Seven days, matching the lifetime of a session token.
_SEVEN_DAYS = 7 * 24 * 60 * 60


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    jwt_private_key: str = ""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = Field(default=_SEVEN_DAYS, gt=0)
    # bcrypt cost factor. 15 is deliberately slow; tests lower it to 4.
    bcrypt_rounds: int = Field(default=15, ge=4, le=31)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_jwt_private_key(self) -> "Settings":
        """Enforce the signing key policy [M7].

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            JWT_PRIVATE_KEY is missing.

        Both modes: reject keys shorter than 32 characters [M6].
        """
        if not self.jwt_private_key:
            if self.debug:
                self.jwt_private_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated JWT_PRIVATE_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "JWT_PRIVATE_KEY is required in production mode. "
                    "Set JWT_PRIVATE_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.jwt_private_key) < 32:
            raise ValueError("JWT_PRIVATE_KEY must be at least 32 characters.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
