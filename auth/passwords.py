"""
auth/passwords.py -- bcrypt password hashing with timing equalization.

Security design decisions:
  bcrypt is used directly rather than through passlib. passlib's wrap-bug
  detection feeds bcrypt a password longer than 72 bytes, which bcrypt 4.x
  rejects, and bcrypt 5.x rejects any input over 72 bytes. PasswordHasher
  truncates to 72 bytes itself -- the same input bcrypt has always used -- so
  hashes stay compatible across bcrypt releases.

  The cost factor defaults to 15 (see core.config). Every hash and check is
  therefore slow on purpose; callers on the event loop must run them in a
  worker thread (AuthService does this with run_in_threadpool).

  dummy_hash is computed once, at the same cost, when the hasher is built.
  check_dummy() runs a full bcrypt comparison against it so that a login for
  an unknown email costs as much as a login with a wrong password [C1].

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import bcrypt

_BCRYPT_MAX_BYTES = 72


def _encode(plain: str) -> bytes:
    return plain.encode("utf-8")[:_BCRYPT_MAX_BYTES]


class PasswordHasher:
    """Salted adaptive password hashing at a fixed bcrypt cost."""

    def __init__(self, rounds: int = 15) -> None:
        self._rounds = rounds
        self._dummy_hash = self.hash("gatekeeper_timing_dummy")

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, plain: str) -> str:
        """Return a bcrypt hash of the given plaintext password."""
        return bcrypt.hashpw(_encode(plain), bcrypt.gensalt(rounds=self._rounds)).decode("utf-8")

    def verify(self, plain: str, hashed: str) -> bool:
        """Constant-time comparison against a bcrypt hash.

        A malformed stored hash is treated as a mismatch.
        """
        try:
            return bcrypt.checkpw(_encode(plain), hashed.encode("utf-8"))
        except (ValueError, TypeError):
            return False

    def check_dummy(self, plain: str) -> bool:
        """Burn one full bcrypt comparison. Always returns False."""
        self.verify(plain, self._dummy_hash)
        return False
