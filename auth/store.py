"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts.

Pattern: Repository + Data Mapper.
AccountStore is the repository; _row_to_account is the mapper. Service and
route code never touches SQL directly.

Uniqueness:
  username and email each carry a named UNIQUE constraint. The database is the
  only place uniqueness is enforced -- there is no check-then-insert race.
  create_account() converts the driver's IntegrityError into a Conflict result
  naming the offending column, read from the constraint name (PostgreSQL:
  'duplicate key value violates unique constraint "uq_accounts_email"') or the
  column path (SQLite: 'UNIQUE constraint failed: accounts.email'). A
  violation on a column this module does not recognize yields Conflict(None).

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, UniqueConstraint, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.pool import SingletonThreadPool

from auth.models import Account, Conflict, Created, CreateResult, Failure

logger = logging.getLogger("gatekeeper.auth.store")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False),
    Column("email", String(320), nullable=False),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    UniqueConstraint("username", name="uq_accounts_username"),
    UniqueConstraint("email", name="uq_accounts_email"),
)

_UNIQUE_FIELDS = ("username", "email")

# SQLite: "UNIQUE constraint failed: accounts.username" (first column wins for
# composite constraints). PostgreSQL/MySQL name the constraint instead.
_SQLITE_UNIQUE_RE = re.compile(r"UNIQUE constraint failed: \w+\.(\w+)")
_UNIQUE_MARKERS = ("UNIQUE constraint failed", "duplicate key", "Duplicate entry")


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _conflicting_field(exc: IntegrityError) -> str | None:
    """Name the unique column an IntegrityError refers to, or None if unknown."""
    message = str(exc.orig)
    match = _SQLITE_UNIQUE_RE.search(message)
    if match:
        column = match.group(1)
        return column if column in _UNIQUE_FIELDS else None
    for column in _UNIQUE_FIELDS:
        if f"uq_accounts_{column}" in message:
            return column
    return None


def _is_unique_violation(exc: IntegrityError) -> bool:
    message = str(exc.orig)
    return any(marker in message for marker in _UNIQUE_MARKERS)


def _is_sqlite_memory(db_url: str) -> bool:
    return db_url.startswith("sqlite") and (":memory:" in db_url or "mode=memory" in db_url)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account entities.

    Usage:
        store = AccountStore("sqlite:///accounts.db")
        result = store.create_account(Account(username="alice", email="alice@example.com", hashed_password=h))
        account = store.get_by_email("alice@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        engine_kwargs: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        if _is_sqlite_memory(db_url):
            # One connection per thread; the shared-cache DB lives while any is open.
            engine_kwargs["poolclass"] = SingletonThreadPool
        self.engine: Engine = create_engine(db_url, connect_args=connect_args, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    def create_account(self, account: Account) -> CreateResult:
        """Insert a new account.

        Returns Created with the stored record (id and created_at filled in),
        Conflict when username or email is already taken, or Failure for any
        other database error. Never raises SQLAlchemyError.
        """
        created_at = _now_iso()
        try:
            with self.engine.connect() as conn:
                result = conn.execute(
                    _accounts.insert().values(
                        username=account.username,
                        email=account.email,
                        hashed_password=account.hashed_password,
                        created_at=created_at,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            if _is_unique_violation(exc):
                return Conflict(field=_conflicting_field(exc))
            return Failure(cause=exc)
        except SQLAlchemyError as exc:
            return Failure(cause=exc)
        return Created(
            account=Account(
                id=result.inserted_primary_key[0],
                username=account.username,
                email=account.email,
                hashed_password=account.hashed_password,
                created_at=created_at,
            )
        )

    def get_by_email(self, email: str) -> Account | None:
        """Look up an account by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_username(self, username: str) -> Account | None:
        """Look up an account by exact username. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.username == username)).fetchone()
        return _row_to_account(row) if row is not None else None

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Account store health check failed")
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )
