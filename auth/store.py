"""
auth/store.py -- SQLAlchemy Core persistence layer for users and sessions.

Pattern: Repository + Data Mapper. CredentialStore and SessionStore are the
repositories; _row_to_user / _row_to_session are the mappers. The gateway and
route code never touch SQL directly.

Both repositories take an Engine in their constructor (see auth/db.py). They
hold no other state and cache nothing: every call is one statement, one round
trip, and the database is the only source of truth.

Security:
  All queries use bound parameters. No f-strings in SQL values.

Atomicity:
  issue_or_refresh() is a single INSERT ... ON CONFLICT (user_id) DO UPDATE
  ... RETURNING statement. Concurrent logins for one user serialize on the
  UNIQUE(user_id) index inside the database; the last upsert to commit wins
  and no second row can appear. Never split it into SELECT-then-UPDATE.

  create() relies on UNIQUE(user_name) the same way. There is deliberately no
  exists() check in front of it -- two concurrent registrations would both
  pass such a check.

Clock:
  Session validity is judged by the database clock, never Python's. The "now"
  expression defaults to CURRENT_TIMESTAMP and can be replaced with a literal
  to pin the clock in tests.

Errors:
  IntegrityError on user insert -> Conflict. Any other SQLAlchemyError ->
  StoreError. No retries.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import secrets
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import timedelta

from sqlalchemy import ColumnElement, func, not_, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.db import sessions, users
from auth.errors import Conflict, StoreError
from auth.models import Session, User

DEFAULT_TTL_SECONDS = 300
DEFAULT_TOKEN_BYTES = 32

# Dialects whose insert() construct supports on_conflict_do_update().
_UPSERT_INSERTS = {
    "sqlite": sqlite_insert,
    "postgresql": pg_insert,
}


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
    """Re-raise any SQLAlchemy failure inside the block as an opaque StoreError."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreError(f"{operation} failed") from exc


# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for User rows.

    Usage:
        store = CredentialStore(engine)
        user = store.create("alice", hasher.hash("secret1"))
        store.find_by_user_name("alice")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def exists(self, user_name: str) -> bool:
        """Return True if a user with exactly this name exists (case-sensitive)."""
        stmt = select(users.c.user_id).where(users.c.user_name == user_name).limit(1)
        with _store_errors("user lookup"), self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        return row is not None

    def create(self, user_name: str, password_digest: str) -> User:
        """Insert a new user and return it with its assigned user_id.

        Raises Conflict if user_name is already taken. Detection is the UNIQUE
        constraint itself, so exactly one of several concurrent registrations
        for the same name can succeed.
        """
        stmt = users.insert().values(user_name=user_name, password_digest=password_digest).returning(*users.c)
        try:
            with self.engine.connect() as conn:
                row = conn.execute(stmt).one()
                conn.commit()
        except IntegrityError as exc:
            raise Conflict(f"user_name {user_name!r} already exists") from exc
        except SQLAlchemyError as exc:
            raise StoreError("user insert failed") from exc
        return _row_to_user(row)

    def find_by_user_name(self, user_name: str) -> User | None:
        """Look up a user by exact name. Returns None if not found."""
        stmt = select(users).where(users.c.user_name == user_name)
        with _store_errors("user lookup"), self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        return _row_to_user(row) if row is not None else None


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for Session rows, at most one per user.

    Args:
        engine:      SQLite or PostgreSQL engine holding the auth schema.
        ttl_seconds: Length of the validity window opened at issuance.
        token_bytes: Random bytes per session token (>= 16 for 128 bits).
        now:         SQL expression for the current time. Defaults to the
                     database's CURRENT_TIMESTAMP.
    """

    def __init__(
        self,
        engine: Engine,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        token_bytes: int = DEFAULT_TOKEN_BYTES,
        now: ColumnElement | None = None,
    ) -> None:
        dialect = engine.dialect.name
        if dialect not in _UPSERT_INSERTS:
            raise StoreError(f"dialect {dialect!r} has no insert-or-update support")
        self.engine = engine
        self.ttl_seconds = ttl_seconds
        self.token_bytes = token_bytes
        self._insert = _UPSERT_INSERTS[dialect]
        self._now = now if now is not None else func.current_timestamp()

    def _is_live(self) -> ColumnElement:
        """Validity predicate: now < created_at + TTL, evaluated by the database.

        Strictly less-than, so a session is already invalid at exactly
        created_at + TTL.

        SQLite resolution is one second: CURRENT_TIMESTAMP and datetime() drop
        fractional seconds, and the created_at returned by issue_or_refresh()
        is truncated the same way. A session issued at 12:00:00.900 is stored
        as 12:00:00 and stops validating at 12:05:00, up to one second short
        of the full TTL measured from the real issue instant.
        """
        if self.engine.dialect.name == "sqlite":
            # SQLite keeps timestamps as text; datetime() normalizes both sides
            # to 'YYYY-MM-DD HH:MM:SS' so the comparison is chronological.
            return func.datetime(self._now) < func.datetime(sessions.c.created_at, f"+{self.ttl_seconds} seconds")
        return self._now < sessions.c.created_at + timedelta(seconds=self.ttl_seconds)

    def issue_or_refresh(self, user_id: int) -> Session:
        """Give user_id a fresh session token, replacing any existing session.

        One atomic upsert: insert the row if the user has none, else overwrite
        session_id and reset created_at. The previous token stops validating
        the moment this commits. Returns the committed row.
        """
        insert = self._insert(sessions).values(
            session_id=secrets.token_urlsafe(self.token_bytes),
            user_id=user_id,
            created_at=self._now,
        )
        stmt = insert.on_conflict_do_update(
            index_elements=[sessions.c.user_id],
            set_={
                "session_id": insert.excluded.session_id,
                "created_at": insert.excluded.created_at,
            },
        ).returning(*sessions.c)
        with _store_errors("session upsert"), self.engine.connect() as conn:
            row = conn.execute(stmt).one()
            conn.commit()
        return _row_to_session(row)

    def validate(self, session_id: str) -> User | None:
        """Return the session's user if the token exists and is still live, else None.

        A missing token and an expired one are indistinguishable to the caller.
        Validation never extends the session.
        """
        stmt = (
            select(users)
            .select_from(sessions.join(users, sessions.c.user_id == users.c.user_id))
            .where(sessions.c.session_id == session_id)
            .where(self._is_live())
        )
        with _store_errors("session lookup"), self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        return _row_to_user(row) if row is not None else None

    def revoke(self, session_id: str) -> Session | None:
        """Delete the session for this token. Returns the deleted row, or None if there was none."""
        stmt = sessions.delete().where(sessions.c.session_id == session_id).returning(*sessions.c)
        with _store_errors("session delete"), self.engine.connect() as conn:
            row = conn.execute(stmt).first()
            conn.commit()
        return _row_to_session(row) if row is not None else None

    def purge_expired(self) -> int:
        """Delete every session whose validity window has closed. Returns the number removed.

        Housekeeping only: validate() already ignores expired rows.
        """
        stmt = sessions.delete().where(not_(self._is_live()))
        with _store_errors("session purge"), self.engine.connect() as conn:
            result = conn.execute(stmt)
            conn.commit()
        return result.rowcount


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        user_id=row.user_id,
        user_name=row.user_name,
        password_digest=row.password_digest,
    )


def _row_to_session(row) -> Session:
    return Session(
        session_id=row.session_id,
        user_id=row.user_id,
        created_at=row.created_at,
    )
