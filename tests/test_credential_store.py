"""Unit tests for CredentialStore in auth/store.py.

Covers:
- create() assigns ids and returns the stored row
- create() raises Conflict on a duplicate name and leaves exactly one row
- user names are case-sensitive
- exists() / find_by_user_name() hit and miss
- database failures surface as StoreError, not raw SQLAlchemy errors
"""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, func, select

from auth.db import users
from auth.errors import Conflict, StoreError
from auth.store import CredentialStore


def _count_named(engine, user_name: str) -> int:
    with engine.connect() as conn:
        return conn.execute(select(func.count()).select_from(users).where(users.c.user_name == user_name)).scalar()


class TestCreate:
    def test_create_returns_user_with_assigned_id(self, credentials: CredentialStore) -> None:
        user = credentials.create("alice", "digest-a")
        assert user.user_id is not None
        assert user.user_name == "alice"
        assert user.password_digest == "digest-a"

    def test_ids_are_distinct(self, credentials: CredentialStore) -> None:
        a = credentials.create("alice", "d")
        b = credentials.create("bob", "d")
        assert a.user_id != b.user_id

    def test_duplicate_name_raises_conflict(self, credentials: CredentialStore, engine) -> None:
        credentials.create("alice", "digest-1")
        with pytest.raises(Conflict):
            credentials.create("alice", "digest-2")
        assert _count_named(engine, "alice") == 1
        # The original record is untouched.
        assert credentials.find_by_user_name("alice").password_digest == "digest-1"

    def test_names_are_case_sensitive(self, credentials: CredentialStore) -> None:
        credentials.create("alice", "d")
        other = credentials.create("Alice", "d")
        assert other.user_name == "Alice"


class TestLookup:
    def test_exists(self, credentials: CredentialStore) -> None:
        assert credentials.exists("alice") is False
        credentials.create("alice", "d")
        assert credentials.exists("alice") is True
        assert credentials.exists("ALICE") is False

    def test_find_by_user_name_hit(self, credentials: CredentialStore) -> None:
        created = credentials.create("alice", "digest-a")
        assert credentials.find_by_user_name("alice") == created

    def test_find_by_user_name_miss_returns_none(self, credentials: CredentialStore) -> None:
        assert credentials.find_by_user_name("nobody") is None


class TestStoreErrors:
    def test_missing_schema_raises_store_error(self) -> None:
        """A database without the auth tables fails opaquely as StoreError."""
        bare = CredentialStore(create_engine("sqlite:///:memory:"))
        with pytest.raises(StoreError) as excinfo:
            bare.find_by_user_name("alice")
        assert excinfo.value.__cause__ is not None
        with pytest.raises(StoreError):
            bare.create("alice", "d")
        with pytest.raises(StoreError):
            bare.exists("alice")
