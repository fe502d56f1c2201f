"""
auth/errors.py -- Exceptions raised by the auth stores.

Only store-originated conditions are exceptions. Lookup misses are returned as
None and login/registration failures as AuthError values (see auth/models.py).

  Conflict    -- a uniqueness constraint fired on insert (username taken).
                 Terminal, never retried. The gateway maps it to
                 AuthError.USERNAME_TAKEN.
  StoreError  -- anything else the database raised: connectivity, locking,
                 malformed rows, unsupported dialect. Opaque on purpose --
                 callers treat it as fatal for the current request and do not
                 classify it further. The original SQLAlchemy exception is
                 chained as __cause__ for logging.
"""


class AuthStoreError(Exception):
    """Base class for exceptions raised by CredentialStore and SessionStore."""


class Conflict(AuthStoreError):
    """A row with the same unique key already exists."""


class StoreError(AuthStoreError):
    """The relational store failed; the operation had no effect or an unknown one."""
