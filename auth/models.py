"""
auth/models.py -- Domain dataclasses and outcome types for authentication.

Pattern: Data class (pure data container, zero logic). Stores and the gateway
do the work; these types only carry shape.

Outcome types:
  AuthResult carries either a Session or an AuthError. Expected failures
  (bad password, taken username) are returned as values, never raised, so
  callers branch on result.ok instead of catching exceptions.

  Authenticated / Anonymous are the two terminal states of resolving a
  request's identity. ANONYMOUS is the shared instance.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


@dataclass(frozen=True)
class User:
    """A registered identity.

    user_name is unique and case-sensitive. password_digest is opaque bcrypt
    output and is only ever checked through the hasher's verify().
    """

    user_id: int
    user_name: str
    password_digest: str


@dataclass(frozen=True)
class Session:
    """The single live session row for a user.

    session_id is the opaque token placed in the cookie. created_at comes from
    the store's clock and opens the validity window.
    """

    session_id: str
    user_id: int
    created_at: datetime


class AuthError(str, Enum):
    """User-facing login/registration failures.

    No value says *why* a login failed -- unknown user and wrong
    password both map to INVALID_CREDENTIALS.
    """

    INVALID_CREDENTIALS = "invalid_credentials"
    USERNAME_TAKEN = "username_taken"
    # Registration only. bcrypt cannot hash more than 72 bytes.
    PASSWORD_TOO_LONG = "password_too_long"


@dataclass(frozen=True)
class AuthResult:
    session: Session | None = None
    error: AuthError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.session is not None

    @classmethod
    def success(cls, session: Session) -> AuthResult:
        return cls(session=session)

    @classmethod
    def failure(cls, error: AuthError) -> AuthResult:
        return cls(error=error)


@dataclass(frozen=True)
class Authenticated:
    user: User

    @property
    def is_authenticated(self) -> bool:
        return True


@dataclass(frozen=True)
class Anonymous:
    @property
    def is_authenticated(self) -> bool:
        return False


ANONYMOUS = Anonymous()
