"""
auth/passwords.py -- Password hashing capability (bcrypt).

The gateway consumes hashing as a capability with two operations:
    hash(plain) -> digest        adaptive, randomly salted per call
    verify(plain, digest) -> bool

BcryptHasher is the production implementation. Using bcrypt directly rather
than passlib[bcrypt]: passlib's wrap-bug detection feeds bcrypt a password
longer than 72 bytes, which current bcrypt rejects with an explicit error.

Length limit: bcrypt only reads the first MAX_PASSWORD_BYTES bytes of the
UTF-8 encoded password. bcrypt 4.x silently truncated longer input; bcrypt
5.x raises ValueError. Callers check fits_bcrypt() before hash().

Timing equalization: dummy_digest is computed once per hasher so a login for
an unknown username can still run one full bcrypt verification. Response time
then does not reveal whether the username exists.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

from typing import Protocol

import bcrypt

_DUMMY_PLAINTEXT = "sessionauth_timing_dummy"

MAX_PASSWORD_BYTES = 72


def fits_bcrypt(plain: str) -> bool:
    """True if the UTF-8 encoding of plain is short enough for bcrypt to read in full."""
    return len(plain.encode("utf-8")) <= MAX_PASSWORD_BYTES


class PasswordHasher(Protocol):
    dummy_digest: str

    def hash(self, plain: str) -> str: ...

    def verify(self, plain: str, digest: str) -> bool: ...


class BcryptHasher:
    """bcrypt with a configurable cost factor.

    rounds=12 is the production default. Tests pass rounds=4 (the bcrypt
    minimum) to keep the suite fast; the digest format is identical.
    """

    def __init__(self, rounds: int = 12) -> None:
        self.rounds = rounds
        self.dummy_digest: str = self.hash(_DUMMY_PLAINTEXT)

    def hash(self, plain: str) -> str:
        """Return a bcrypt digest of the given plaintext password.

        Raises ValueError for passwords over MAX_PASSWORD_BYTES (bcrypt 5.x;
        4.x truncated instead). AuthGateway.register() refuses such passwords
        before calling this.
        """
        return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plain: str, digest: str) -> bool:
        """Return True if the plaintext matches the digest. Constant-time inside bcrypt."""
        try:
            return bcrypt.checkpw(plain.encode("utf-8"), digest.encode("utf-8"))
        except ValueError:
            # Malformed digest or over-long password: treat as a mismatch.
            return False
