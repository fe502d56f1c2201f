"""
auth/gateway.py -- Login, registration, logout and identity resolution.

AuthGateway orchestrates CredentialStore + SessionStore + the password hasher
+ the cookie codec. It is the only entry point the HTTP layer uses.

Outcomes:
  login/register return AuthResult. Expected failures come back as
  AuthError values; they are never raised and never logged with a reason.
  resolve_current_user returns Authenticated(user) or ANONYMOUS.
  StoreError is not caught here -- it is fatal for the request and the HTTP
  layer turns it into a 503.

Enumeration resistance:
  Unknown username and wrong password both yield INVALID_CREDENTIALS, and an
  unknown username still costs one bcrypt verification (dummy digest).
  Expired and missing session tokens both resolve to ANONYMOUS.

Cookie responsibility:
  After a successful login/register the caller must send session_cookie(); on
  logout it must send cleared_cookie(). The gateway never touches responses.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging

from auth.cookies import SESSION_COOKIE_NAME, clear_cookie, serialize_cookie, session_token
from auth.errors import Conflict
from auth.models import ANONYMOUS, Anonymous, Authenticated, AuthError, AuthResult, Session
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher, fits_bcrypt
from auth.store import CredentialStore, SessionStore

logger = logging.getLogger("sessionauth.auth")

# Stand-in for an over-long login password when paying the dummy verification.
_TIMING_PLAINTEXT = "x" * MAX_PASSWORD_BYTES


class AuthGateway:
    """Authentication flows over injected stores.

    Usage:
        gateway = AuthGateway(CredentialStore(engine), SessionStore(engine), BcryptHasher())
        result = gateway.register("alice", "secret1")
        if result.ok:
            response.headers.append("set-cookie", gateway.session_cookie(result.session))
    """

    def __init__(
        self,
        credentials: CredentialStore,
        sessions: SessionStore,
        hasher: PasswordHasher,
        cookie_name: str = SESSION_COOKIE_NAME,
        secure_cookies: bool = True,
    ) -> None:
        self.credentials = credentials
        self.sessions = sessions
        self.hasher = hasher
        self.cookie_name = cookie_name
        self.secure_cookies = secure_cookies

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def resolve_current_user(self, cookie_header: str | None) -> Authenticated | Anonymous:
        """Map a raw Cookie header to the request's identity."""
        token = session_token(cookie_header, self.cookie_name)
        if not token:
            return ANONYMOUS
        user = self.sessions.validate(token)
        if user is None:
            return ANONYMOUS
        return Authenticated(user)

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    def login(self, user_name: str, password: str) -> AuthResult:
        """Verify credentials and issue a session, replacing any previous one."""
        if not fits_bcrypt(password):
            # No stored digest can match it. Same cost as a real check.
            self.hasher.verify(_TIMING_PLAINTEXT, self.hasher.dummy_digest)
            logger.info("Login rejected")
            return AuthResult.failure(AuthError.INVALID_CREDENTIALS)
        user = self.credentials.find_by_user_name(user_name)
        if user is None:
            # Same bcrypt cost as a real check; do not return before hashing.
            self.hasher.verify(password, self.hasher.dummy_digest)
            logger.info("Login rejected")
            return AuthResult.failure(AuthError.INVALID_CREDENTIALS)
        if not self.hasher.verify(password, user.password_digest):
            logger.info("Login rejected")
            return AuthResult.failure(AuthError.INVALID_CREDENTIALS)

        session = self.sessions.issue_or_refresh(user.user_id)
        logger.info("Login succeeded for user_id=%d", user.user_id)
        return AuthResult.success(session)

    def register(self, user_name: str, password: str) -> AuthResult:
        """Create a user and sign them in.

        Passwords longer than MAX_PASSWORD_BYTES (UTF-8) are refused with
        PASSWORD_TOO_LONG before anything is hashed or stored.
        """
        if not fits_bcrypt(password):
            logger.info("Registration rejected: password too long")
            return AuthResult.failure(AuthError.PASSWORD_TOO_LONG)
        try:
            user = self.credentials.create(user_name, self.hasher.hash(password))
        except Conflict:
            logger.info("Registration rejected: username taken")
            return AuthResult.failure(AuthError.USERNAME_TAKEN)

        session = self.sessions.issue_or_refresh(user.user_id)
        logger.info("Registered user_id=%d", user.user_id)
        return AuthResult.success(session)

    def logout(self, cookie_header: str | None) -> None:
        """Revoke the session named by the Cookie header. Already logged out is not an error."""
        token = session_token(cookie_header, self.cookie_name)
        if not token:
            return
        revoked = self.sessions.revoke(token)
        if revoked is not None:
            logger.info("Logged out user_id=%d", revoked.user_id)

    # ------------------------------------------------------------------
    # Outbound cookie values
    # ------------------------------------------------------------------

    def session_cookie(self, session: Session) -> str:
        """Set-Cookie value carrying the session token. Max-Age follows the session TTL."""
        return serialize_cookie(
            self.cookie_name,
            session.session_id,
            max_age=self.sessions.ttl_seconds,
            secure=self.secure_cookies,
        )

    def cleared_cookie(self) -> str:
        """Set-Cookie value that empties and immediately expires the session cookie."""
        return clear_cookie(self.cookie_name, secure=self.secure_cookies)
