"""
auth/cookies.py -- Session cookie encoding and decoding.

Wire format (one name/value pair):
    __session=<url-encoded token>; Max-Age=300; Path=/; HttpOnly; Secure; SameSite=Lax

httponly: JS cannot read the cookie (XSS mitigation).
samesite=Lax: cookie sent on same-site requests and top-level GET navigations.
secure: only sent over HTTPS. May be disabled for plain-HTTP local development
    through Settings.secure_cookies.
max_age: matches the session TTL so the browser drops the cookie when the
    server-side row stops validating.

Values are percent-encoded on the way out and decoded on the way in, so a token
alphabet change never produces an unparseable header. An absent or empty Cookie
header parses to no cookies at all.

Layer rule: no imports from api/ or core/. Starlette is used only for its
cookie parser.
"""

from __future__ import annotations

from urllib.parse import quote, unquote

from starlette.requests import cookie_parser

SESSION_COOKIE_NAME = "__session"
DEFAULT_MAX_AGE_SECONDS = 5 * 60


def serialize_cookie(
    name: str,
    value: str,
    max_age: int = DEFAULT_MAX_AGE_SECONDS,
    secure: bool = True,
) -> str:
    """Return a Set-Cookie header value for the given name and value."""
    parts = [
        f"{name}={quote(value, safe='')}",
        f"Max-Age={max_age}",
        "Path=/",
        "HttpOnly",
    ]
    if secure:
        parts.append("Secure")
    parts.append("SameSite=Lax")
    return "; ".join(parts)


def clear_cookie(name: str, secure: bool = True) -> str:
    """Return a Set-Cookie header value that empties the cookie and expires it now."""
    return serialize_cookie(name, "", max_age=0, secure=secure)


def parse_cookie(cookie_header: str | None) -> dict[str, str]:
    """Parse a Cookie request header into a name -> decoded value mapping."""
    if not cookie_header:
        return {}
    return {name: unquote(value) for name, value in cookie_parser(cookie_header).items()}


def session_token(cookie_header: str | None, name: str = SESSION_COOKIE_NAME) -> str:
    """Return the session token carried in the Cookie header, or "" when there is none."""
    return parse_cookie(cookie_header).get(name, "")
