"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The only credential a request can carry is the session cookie. Both helpers
hand the raw Cookie header to AuthGateway.resolve_current_user(), which does
the parsing and the store lookup.

try_get_current_user() is the soft variant (returns None when anonymous).
get_current_user() wraps it and raises HTTP 401 if unauthenticated.

Layer rule: auth/dependencies.py may import from fastapi (for Request and
HTTPException) because this module is part of the FastAPI dependency
injection system. It does not import from api/.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.gateway import AuthGateway
from auth.models import Authenticated, User


def get_gateway(request: Request) -> AuthGateway:
    return request.app.state.gateway


def try_get_current_user(request: Request) -> User | None:
    """Resolve the session cookie to a User, or None for anonymous requests.

    StoreError is not swallowed here; the app's exception handler answers 503.
    """
    identity = get_gateway(request).resolve_current_user(request.headers.get("cookie"))
    if isinstance(identity, Authenticated):
        return identity.user
    return None


def get_current_user(request: Request) -> User:
    """Require authentication. Raises HTTP 401 if the request is not authenticated.

    Use as a FastAPI dependency:
        @router.get("/protected")
        async def route(user: User = Depends(get_current_user)): ...
    """
    user = try_get_current_user(request)
    if user is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
        )
    return user
