"""
api/routes/v1/auth.py -- Session authentication REST endpoints.

Routes:
  POST /api/v1/auth/register   -- create user, start session; sets cookie; 201
  POST /api/v1/auth/login      -- password login, replaces any prior session; sets cookie
  POST /api/v1/auth/logout     -- revokes the cookie's session, clears cookie; 200
  GET  /api/v1/auth/me         -- current user (requires auth)
  GET  /api/v1/auth/session    -- {authenticated, username}; never 401

Security:
  All AuthGateway decisions are made on the raw Cookie header; routes only map
  outcomes to status codes and write Set-Cookie.
  Wrong username and wrong password share one error ("invalid_credentials")
  so the response does not reveal which usernames exist.
  Cache-Control: no-store on every response that sets or clears the cookie.
  StoreError propagates to the app-level handler (503).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import (
    ErrorDetail,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    SessionStatusResponse,
    UserResponse,
)
from auth.dependencies import get_current_user, get_gateway, try_get_current_user
from auth.gateway import AuthGateway
from auth.models import AuthError, AuthResult, Session, User

# Auth policy:
# - POST /api/v1/auth/register: public -- creates the account it signs into
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - POST /api/v1/auth/logout:   public -- an anonymous logout is a no-op, not an error
# - GET  /api/v1/auth/session:  public -- answers "am I signed in?" without a 401
# - GET  /api/v1/auth/me:       requires auth (get_current_user)
router = APIRouter()

_ERRORS: dict[AuthError, tuple[int, str]] = {
    AuthError.INVALID_CREDENTIALS: (401, "Invalid username or password."),
    AuthError.USERNAME_TAKEN: (409, "Username already taken."),
    AuthError.PASSWORD_TOO_LONG: (422, "Password must be at most 72 bytes."),
}


def _error_response(error: AuthError) -> JSONResponse:
    status_code, message = _ERRORS[error]
    resp = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=error.value, message=message)).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _signed_in_response(gateway: AuthGateway, session: Session, username: str, status_code: int) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=UserResponse(user_id=session.user_id, username=username).model_dump(),
    )
    resp.headers.append("set-cookie", gateway.session_cookie(session))
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _respond(gateway: AuthGateway, result: AuthResult, username: str, status_code: int) -> JSONResponse:
    if not result.ok:
        return _error_response(result.error)
    return _signed_in_response(gateway, result.session, username, status_code)


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", status_code=201, response_model=UserResponse)
def register(body: RegisterRequest, gateway: AuthGateway = Depends(get_gateway)) -> JSONResponse:
    """Create an account and sign it in. 409 if the username is taken."""
    return _respond(gateway, gateway.register(body.username, body.password), body.username, 201)


@router.post("/auth/login", response_model=UserResponse)
def login(body: LoginRequest, gateway: AuthGateway = Depends(get_gateway)) -> JSONResponse:
    """Authenticate with username and password and start a fresh session.

    Any session the user already had is replaced; its token stops working.
    """
    return _respond(gateway, gateway.login(body.username, body.password), body.username, 200)


@router.post("/auth/logout", response_model=MessageResponse)
def logout(request: Request, gateway: AuthGateway = Depends(get_gateway)) -> JSONResponse:
    """Revoke the current session (if any) and clear the cookie."""
    gateway.logout(request.headers.get("cookie"))
    resp = JSONResponse(content=MessageResponse(message="Logged out.").model_dump())
    resp.headers.append("set-cookie", gateway.cleared_cookie())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/session", response_model=SessionStatusResponse)
def session_status(request: Request) -> SessionStatusResponse:
    """Report whether the request carries a live session."""
    user = try_get_current_user(request)
    if user is None:
        return SessionStatusResponse(authenticated=False)
    return SessionStatusResponse(authenticated=True, username=user.user_name)


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return identity information for the currently authenticated user."""
    return UserResponse(user_id=current_user.user_id, username=current_user.user_name)
