"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/register          -- create account; 201 with public user view
  POST /api/v1/auth/login             -- password login; sets session cookies
  POST /api/v1/auth/refresh           -- rotate the token pair using cookies
  POST /api/v1/auth/logout            -- delete the session; clears cookies; 204
  POST /api/v1/auth/send-reset-email  -- mail a password-reset link
  POST /api/v1/auth/reset-pwd         -- set a new password with a reset token
  GET  /api/v1/auth/me                -- current user (Bearer access token)

Token transport:
  The access token is returned in the JSON body and sent back by clients as
  "Authorization: Bearer ...". The refresh token and session id are only ever
  set as httpOnly cookies (refresh_token, session_id) that expire together
  with the refresh window. Every refresh issues a new session id, so both
  cookies are rewritten on each rotation.

Handlers are plain `def` so FastAPI runs them in its thread pool: bcrypt and
the SQLAlchemy calls block only the request that made them.

Security:
  Cache-Control: no-store on every response that carries tokens.
  Login returns the same 401 for unknown email and wrong password.
"""

from __future__ import annotations

from typing import TypeVar

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from api.models import (
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetEmailRequest,
    ResetPasswordRequest,
    SessionResponse,
    UserResponse,
)
from auth.dependencies import get_auth_service, get_current_user
from auth.models import Session, User
from auth.results import Err, Result
from auth.service import AuthService
from core.config import get_settings

T = TypeVar("T")

REFRESH_COOKIE = "refresh_token"
SESSION_COOKIE = "session_id"

router = APIRouter()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def unwrap(result: Result[T]) -> T:
    """Return the Ok value or raise the HTTPException matching the Err kind."""
    if isinstance(result, Err):
        raise HTTPException(status_code=result.kind.status, detail=result.kind.as_detail())
    return result.value


def _session_response(session: Session, status_code: int = 200) -> JSONResponse:
    """Build the login/refresh response and attach the session cookies."""
    resp = JSONResponse(
        status_code=status_code,
        content=SessionResponse.from_session(session).model_dump(mode="json"),
    )
    cookie_opts = {
        "httponly": True,
        "samesite": "lax",
        "secure": get_settings().secure_cookies,
        "expires": session.refresh_token_valid_until,
    }
    resp.set_cookie(REFRESH_COOKIE, session.refresh_token, **cookie_opts)
    resp.set_cookie(SESSION_COOKIE, session.id, **cookie_opts)
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _clear_session_cookies(resp: Response) -> None:
    resp.delete_cookie(REFRESH_COOKIE)
    resp.delete_cookie(SESSION_COOKIE)


# ---------------------------------------------------------------------------
# Registration, login, session rotation
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=UserResponse, status_code=201)
def register(body: RegisterRequest, service: AuthService = Depends(get_auth_service)) -> UserResponse:
    """Create an account. Returns 409 if the email is already registered."""
    user = unwrap(service.register(body.email, body.password, body.profile()))
    return UserResponse.from_user(user)


@router.post("/auth/login", response_model=SessionResponse)
def login(body: LoginRequest, service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    """Authenticate with email and password; any previous session is replaced."""
    session = unwrap(service.login(body.email, body.password))
    return _session_response(session)


@router.post("/auth/refresh", response_model=SessionResponse)
def refresh(request: Request, service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    """Trade the refresh_token/session_id cookies for a new token pair.

    The presented refresh token is consumed whether or not the client
    receives this response.
    """
    session_id = request.cookies.get(SESSION_COOKIE)
    refresh_token = request.cookies.get(REFRESH_COOKIE)
    if not session_id or not refresh_token:
        raise HTTPException(
            status_code=401,
            detail={"code": "session_not_found", "message": "Session not found"},
        )
    session = unwrap(service.refresh(session_id, refresh_token))
    return _session_response(session)


@router.post("/auth/logout", status_code=204)
def logout(request: Request, service: AuthService = Depends(get_auth_service)) -> Response:
    """Delete the current session (if any) and clear the cookies. Always 204."""
    session_id = request.cookies.get(SESSION_COOKIE)
    if session_id:
        unwrap(service.logout(session_id))
    resp = Response(status_code=204)
    _clear_session_cookies(resp)
    return resp


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------


@router.post("/auth/send-reset-email", response_model=MessageResponse)
def send_reset_email(body: ResetEmailRequest, service: AuthService = Depends(get_auth_service)) -> MessageResponse:
    unwrap(service.request_password_reset(body.email))
    return MessageResponse(message="Reset password email has been successfully sent.")


@router.post("/auth/reset-pwd", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest, service: AuthService = Depends(get_auth_service)
) -> JSONResponse:
    """Set a new password. The user's session is revoked, so the session
    cookies on this client are cleared too."""
    unwrap(service.reset_password(body.token, body.password))
    resp = JSONResponse(content=MessageResponse(message="Password has been successfully reset.").model_dump())
    _clear_session_cookies(resp)
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the account behind the presented access token."""
    return UserResponse.from_user(current_user)
