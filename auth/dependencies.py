"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

API calls authenticate with "Authorization: Bearer <access token>". The token
is opaque: it is resolved through the sessions table by
AuthService.authenticate(), so logout and password reset take effect on the
very next request.

get_auth_service() hands route handlers the shared AuthService on app.state.
get_current_user() raises HTTP 401 if the request is not authenticated.

Layer rule: no imports from api/ or contacts/.
  auth/dependencies.py may import from fastapi (for HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import HTTPException, Request

from auth.models import User
from auth.results import Err
from auth.service import AuthService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_user(request: Request) -> User:
    """Require a valid access token. Raises HTTP 401 otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Please provide Authorization header."},
        )

    result = get_auth_service(request).authenticate(token)
    if isinstance(result, Err):
        raise HTTPException(status_code=result.kind.status, detail=result.kind.as_detail())
    return result.value
