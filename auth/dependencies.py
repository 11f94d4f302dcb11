"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

The session token is read from, in priority order:
  1. X-Session-Token header -- explicit override for API clients and tests.
  2. Authorization: Bearer <token> header.
  3. "session_token" cookie -- set by POST /api/auth/login.

A decoded token is only a claim; the user is always re-read from the store so
deactivation and deletion take effect on the next request.

get_current_user() raises Unauthorized / AccountDisabled.
require_admin() additionally raises AdminRequired.

All failures are raised as core.errors exceptions; api/main.py renders them.

Layer rule: no imports from api/ or web/. auth/dependencies.py may import from
fastapi because it is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import User
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import SESSION_COOKIE, SESSION_HEADER, decode_session_token
from core.errors import AccountDisabled, AdminRequired, Unauthorized
from core.i18n import LOCALE_COOKIE, MessageCatalog, Translator


def _read_token(request: Request) -> str | None:
    token = request.headers.get(SESSION_HEADER)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return request.cookies.get(SESSION_COOKIE) or None


def _resolve_user(request: Request) -> User | None:
    token = _read_token(request)
    if not token:
        return None
    user_id = decode_session_token(token)
    if user_id is None:
        return None
    user_store: UserStore = request.app.state.user_store
    return user_store.get_by_id(user_id)


def get_current_user(request: Request) -> User:
    """Require an authenticated, active user.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    user = _resolve_user(request)
    if user is None:
        raise Unauthorized()
    if not user.is_active:
        raise AccountDisabled()
    request.state.user = user
    return user


def require_admin(request: Request) -> User:
    """Require an active admin. 401 if unauthenticated, 403 if not admin."""
    user = get_current_user(request)
    if not user.is_admin:
        raise AdminRequired()
    return user


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_translator(request: Request) -> Translator:
    """Return the message lookup for the locale negotiated from the request cookie."""
    catalog: MessageCatalog = request.app.state.messages
    return catalog.translator(request.cookies.get(LOCALE_COOKIE))
