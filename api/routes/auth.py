"""
api/routes/auth.py -- Login, registration and session endpoints.

Routes:
  POST /api/auth/login     -- password login; sets the session cookie
  POST /api/auth/register  -- admin registration gated by the admin secret
  POST /api/auth/logout    -- clears the session cookie
  GET  /api/auth/me        -- current user (requires auth)

Security:
  [H2] POST /login and POST /register are rate-limited per IP.
  [C1] AuthService.login() equalizes timing for unknown emails.
  [M5] Cache-Control: no-store on responses that carry a session.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.limiter import LOGIN_RATE_LIMIT, limiter
from api.models import LoginRequest, MessageResponse, RegisterRequest, UserEnvelope, UserResponse
from auth.dependencies import get_auth_service, get_current_user, get_translator
from auth.models import User
from auth.service import AuthService
from auth.tokens import SESSION_HEADER, clear_session_cookie, create_session_token, set_session_cookie
from core.i18n import Translator

# Auth policy:
# - POST /api/auth/login:     public
# - POST /api/auth/register:  public, but refused without the admin secret
# - POST /api/auth/logout:    public -- clearing a cookie needs no prior auth
# - GET  /api/auth/me:        requires auth (get_current_user)
router = APIRouter()


@limiter.limit(LOGIN_RATE_LIMIT)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/login", response_model=UserEnvelope)
def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
    _: Translator = Depends(get_translator),
) -> JSONResponse:
    """Authenticate with email and password; issue the session.

    Unknown email and wrong password both produce 401 invalid_credentials.
    A correct password on a disabled account produces 403 account_disabled.
    The token is also returned in the X-Session-Token header for API clients.
    """
    user = service.login(body.email, body.password)
    token = create_session_token(user.id)
    resp = JSONResponse(
        status_code=200,
        content=UserEnvelope(message=_("login_success"), user=UserResponse.from_user(user)).model_dump(by_alias=True),
    )
    set_session_cookie(resp, token)
    resp.headers[SESSION_HEADER] = token
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


@limiter.limit(LOGIN_RATE_LIMIT)  # [H2]
@router.post("/auth/register", response_model=UserEnvelope, status_code=201)
def register(
    request: Request,
    body: RegisterRequest,
    service: AuthService = Depends(get_auth_service),
    _: Translator = Depends(get_translator),
) -> UserEnvelope:
    """Register an admin account. Requires secretKey to match ADMIN_SECRET_KEY.

    Does not log the new account in; the client calls /auth/login next.
    """
    user = service.register(body.email, body.password, name=body.name, admin_key=body.secret_key)
    return UserEnvelope(message=_("admin_registration_success"), user=UserResponse.from_user(user))


@router.post("/auth/logout", response_model=MessageResponse)
def logout(_: Translator = Depends(get_translator)) -> JSONResponse:
    """Clear the session cookie."""
    resp = JSONResponse(content=MessageResponse(message=_("logout_success")).model_dump(by_alias=True))
    clear_session_cookie(resp)
    return resp


@router.get("/auth/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)) -> UserResponse:
    """Return the currently authenticated user."""
    return UserResponse.from_user(current_user)
