"""
api/main.py -- FastAPI application entry point for the user-admin backend.

Run with:      python main.py serve
               uvicorn asgi:app --reload

Middleware stack (outermost to innermost). Starlette makes the LAST
add_middleware() call the outermost layer, so they are registered in reverse:
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for the SPA dev server origins
  3. SlowAPIMiddleware     -- enforces per-route rate limits from api.limiter

Lifespan owns the process-wide resources: it builds the UserStore, the
AuthService that wraps it, and the localized MessageCatalog, stores them on
app.state, and closes the store on shutdown. Nothing else constructs them.

Error boundary: every core.errors.AppError, validation failure, HTTP error and
unexpected exception is rendered here as the same ErrorResponse envelope with
a message in the request's locale.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse, MessageResponse
from api.routes.admin import router as admin_router
from api.routes.auth import router as auth_router
from api.routes.users import router as users_router
from auth.dependencies import get_translator
from auth.service import AuthService
from auth.store import UserStore
from core.config import get_settings
from core.errors import AppError
from core.i18n import LOCALE_COOKIE, MessageCatalog, Translator

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("useradmin.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the store on startup and close it on shutdown.

    Startup order: store first, then the service that depends on it, then the
    message catalog (independent).
    """
    logger.info("User-admin API starting up (env=%s)", _settings.app_env)
    app.state.user_store = UserStore(_settings.database_url)
    app.state.auth_service = AuthService(
        app.state.user_store,
        admin_secret_key=_settings.admin_secret_key,
        bcrypt_rounds=_settings.bcrypt_rounds,
    )
    app.state.messages = MessageCatalog(default_locale=_settings.default_locale)
    if not _settings.admin_secret_key:
        logger.warning("ADMIN_SECRET_KEY is not set -- admin registration is disabled")
    if not app.state.user_store.has_users():
        logger.info("No users yet -- register the first admin via POST /api/auth/register or `main.py create-admin`")

    yield

    app.state.user_store.close()
    logger.info("User-admin API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="User Admin API",
    description="Users CRUD with email/password authentication and admin-gated registration.",
    version=__version__,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Session-Token"],
    expose_headers=["Content-Length", "X-Session-Token"],
    max_age=600,
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=_settings.allowed_hosts,
)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


# ---------------------------------------------------------------------------
# Request logging middleware
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api", tags=["Auth"])
app.include_router(users_router, prefix="/api", tags=["Users"])
app.include_router(admin_router, prefix="/api", tags=["Admin"])
# The SPA fallback router is mounted by asgi.py, not here.


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------

# Validation failures are reported with the message for the first offending
# field. Keys are wire (camelCase) field names.
_FIELD_MESSAGES = {
    "name": "name_min_length",
    "email": "invalid_email",
    "password": "password_min_length",
}

# (field, error type) pairs whose message differs from the field default.
_FIELD_TYPE_MESSAGES = {
    ("password", "string_too_long"): "password_max_length",
    ("password", "password_too_long"): "password_max_length",
}


def _translator(request: Request) -> Translator:
    """Locale-bound lookup, usable even if the lifespan never ran."""
    if getattr(request.app.state, "messages", None) is None:
        return MessageCatalog(default_locale=_settings.default_locale).translator(request.cookies.get(LOCALE_COOKIE))
    return get_translator(request)


def _error_response(
    request: Request, status_code: int, code: str, message_key: str, detail: str | None = None
) -> JSONResponse:
    _ = _translator(request)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=ErrorDetail(code=code, message=_(message_key), detail=detail)).model_dump(),
    )


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error with its status, code and localized message."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.detail)
    detail = exc.detail if exc.status_code < 500 else None
    return _error_response(request, exc.status_code, exc.code, exc.message_key, detail)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with the message for the first invalid field."""
    # The rejected value is left out so a bad password is never echoed back.
    errors = [{k: v for k, v in err.items() if k != "input"} for err in exc.errors()]
    message_key = "validation_failed"
    if errors:
        loc = errors[0].get("loc", ())
        field = loc[-1] if loc else None
        message_key = _FIELD_TYPE_MESSAGES.get((field, errors[0].get("type")))
        message_key = message_key or _FIELD_MESSAGES.get(field, "validation_failed")
    return _error_response(request, 400, "validation_error", message_key, str(errors))


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with Retry-After when a rate limit is exceeded."""
    retry_after = int(getattr(exc, "retry_after", 60))
    response = _error_response(request, 429, "rate_limited", "too_many_requests", str(exc))
    response.headers["Retry-After"] = str(retry_after)
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured error for framework-raised HTTP errors (unknown route, bad method)."""
    # 405 comes from the GET-only SPA catch-all too, so an unknown API path
    # reads the same whatever the method.
    message_key = "not_found" if exc.status_code in (404, 405) else "validation_failed"
    if exc.status_code >= 500:
        message_key = "internal_error"
    return _error_response(request, exc.status_code, f"http_{exc.status_code}", message_key, str(exc.detail))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The raw exception goes to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(request, 500, "internal_error", "internal_error")


# ---------------------------------------------------------------------------
# Health and greeting
#
# Defined directly in main.py so they are reachable regardless of router
# registration state. No rate limit and no auth.
# ---------------------------------------------------------------------------


@app.get("/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return liveness, environment and database status."""
    components = {"app": "ok", "database": "ok"}
    store: UserStore | None = getattr(request.app.state, "user_store", None)
    try:
        if store is None or not store.ping():
            components["database"] = "error"
    except Exception:
        logger.exception("Health check database ping failed")
        components["database"] = "error"
    env = "development" if _settings.is_development else "production"
    status = "ok" if components["database"] == "ok" else "degraded"
    return HealthResponse(status=status, env=env, version=__version__, components=components)


@app.get("/api/hello", response_model=MessageResponse, tags=["Health"])
def hello(_: Translator = Depends(get_translator)) -> MessageResponse:
    return MessageResponse(message=_("hello"))
