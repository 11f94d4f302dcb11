"""
core/errors.py -- Domain error taxonomy.

Every failure the service can report to a client is one of these classes.
They carry an HTTP status, a stable machine-readable code, and a message key
that the error boundary in api/main.py looks up in the request's locale.

Services and dependencies raise these; only api/main.py turns them into HTTP
responses. Nothing here knows about FastAPI.

Layer rule: core/ is the kernel. No imports from api/, web/ or auth/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for all errors surfaced to API clients."""

    status_code: int = 500
    code: str = "internal_error"
    message_key: str = "internal_error"

    def __init__(self, detail: str | None = None, *, message_key: str | None = None) -> None:
        super().__init__(detail or self.code)
        self.detail = detail
        if message_key is not None:
            self.message_key = message_key


# 400 ---------------------------------------------------------------------


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    message_key = "validation_failed"


class EmailExists(AppError):
    """Another user already owns this email. Raised on create and on lost races."""

    status_code = 400
    code = "email_exists"
    message_key = "email_exists"


class EmailInUse(EmailExists):
    """Email change collides with a different user's record."""

    code = "email_in_use"
    message_key = "email_in_use"


class LastAdminProtected(AppError):
    status_code = 400
    code = "last_admin"
    message_key = "last_admin"


# 401 ---------------------------------------------------------------------


class InvalidCredentials(AppError):
    """Unknown email and wrong password both raise this -- never distinguish them."""

    status_code = 401
    code = "invalid_credentials"
    message_key = "login_failed"


class Unauthorized(AppError):
    status_code = 401
    code = "unauthorized"
    message_key = "unauthorized"


# 403 ---------------------------------------------------------------------


class Forbidden(AppError):
    status_code = 403
    code = "forbidden"
    message_key = "unauthorized"


class AccountDisabled(Forbidden):
    code = "account_disabled"
    message_key = "account_disabled"


class AdminRequired(Forbidden):
    code = "admin_required"
    message_key = "admin_required"


class NotOwner(Forbidden):
    code = "not_owner"
    message_key = "not_your_account"


class RegistrationDisabled(Forbidden):
    code = "registration_disabled"
    message_key = "registration_disabled"


# 404 ---------------------------------------------------------------------


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    message_key = "user_not_found"


# 500 ---------------------------------------------------------------------


class InternalError(AppError):
    status_code = 500
    code = "internal_error"
    message_key = "internal_error"


class AdminKeyNotConfigured(InternalError):
    """An admin key was supplied but ADMIN_SECRET_KEY is unset. Fails closed."""

    code = "registration_unavailable"
    message_key = "registration_failed"
