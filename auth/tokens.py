"""
auth/tokens.py -- Password hashing and session token utilities.

Security design decisions:
  Passwords: bcrypt used directly. The work factor comes from
       Settings.bcrypt_rounds and can be overridden per call. The _DUMMY_HASH
       constant enables timing equalization in AuthService.login() so response
       time does not reveal whether an email is registered [C1].

  Sessions: a session token is a JWT (python-jose, HS256) signed with
       SECRET_KEY and carrying user_id and an expiry. A bare numeric id in a
       cookie would let anyone impersonate any user by editing the cookie; the
       signature prevents that. The user is still re-read from the store on
       every request, so deactivation takes effect immediately.

  Transport: the token travels in an httpOnly cookie. API clients may instead
       send it as "X-Session-Token" or "Authorization: Bearer", which take
       precedence over the cookie (see auth/dependencies.py).

Layer rule: no imports from api/ or web/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from core.config import get_settings

logger = logging.getLogger("useradmin.auth")

_settings = get_settings()

_ALGORITHM = "HS256"

SESSION_COOKIE = "session_token"
SESSION_HEADER = "X-Session-Token"

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int | None = None) -> str:
    """Return a salted bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes. The request schemas cap password
    length well below that.
    """
    salt = bcrypt.gensalt(rounds=rounds or _settings.bcrypt_rounds)
    return bcrypt.hashpw(plain.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed or empty digest
        return False


# Timing equalization dummy hash [C1]. Always verify against something, even
# when the email does not exist.
_DUMMY_HASH: str = hash_password("useradmin_timing_dummy")


def equalize_timing(plain: str) -> None:
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------


def create_session_token(user_id: int, expire_seconds: int = 0) -> str:
    """Encode a signed session token for user_id.

    Args:
        user_id:        Numeric user ID stored in the DB.
        expire_seconds: Session duration. 0 (default) uses
                        Settings.token_expire_seconds.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=duration)
    payload = {"sub": str(user_id), "user_id": user_id, "exp": expire}
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_session_token(token: str) -> int | None:
    """Return the user id carried by a valid token, or None.

    Bad signatures, expired tokens and tokens without an integer user_id all
    return None. Callers treat None as unauthenticated.
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except JWTError:
        return None
    user_id = payload.get("user_id")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    return user_id


# ---------------------------------------------------------------------------
# Cookie helpers
# ---------------------------------------------------------------------------


def set_session_cookie(response, token: str, expire_seconds: int = 0) -> None:
    """Write the session token as an httpOnly cookie on the response.

    samesite="lax" keeps the cookie off cross-site POSTs. secure follows
    SECURE_COOKIES. max_age matches the token expiry so both expire together.
    """
    duration = expire_seconds if expire_seconds > 0 else _settings.token_expire_seconds
    response.set_cookie(
        SESSION_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=_settings.secure_cookies,
        max_age=duration,
    )


def clear_session_cookie(response) -> None:
    response.delete_cookie(SESSION_COOKIE)
