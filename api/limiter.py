"""
api/limiter.py -- Shared slowapi rate limiter instance.

Imported by api/main.py (to mount as middleware) and by api/routes/auth.py
(to apply per-route limits with @limiter.limit()).

A single shared instance keeps every route on the same in-memory counter
store. RATE_LIMIT_ENABLED=false turns limiting off (the test suite does this
so repeated logins do not trip the limit).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=_settings.rate_limit_enabled,
)

LOGIN_RATE_LIMIT = _settings.login_rate_limit
