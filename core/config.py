"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for the user-admin backend happen here. No
module should call os.getenv() or os.environ.get() directly -- import
get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, admin_secret_key -> ADMIN_SECRET_KEY).

  @model_validator(mode="after"): cross-field validation once every field is
      resolved. Dev mode generates a signing key with a warning, production
      mode refuses to start without one.

Security notes:
  [M6] SECRET_KEY shorter than 32 chars is rejected outright. JWT signing of
       session tokens relies on key entropy.

  [M7] In production mode (DEBUG not set or false), a missing SECRET_KEY is a
       hard startup failure.

  [R1] ADMIN_SECRET_KEY has no default value. An empty string means "not
       configured" and admin registration fails closed (see auth/service.py).

Layer rule: core/ is the kernel. This module may not import from api/, web/
or auth/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("useradmin.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'useradmin.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    app_env: str = "production"
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    admin_secret_key: str = ""  # [R1] empty = admin registration disabled
    secure_cookies: bool = False
    token_expire_seconds: int = 8 * 3600
    bcrypt_rounds: int = 12

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    default_locale: str = "zh-CN"
    login_rate_limit: str = "10/minute"
    rate_limit_enabled: bool = True
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:8787"]
    allowed_hosts: list[str] = ["*"]
    # Directory holding the built SPA (index.html + assets). Empty means the
    # frontend is served by its own dev server.
    static_dir: str = ""

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("bcrypt_rounds")
    @classmethod
    def validate_bcrypt_rounds(cls, value: int) -> int:
        """bcrypt accepts log2 cost factors between 4 and 31 inclusive."""
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return value

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce SECRET_KEY policy [M6] [M7].

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Sessions will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if SECRET_KEY is missing.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("WARNING: Using auto-generated SECRET_KEY. Sessions will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @property
    def is_development(self) -> bool:
        return self.debug or self.app_env == "development"


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
