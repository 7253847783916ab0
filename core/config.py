"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for NoteVault happen here. No module should
call os.getenv() or os.environ.get() directly.

Design patterns used:
  Explicit injection: create_app(settings) receives a Settings instance and
      builds the token codec, password hasher and session service from it.
      Nothing below api/ reads configuration on its own, so a test can hand
      in a Settings object with a different secret or expiry.

  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call. Only the process entry point (asgi.py) uses it.

  @model_validator(mode="after"): cross-field validation after all fields are
      resolved. Implements the SECRET_KEY policy: dev mode generates a key with
      a warning, production mode refuses to start without one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT HS256 signing
  relies on key entropy -- a short key weakens every issued token.

  A missing SECRET_KEY outside DEBUG mode is a hard startup failure, never a
  per-request error.

Layer rule: core/ is the kernel. This module may not import from api/ or auth/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("notevault.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'notevault.db'}"


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    Every field except SECRET_KEY has a usable default. Field names map to
    upper-cased env vars (secret_key -> SECRET_KEY, port -> PORT).

    Settings is loaded once at startup and treated as read-only for the
    lifetime of the process.
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
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "127.0.0.1"
    port: int = 3000
    # Comma-separated lists. Kept as plain strings so a value like
    # "http://a,http://b" works without JSON quoting in .env files.
    allowed_origins: str = "http://localhost:3000,http://localhost:3002"
    allowed_hosts: str = "*"
    static_dir: str = ""

    # ------------------------------------------------------------------
    # Datastore
    # ------------------------------------------------------------------

    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = 8 * 3600
    bcrypt_rounds: int = 10
    secure_cookies: bool = False
    cookie_name: str = "token"

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def cors_origins(self) -> list[str]:
        return _split_csv(self.allowed_origins)

    @property
    def trusted_hosts(self) -> list[str]:
        return _split_csv(self.allowed_hosts) or ["*"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode (DEBUG=false or not set): refuse to start if
            SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
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
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        if self.token_expire_seconds <= 0:
            raise ValueError("TOKEN_EXPIRE_SECONDS must be positive.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide Settings singleton.

    Used by asgi.py only. Everything else receives Settings through
    create_app() and app.state.settings.

    In tests: build Settings(...) directly instead, or call
    get_settings.cache_clear() after changing environment variables.
    """
    return Settings()
