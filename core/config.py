"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for ResortGate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. token_expire_seconds -> TOKEN_EXPIRE_SECONDS).

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved. A missing or short SECRET_KEY is a startup failure, never a
      per-request one.

Constructor injection: the values here are read once in the application
lifespan and passed into TokenCodec, FixedWindowRateLimiter and the stores.
Nothing in auth/ reads Settings at call time.

Layer rule: core/ is the kernel. This module may not import from api/, auth/,
or places/.
"""

import logging
from functools import lru_cache
from pathlib import Path

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("resortgate.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'resortgate.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    SECRET_KEY has no usable default: the validator refuses to build Settings
    without one. Every other field has a default so a bare `SECRET_KEY=...`
    environment is enough to start the API.
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
    port: int = 3001
    database_url: str = _DEFAULT_DB_URL
    frontend_url: str = "http://localhost:3000"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    # JWT_SECRET is accepted for deployments that already set it.
    secret_key: str = Field(default="", validation_alias=AliasChoices("SECRET_KEY", "JWT_SECRET"))
    token_expire_seconds: int = Field(default=3600, gt=0)

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_window_seconds: int = Field(default=15 * 60, gt=0)
    rate_limit_max: int = Field(default=100, gt=0)
    auth_rate_limit_max: int = Field(default=5, gt=0)
    # Comma-separated IPs or CIDRs whose X-Forwarded-For header is believed.
    # Empty means no proxy is trusted and the socket address is the client key.
    trusted_proxies: str = ""

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def general_rate_limit(self) -> str:
        """slowapi/limits notation for the app-wide ceiling, e.g. "100/900 seconds"."""
        return f"{self.rate_limit_max}/{self.rate_limit_window_seconds} seconds"

    @property
    def trusted_proxy_list(self) -> list[str]:
        return [p.strip() for p in self.trusted_proxies.split(",") if p.strip()]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Refuse to start without a signing key.

        Every outstanding token is signed with this key, so a random per-process
        key would silently log everyone out on restart. There is no dev-mode
        fallback: set SECRET_KEY (or JWT_SECRET) in the environment or .env.

        Keys shorter than 32 characters are rejected; HS256 security rests on
        key entropy.
        """
        if not self.secret_key:
            raise ValueError(
                "SECRET_KEY is required. Set SECRET_KEY (or JWT_SECRET) in your environment or .env file."
            )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if self.debug:
            logger.warning("DEBUG is enabled -- internal error details will be returned to clients.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
