"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for RecordVault happen here. No module should
call os.getenv() or os.environ.get() directly -- the entry points (asgi.py,
main.py) construct one Settings instance at process start and hand it to
api.main.create_app(), which stores it on app.state.settings. Route handlers
and dependencies read it from there.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. database_url -> DATABASE_URL). Type coercion and validation are
      built in.

  @model_validator(mode="after"): Runs cross-field validation after all fields
      are resolved from environment. Used for the DEBUG-conditional SECRET_KEY
      logic: dev mode generates a key with a warning, production mode refuses
      to start without one.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies on
  key entropy -- a short key makes HS256 tokens forgeable by brute force.

  In production mode (DEBUG not set or false), a missing SECRET_KEY is a hard
  startup failure. A random key in production would silently invalidate every
  issued token on restart.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or records/.
"""

import logging
import secrets

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("recordvault.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file (DEBUG=true still required for the
    secret key). Tests usually pass values as keyword arguments instead.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    # JWT_SECRET is accepted as an alias for deployments that already set it.
    secret_key: str = Field(default="", validation_alias=AliasChoices("secret_key", "jwt_secret"))

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    host: str = "0.0.0.0"  # noqa: S104 -- container deployments bind all interfaces
    port: int = 5000
    cors_origin: str = "http://localhost:3000"

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    database_url: str = "sqlite:///./recordvault.db"

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = Field(default=24 * 3600, gt=0)
    # bcrypt cost factor. 12 in production; tests drop it to 4 for speed.
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------

    rate_limit_enabled: bool = True

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
                logger.warning("Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY (or JWT_SECRET) in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self
