"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables, with an optional .env file
as a fallback. This pattern keeps secrets out of source code — the .env file is
gitignored, and .env.example provides a safe template for developers.

Pydantic Settings automatically:
  1. Reads from environment variables (highest priority)
  2. Falls back to .env file values
  3. Uses defaults defined here (lowest priority)

Usage:
    from ledger_api.config import settings
    print(settings.SECRET_KEY)
"""

from typing import Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Secrets that show up in tutorials and .env templates. Refused in production.
_DEFAULT_SECRETS = {"fallback-secret", "your-secret-key", "secret", "changeme"}
_WEAK_SECRET_PATTERNS = ("password", "123456", "qwerty", "admin", "test")


class Settings(BaseSettings):
    """
    Central configuration for the Ledger API.

    Required fields (no defaults) MUST be set in .env or environment:
      - SECRET_KEY: Used to sign JWT tokens
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # --- Application ---
    APP_NAME: str = "Ledger API"
    APP_VERSION: str = "0.1.0"
    ENVIRONMENT: Literal["development", "test", "production"] = "development"
    DEBUG: bool = False
    API_PREFIX: str = "/v1"

    # --- Database ---
    # SQLite for MVP; swap to PostgreSQL connection string for production
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/ledger.db"

    # --- Authentication ---
    # REQUIRED: No default, forcing the developer to set a real secret
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # --- CORS ---
    ALLOWED_ORIGINS: list[str] = ["http://localhost:3000"]

    # --- Logging ---
    LOG_LEVEL: str = "INFO"

    # --- Input sanitization ---
    # Longest string accepted anywhere in a JSON body or query string
    MAX_INPUT_LENGTH: int = 10_000

    @model_validator(mode="after")
    def secret_key_strong_in_production(self):
        """Refuse to boot production with a short or well-known signing key."""
        if self.ENVIRONMENT != "production":
            return self

        if len(self.SECRET_KEY) < 32:
            raise ValueError(
                "SECRET_KEY must be at least 32 characters long in production"
            )
        if self.SECRET_KEY in _DEFAULT_SECRETS:
            raise ValueError("SECRET_KEY cannot use default/example values in production")

        lowered = self.SECRET_KEY.lower()
        if any(pattern in lowered for pattern in _WEAK_SECRET_PATTERNS):
            raise ValueError(
                "SECRET_KEY contains weak patterns and is not secure for production"
            )
        return self

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"


# Singleton: import this instance everywhere instead of creating new Settings()
settings = Settings()
