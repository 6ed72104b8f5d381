"""
Centralised application settings loaded from environment / .env file.

Uses pydantic-settings so every value can be overridden via env vars
or the .env file at the project root.
"""

from __future__ import annotations

from pydantic import field_validator
from pydantic_settings import BaseSettings

_INSECURE_SECRET = "CHANGE-ME-TO-A-RANDOM-64-CHAR-HEX-STRING-IN-PRODUCTION"


class Settings(BaseSettings):
    # ── Project ──────────────────────────────────────────────────────
    PROJECT_NAME: str = "CreatorHub"
    VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # ── Database (async SQLAlchemy) ─────────────────────────────────
    DATABASE_URL: str = "sqlite+aiosqlite:///./creatorhub.db"

    # ── JWT ──────────────────────────────────────────────────────────
    SECRET_KEY: str = _INSECURE_SECRET
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 7 * 24 * 60
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    COOKIE_SECURE: bool = False  # Set True in HTTPS production
    RATE_LIMIT_ENABLED: bool = True

    # ── CORS ─────────────────────────────────────────────────────────
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v: object) -> list[str]:
        if isinstance(v, str) and not v.lstrip().startswith("["):
            return [o.strip() for o in v.split(",") if o.strip()]
        return v  # type: ignore[return-value]

    # ── Logging ──────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Default owner (seeded on first startup) ─────────────────────
    FIRST_OWNER_EMAIL: str = "owner@creatorhub.local"
    FIRST_OWNER_PASSWORD: str = "changeme123"

    # ── Marketplace ──────────────────────────────────────────────────
    ORDER_NUMBER_PREFIX: str = "M7R"
    BASE_CURRENCY: str = "USD"

    # ── Geolocation ──────────────────────────────────────────────────
    GEOLOCATION_API_URL: str = "https://ipapi.co"
    GEOLOCATION_TIMEOUT_SECONDS: float = 5.0

    # ── AI generation (OpenAI) ───────────────────────────────────────
    OPENAI_API_KEY: str | None = None  # AI routes answer 503 while unset
    OPENAI_BASE_URL: str | None = None
    OPENAI_MODEL: str = "gpt-4"
    OPENAI_CHAT_MODEL: str = "gpt-3.5-turbo"
    OPENAI_TIMEOUT_SECONDS: float = 60.0
    OPENAI_MAX_RETRIES: int = 2

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()

if settings.SECRET_KEY == _INSECURE_SECRET:
    import logging

    logging.getLogger("creatorhub.core.config").warning(
        "⚠️  WARNING: You are running with the default INSECURE Secret Key! "
        "Update the SECRET_KEY in your .env file immediately."
    )
