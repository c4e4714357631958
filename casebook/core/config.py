"""
Centralised application settings loaded from environment / .env file.

Uses pydantic-settings so every value can be overridden via env vars
or the .env file at the project root.
"""

from __future__ import annotations

import json
from typing import Annotated

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode


class Settings(BaseSettings):
    # ── Project ──────────────────────────────────────────────────────
    PROJECT_NAME: str = "Casebook"
    VERSION: str = "1.0.0"
    API_V1_PREFIX: str = "/api/v1"

    # ── Database (async PostgreSQL via asyncpg, aiosqlite locally) ──
    DATABASE_URL: str = "sqlite+aiosqlite:///./casebook.db"

    # ── Sessions ─────────────────────────────────────────────────────
    SECRET_KEY: str = "CHANGE-ME-TO-A-RANDOM-64-CHAR-HEX-STRING-IN-PRODUCTION"
    ALGORITHM: str = "HS256"
    SESSION_COOKIE_NAME: str = "app_session_id"
    SESSION_EXPIRE_DAYS: int = 365
    COOKIE_SECURE: bool = False  # Set True in HTTPS production
    RATE_LIMIT_ENABLED: bool = True

    # ── CORS ─────────────────────────────────────────────────────────
    # Accepts a JSON list or a comma-separated string
    CORS_ORIGINS: Annotated[list[str], NoDecode] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors(cls, v: object) -> list[str]:
        if isinstance(v, str):
            if v.lstrip().startswith("["):
                return json.loads(v)
            return [o.strip() for o in v.split(",") if o.strip()]
        return v  # type: ignore[return-value]

    # ── Logging ──────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Identity / roles ────────────────────────────────────────────
    OWNER_OPEN_ID: str | None = None
    POSTING_LOGIN_METHOD: str = "google"

    # ── OAuth identity provider ─────────────────────────────────────
    OAUTH_SERVER_URL: str | None = None
    APP_ID: str | None = None
    OAUTH_CLIENT_SECRET: str | None = None

    # ── Outbound services ───────────────────────────────────────────
    LLM_API_URL: str | None = None
    LLM_API_KEY: str | None = None
    LLM_MODEL: str = "gpt-4o-mini"
    NOTIFICATION_API_URL: str | None = None
    NOTIFICATION_API_KEY: str | None = None
    HTTP_TIMEOUT_SECONDS: float = 20.0

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }


settings = Settings()

if settings.SECRET_KEY == "CHANGE-ME-TO-A-RANDOM-64-CHAR-HEX-STRING-IN-PRODUCTION":
    import logging

    logging.getLogger("casebook.core.config").warning(
        "WARNING: You are running with the default INSECURE Secret Key! "
        "Update the SECRET_KEY in your .env file immediately."
    )
