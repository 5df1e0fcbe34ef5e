# app/core/settings.py
from __future__ import annotations

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings, read from the environment first and then from `.env`.
    Unknown variables are ignored.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Basics
    PROJECT_NAME: str = "asset-evaluation"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    FASTAPI_ROOT_PATH: str = ""
    BUILD_TAG: str = "dev"

    DATABASE_URL: str = "sqlite:///asset_evaluation.db"

    # Session cookie / bearer token signing
    SESSION_SECRET: str = Field("change-me", description="HMAC key for session tokens.")
    SESSION_COOKIE_NAME: str = "session"

    # CORS
    ALLOW_ALL_CORS: bool = False
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False

    # Template generator
    TEMPLATE_EXAMPLE_ROWS: int = 20

    DEBUG: bool = False


settings = Settings()
