from __future__ import annotations

from config.base import SharedSettings, env_config


class TestSettings(SharedSettings):
    """In-memory SQLite; the suite builds its own engine per test."""
    DATABASE_URL: str | None = "sqlite+aiosqlite:///:memory:"
    APP_ENV: str = "test"
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"

    model_config = env_config("test")
