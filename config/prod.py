from __future__ import annotations

from config.base import SharedSettings, env_config


class ProdSettings(SharedSettings):
    DATABASE_URL: str | None = None
    APP_ENV: str = "production"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    model_config = env_config("production")
