from __future__ import annotations

from config.base import SharedSettings, env_config
from config.database import get_database_url


class StageSettings(SharedSettings):
    """Staging receives the database as separate DB_* variables."""
    APP_ENV: str = "stage"
    DEBUG: bool = False

    DB_DRIVER: str = "postgresql+asyncpg"
    DB_HOST: str | None = None
    DB_PORT: int = 5432
    DB_USER: str | None = None
    DB_PASSWORD: str | None = None
    DB_NAME: str | None = None

    model_config = env_config("staging")

    @property
    def DATABASE_URL(self) -> str:
        return get_database_url(
            self.DB_DRIVER, self.DB_HOST, self.DB_PORT, self.DB_USER, self.DB_PASSWORD, self.DB_NAME,
        )
