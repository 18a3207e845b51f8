"""Settings shared by every environment.

Tunables for the in-memory components (role cache, websocket notifier) live
here so a deployment can adjust them without code changes.
"""
from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_DIR = Path(__file__).resolve().parents[1] / "env"


def env_config(name: str) -> SettingsConfigDict:
    """Read ``env/.env.<name>`` when the file exists, else the process environment only."""
    env_file = ENV_DIR / f".env.{name}"
    return SettingsConfigDict(
        env_file=str(env_file) if env_file.exists() else None,
        env_file_encoding="utf-8",
    )


class SharedSettings(BaseSettings):
    APP_ENV: str = "local"
    SECRET_KEY: str | None = None
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Role/permission cache
    ROLE_CACHE_TTL_SECONDS: float = 300
    ROLE_CACHE_MAX_SIZE: int = 1000
    ROLE_CACHE_SWEEP_SECONDS: float = 600

    # Real-time notifier
    WS_MAX_CONNECTIONS: int = 500
    WS_MAX_CONNECTIONS_PER_IP: int = 10
    WS_IP_WINDOW_SECONDS: float = 600
    WS_HEARTBEAT_SECONDS: float = 30
    WS_SEND_TIMEOUT_SECONDS: float = 5

    # Role granted to every newly registered user
    DEFAULT_ROLE: str = "medewerker"

    # Throttle on the authentication endpoints, per client address
    RATE_LIMIT_ENABLED: bool = True
    AUTH_RATE_LIMIT: str = "10 per 15 minutes"
