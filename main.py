import json
import logging
import os
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded

from config import settings
from core.errors import request_validation_handler
from core.logging_config import configure_logging
from core.notifier import Notifier
from core.rate_limit import limiter, rate_limit_handler
from core.role_cache import RoleCache
from db import dispose_engine
from api.auth.db_manager import load_user_access
from api.auth.views import router as auth_router
from api.bikes.views import router as bikes_router
from api.work_orders.views import router as work_orders_router
from api.dashboard.views import router as dashboard_router
from api.export.views import router as export_router
from api.signals.views import router as signals_router
from api.realtime.views import router as realtime_router

configure_logging(settings.LOG_LEVEL, settings.DEBUG)
logger = logging.getLogger(__name__)


def get_cors_origins() -> list[str]:
    """Get CORS origins from environment variable or use defaults."""
    cors_env = os.environ.get("CORS_ORIGINS", "")

    # Try to parse as JSON array
    if cors_env:
        try:
            origins = json.loads(cors_env)
            if isinstance(origins, list):
                return origins
        except json.JSONDecodeError:
            # If not valid JSON, treat as comma-separated
            return [o.strip() for o in cors_env.split(",") if o.strip()]

    # Default origins for local development
    return [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]


def build_role_cache() -> RoleCache:
    return RoleCache(
        loader=load_user_access,
        ttl_seconds=settings.ROLE_CACHE_TTL_SECONDS,
        max_size=settings.ROLE_CACHE_MAX_SIZE,
        sweep_interval=settings.ROLE_CACHE_SWEEP_SECONDS,
    )


def build_notifier() -> Notifier:
    return Notifier(
        max_connections=settings.WS_MAX_CONNECTIONS,
        max_connections_per_ip=settings.WS_MAX_CONNECTIONS_PER_IP,
        ip_window_seconds=settings.WS_IP_WINDOW_SECONDS,
        heartbeat_interval=settings.WS_HEARTBEAT_SECONDS,
        send_timeout=settings.WS_SEND_TIMEOUT_SECONDS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    # In-memory components live for exactly one app lifetime
    app.state.role_cache = build_role_cache()
    app.state.notifier = build_notifier()
    app.state.role_cache.start()
    app.state.notifier.start()
    logger.info("Bike shop API started (env=%s)", settings.APP_ENV)

    yield

    await app.state.notifier.stop()
    await app.state.role_cache.stop()
    await dispose_engine()
    logger.info("Bike shop API stopped")


app = FastAPI(
    title="Bike Shop API",
    description="API for bike inventory, service work orders and live shop events",
    version="1.0.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)

# Get CORS origins from environment or use defaults
cors_origins = get_cors_origins()

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Authentication endpoints
app.include_router(auth_router, prefix="/api/v1")

# Business endpoints
app.include_router(bikes_router, prefix="/api/v1")
app.include_router(work_orders_router, prefix="/api/v1")
app.include_router(dashboard_router, prefix="/api/v1")
app.include_router(export_router, prefix="/api/v1")
app.include_router(signals_router, prefix="/api/v1")

# Live events
app.include_router(realtime_router)


# Health check endpoint
@app.get("/health", tags=["system"])
async def health_check():
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
