"""Teacher portal FastAPI application factory."""

import logging
import os
from contextlib import asynccontextmanager

import redis.asyncio as aioredis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy import text

from teacher_portal.config import Settings, get_settings
from teacher_portal.dependencies import get_session_factory, init_db, shutdown_db
from teacher_portal.middleware.error_handler import ErrorHandlerMiddleware
from teacher_portal.middleware.logging import LoggingMiddleware, setup_logging
from teacher_portal.routers import events, sync

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    settings: Settings = app.state.settings
    setup_logging(debug=settings.debug)
    logger.info(
        "Starting Teacher Portal API (env=%s, admin_sync=%s)",
        settings.app_env,
        "enabled" if settings.admin_sync_enabled else "disabled",
    )

    init_db(settings)

    yield

    await shutdown_db()
    logger.info("Teacher Portal API shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if settings is None:
        settings = get_settings()

    is_production = settings.app_env == "production"
    app = FastAPI(
        title="Teacher Portal API",
        description="Campus events for teachers, synced to the admin portal for approval",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
    )
    app.state.settings = settings

    # Middleware (order matters: outermost first)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LoggingMiddleware)
    origins = settings.cors_origins
    allow_all = origins == ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins if not allow_all else [],
        allow_origin_regex=r".*" if allow_all else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "Accept", "X-Sync-Token", "X-Sync-Source"],
        max_age=600,
    )

    # Routers
    prefix = settings.api_prefix
    app.include_router(events.router, prefix=prefix)
    app.include_router(sync.router, prefix=prefix)

    @app.get("/")
    async def root():
        return {"status": "running", "service": "teacher-portal-api", "version": "1.0.0"}

    @app.get("/health")
    async def health():
        return {"status": "healthy", "service": "teacher-portal-api"}

    @app.get("/health/ready")
    async def health_ready():
        """Deep health check: verifies DB and Redis connectivity."""
        checks: dict = {}

        try:
            factory = get_session_factory(settings)
            async with factory() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception as e:
            checks["database"] = f"error: {type(e).__name__}"

        try:
            r = aioredis.from_url(settings.redis_url, decode_responses=True)
            await r.ping()
            await r.aclose()
            checks["redis"] = "ok"
        except Exception as e:
            checks["redis"] = f"error: {type(e).__name__}"

        all_ok = all(v == "ok" for v in checks.values())
        return JSONResponse(
            status_code=200 if all_ok else 503,
            content={"status": "ready" if all_ok else "degraded", "checks": checks},
        )

    # Prometheus instrumentation
    instrumentator = Instrumentator(
        excluded_handlers=["/health", "/health/ready", "/docs", "/redoc", "/openapi.json", "/metrics"],
    )
    instrumentator.instrument(app)

    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        """Prometheus metrics endpoint with multiprocess support."""
        from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, generate_latest, multiprocess

        multiproc_dir = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
        if multiproc_dir:
            registry = CollectorRegistry()
            multiprocess.MultiProcessCollector(registry)
            data = generate_latest(registry)
        else:
            data = generate_latest()

        return Response(content=data, media_type=CONTENT_TYPE_LATEST)

    return app


# Default app instance for uvicorn
app = create_app()
