from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from arq.connections import ArqRedis
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import recoverhub.models  # noqa: F401
from recoverhub.core.config import settings
from recoverhub.core.database import Database
from recoverhub.core.logging_config import configure_logging
from recoverhub.routers import dunning_templates, failed_payments, stats, webhooks
from recoverhub.tasks import get_redis_pool

OPENAPI_TAGS = [
    {"name": "Webhooks", "description": "Inbound payment and email provider webhooks."},
    {"name": "Failed Payments", "description": "Inspect, retry, and cancel failed payment cases."},
    {"name": "Dunning", "description": "Manage the dunning email sequence."},
    {"name": "Stats", "description": "Recovery statistics for the dashboard."},
]


def create_app(database: Database | None = None, redis: ArqRedis | None = None) -> FastAPI:
    """Build the API application.

    ``database`` and ``redis`` default to handles built from settings; the
    redis pool is then opened at startup and closed at shutdown.
    """
    configure_logging(settings.LOG_LEVEL)
    owns_database = database is None
    owns_redis = redis is None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if owns_redis:
            app.state.redis = await get_redis_pool()
        try:
            yield
        finally:
            if owns_redis and app.state.redis is not None:
                await app.state.redis.aclose()
            if owns_database:
                app.state.database.dispose()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.version,
        description=(
            "Failed-payment recovery for subscription businesses. "
            "Ingests payment failures, retries charges on a schedule, "
            "and sends dunning emails until the invoice is paid."
        ),
        openapi_tags=OPENAPI_TAGS,
        lifespan=lifespan,
    )
    app.state.database = database or Database(settings.APP_DATABASE_DSN)
    app.state.redis = redis

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Total-Count"],
    )

    app.include_router(webhooks.router, prefix="/webhooks", tags=["Webhooks"])
    app.include_router(
        failed_payments.router,
        prefix="/v1/failed_payments",
        tags=["Failed Payments"],
    )
    app.include_router(
        dunning_templates.router,
        prefix="/v1/dunning_templates",
        tags=["Dunning"],
    )
    app.include_router(stats.router, prefix="/v1/stats", tags=["Stats"])

    @app.get("/")
    async def root() -> dict[str, str]:
        return {
            "app": settings.APP_NAME,
            "version": settings.version,
            "status": "running",
        }

    return app


app = create_app()
