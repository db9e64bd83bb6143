"""FastAPI application factory."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from monspark.activity.router import router as activity_router
from monspark.bridge.router import router as bridge_router
from monspark.chain.gateway import ChainGateway
from monspark.config import get_settings
from monspark.database import close_db, init_db
from monspark.gas.router import router as gas_router
from monspark.health.router import router as health_router
from monspark.middleware import setup_middleware
from monspark.quests.router import router as quests_router
from monspark.redis_client import close_redis, init_redis
from monspark.users.router import router as users_router

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup and shutdown lifecycle."""
    settings = get_settings()
    await init_db(settings.database_url)
    await init_redis(settings.redis_url)

    # An injected gateway (tests, embedding) wins over the configured one.
    if getattr(app.state, "gateway", None) is None:
        app.state.gateway = ChainGateway.from_settings(settings)

    logger.info("startup_complete", version=settings.app_version, environment=settings.environment)

    yield

    await close_db()
    await close_redis()


def create_app(gateway: ChainGateway | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="MONSpark API",
        description="Quest, gas credit and bridge ledger in front of the MONSpark contracts",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.gateway = gateway

    setup_middleware(app, settings)
    app.include_router(health_router, tags=["Health"])
    app.include_router(quests_router)
    app.include_router(gas_router)
    app.include_router(bridge_router)
    app.include_router(activity_router)
    app.include_router(users_router)

    return app


app = create_app()
