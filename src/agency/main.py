from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.agency.api.middlewares import setup_middlewares
from src.agency.api.v1.router import api_router
from src.agency.core.config import get_settings
from src.agency.core.db import dispose_engine, reset_store
from src.agency.core.exceptions import setup_exception_handlers
from src.agency.core.health import setup_health_endpoint, setup_metrics
from src.agency.core.identity import close_identity_client
from src.agency.core.logging import get_logger, setup_logging
from src.agency.core.shutdown import request_tracker
from src.agency.services.health_monitor import reset_health_monitor

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()
    setup_logging(settings.debug)
    logger.info("Starting application", app_name=settings.app_name, env=settings.app_env)

    yield

    grace_period = settings.shutdown_grace_period
    logger.info(
        "Shutdown initiated",
        in_flight_requests=request_tracker.in_flight_count,
        in_flight_operations=request_tracker.in_flight_operations,
    )

    # A lifecycle call in progress must finish its saga before connections close
    await request_tracker.start_shutdown()

    drained = await request_tracker.wait_for_drain(timeout=grace_period)
    if not drained:
        logger.warning(
            "Shutdown timeout, requests may not have completed",
            grace_period=grace_period,
            in_flight_operations=request_tracker.in_flight_operations,
        )

    logger.info("Closing connections...")
    await close_identity_client()
    await dispose_engine()
    reset_store()
    reset_health_monitor()
    logger.info("Shutdown complete")


OPENAPI_TAGS = [
    {"name": "members", "description": "Team member invitation, activation and removal"},
]


def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Team member lifecycle API for agency organizations",
        version="0.1.0",
        openapi_tags=OPENAPI_TAGS,
        openapi_url="/openapi.json" if settings.enable_openapi else None,
        lifespan=lifespan,
    )

    setup_exception_handlers(app)
    setup_middlewares(app, settings)

    app.include_router(api_router)

    setup_metrics(app)
    setup_health_endpoint(app)

    return app


app = create_app()
