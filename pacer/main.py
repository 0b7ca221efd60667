from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pacer.api.channel_routes import router as channel_router
from pacer.api.dependencies import get_channel_service, initialize_services
from pacer.api.event_routes import router as event_router
from pacer.api.health_routes import router as health_router
from pacer.logging_config import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialize services on startup, cancel pending channel work on shutdown."""
    logger.info("Starting up: initializing services")
    initialize_services()

    yield

    logger.info("Shutting down")
    get_channel_service().shutdown()


app = FastAPI(
    title="Pacer",
    description="Debounced invocation channels with leading/trailing edges and max-wait",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(channel_router)
app.include_router(event_router)
