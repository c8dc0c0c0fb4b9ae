"""
FastAPI application entry point for the Realty API.

create_app() is the composition root: it builds the single response cache
store, its TTL policy and janitor, and the listing service, and hangs them
on ``app.state``. The janitor runs for the lifetime of the app.
"""
import logging
import time
from collections.abc import Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .cache import CacheStore
from .config_loader import Config, config
from .janitor import CacheJanitor
from .listing_service import ListingService
from .middleware import ResponseCacheMiddleware
from .routes import router
from .ttl_policy import TtlPolicy

# Configure logging for the application
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """
    FastAPI lifespan handler.

    Starts the response cache janitor on entry and stops it on exit.
    """
    settings: Config = app.state.settings
    janitor: CacheJanitor = app.state.cache_janitor
    logger.info("Starting Realty API")
    logger.info(f"Server: {settings.server_host}:{settings.server_port}")
    if settings.response_cache_enabled:
        await janitor.start()
    else:
        logger.info("Response cache disabled")
    try:
        yield
    finally:
        await janitor.stop()
        logger.info("Shutting down Realty API")


def create_app(
    settings: Config | None = None,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> FastAPI:
    """
    Build the FastAPI application and its collaborators.

    Args:
        settings: Configuration to use; the process-wide config by default.
        clock: Time source for the response cache, injectable for tests.
    """
    settings = settings or config

    app = FastAPI(
        title="Realty API",
        version="1.0.0",
        description="Property listings API with in-memory response caching",
        lifespan=app_lifespan,
    )

    response_cache = CacheStore(default_ttl_seconds=settings.cache_default_ttl, clock=clock)
    ttl_policy = TtlPolicy.from_config(settings)
    app.state.settings = settings
    app.state.response_cache = response_cache
    app.state.ttl_policy = ttl_policy
    app.state.cache_janitor = CacheJanitor(
        response_cache,
        interval_seconds=settings.cache_sweep_interval,
        name="response",
    )
    app.state.listings = ListingService()

    app.include_router(router)

    if settings.response_cache_enabled:
        app.add_middleware(
            ResponseCacheMiddleware,
            store=response_cache,
            policy=ttl_policy,
            api_prefix=settings.api_prefix,
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=config.server_host,
        port=config.server_port,
        log_level="info",
    )
