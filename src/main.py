"""Inkwell FastAPI application entry point.

Wires together all providers and services via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and exposes the post API.

The reconciliation job is NOT run here; it is a separate process
(``python -m src.cli.sync_views``) scheduled externally.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import health_router
from src.api.routes import router as api_router
from src.config.loader import load_config
from src.config.settings import Settings
from src.providers.factory import build_post_store, build_volatile_stores
from src.services.cache_aside import CacheAside
from src.services.cache_invalidator import CacheInvalidator
from src.services.optimistic_lock import OptimisticLockCoordinator
from src.services.post_service import PostService
from src.services.trending import TrendingBoard
from src.services.view_counter import ViewCounter
from src.utils.logging import configure_logging, get_logger

settings = Settings()
configure_logging(log_level=settings.log_level)
_logger: structlog.BoundLogger = get_logger(__name__)

_APP_VERSION = "0.1.0"


# ---------------------------------------------------------------------------
# Dependency wiring
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    timeout = app_settings.volatile_timeout_seconds

    # -- Stores --
    post_store = build_post_store(app_settings)
    volatile = build_volatile_stores(app_settings)

    # -- Consistency engine --
    cache = CacheAside(volatile.cache_provider, timeout_seconds=timeout)
    invalidator = CacheInvalidator(cache, volatile.counter_store, timeout_seconds=timeout)
    coordinator = OptimisticLockCoordinator(post_store, invalidator)
    view_counter = ViewCounter(volatile.counter_store, timeout_seconds=timeout)

    post_service = PostService(
        store=post_store,
        views=view_counter,
        cache=cache,
        invalidator=invalidator,
        coordinator=coordinator,
        trending=TrendingBoard(volatile.counter_store, timeout_seconds=timeout),
        post_ttl=app_settings.post_cache_ttl,
        list_ttl=app_settings.list_cache_ttl,
        slug_max_length=app_settings.slug_max_length,
        slug_max_attempts=app_settings.slug_max_attempts,
        excerpt_length=app_settings.excerpt_length,
    )

    return {
        "post_store": post_store,
        "counter_store": volatile.counter_store,
        "cache_provider": volatile.cache_provider,
        "volatile_stores": volatile,
        "post_service": post_service,
        "app_version": _APP_VERSION,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise the durable store on startup, release Redis on shutdown."""
    components = getattr(application.state, "components", None) or _build_all(settings)

    for key, value in components.items():
        setattr(application.state, key, value)

    await application.state.post_store.initialize()

    _logger.info(
        "app_startup",
        version=_APP_VERSION,
        environment=settings.app_env,
        post_store=application.state.post_store.get_provider_name(),
        counter_store=application.state.counter_store.get_provider_name(),
        cache=application.state.cache_provider.get_provider_name(),
    )

    yield

    volatile = components.get("volatile_stores")
    if volatile is not None:
        await volatile.aclose()
    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(components: dict[str, Any] | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    components:
        Pre-built components to place on ``app.state`` instead of calling
        ``_build_all`` at startup (tests inject in-memory stores this way).
    """
    config = load_config(settings=settings)

    application = FastAPI(
        title="Inkwell API",
        version=_APP_VERSION,
        description=(
            "Post publishing backend: cache-aside reads, live view counts "
            "and optimistic-locked edits."
        ),
        lifespan=_lifespan,
    )
    application.state.components = components

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application, allowed_origins=config.get("app", {}).get("cors_origins"))

    # -- Routes --
    application.include_router(api_router)
    application.include_router(health_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
