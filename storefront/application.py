"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storefront.api.routes import include_api_routes
from storefront.config import settings
from storefront.services.clients.storefront_client import get_storefront_client
from storefront.services.storage.state_store import close_redis_client

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""

    if settings.backend_configured:
        logger.info("Storefront backend: %s", settings.graphql_endpoint)
    else:
        logger.warning("Storefront backend not configured; only /local routes work")
    logger.info("State backend: %s", settings.STATE_BACKEND)

    yield

    client = get_storefront_client()
    if client is not None:
        await client.close()
    await close_redis_client()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Harmony Farm Storefront",
        description="Commerce adapter for the sanctuary store",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    include_api_routes(app)

    return app


def _configure_cors(app: FastAPI) -> None:
    """Allow broad access in non-production environments."""

    if settings.is_production:
        return

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
