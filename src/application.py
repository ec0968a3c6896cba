"""FastAPI application factory and bootstrap helpers."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.api.errors import register_error_handlers
from src.api.routes import include_api_routes
from src.config import settings
from src.services.storage.redis_client import close_clients

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events."""
    logger.info(
        "Catalog console starting",
        extra={"environment": settings.ENVIRONMENT, "bucket": settings.IMAGE_BUCKET},
    )
    try:
        yield
    finally:
        await close_clients()
        logger.info("Closed Redis connections")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Catalog Console",
        description="Product catalog administration with ordered product images",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app)
    register_error_handlers(app)
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
