"""FastAPI application entry point for the Escrow Ledger.

Lifecycle:
    1. Startup: Initialize logging, build the event store (loads and, for
       several locations, reconciles the persisted history).
    2. Running: Serve the REST API on a single Uvicorn process.
    3. Shutdown: Drop the store reference.

Run with:
    uvicorn escrow_ledger.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from escrow_ledger.config import Settings, get_settings
from escrow_ledger.infrastructure.storage.event_store import EventStore, build_event_store
from escrow_ledger.logging_config import get_logger, setup_logging_from_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


def create_app(
    settings: Settings | None = None,
    event_store: EventStore | None = None,
) -> FastAPI:
    """Application factory — creates and configures the FastAPI app.

    Args:
        settings: Overrides the cached settings (tests).
        event_store: Injects a pre-built store instead of building one from
            settings (tests, embedding).
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        setup_logging_from_settings(settings)
        logger = get_logger(__name__)
        logger.info("app.starting", env=settings.app_env, debug=settings.app_debug)

        app.state.event_store = (
            event_store if event_store is not None else build_event_store(settings)
        )

        logger.info("app.started", host=settings.app_host, port=settings.app_port)
        yield

        logger.info("app.shutting_down")
        app.state.event_store = None
        logger.info("app.stopped")

    app = FastAPI(
        title="Escrow Ledger",
        description="Event-sourced two-party escrow lifecycle.",
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    # --- Middleware ---
    from escrow_ledger.api.middleware import setup_middleware

    setup_middleware(app)

    # --- REST API Routes ---
    from escrow_ledger.api.routes.escrow import router as escrow_router
    from escrow_ledger.api.routes.health import router as health_router

    app.include_router(health_router)
    app.include_router(escrow_router)

    return app


# The app instance used by Uvicorn
app = create_app()
