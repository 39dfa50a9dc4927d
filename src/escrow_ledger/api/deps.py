"""FastAPI dependency injection providers.

The event store is built once in the application lifespan and kept on
app.state; these providers hand it (and a service bound to it) to route
handlers via Depends().
"""

from __future__ import annotations

from fastapi import Depends, Request

from escrow_ledger.config import Settings, get_settings
from escrow_ledger.infrastructure.storage.event_store import EventStore
from escrow_ledger.services.escrow_service import EscrowService


def get_app_settings() -> Settings:
    """Provide the application settings."""
    return get_settings()


def get_event_store(request: Request) -> EventStore:
    """Provide the process's EventStore."""
    return request.app.state.event_store


def get_escrow_service(
    store: EventStore = Depends(get_event_store),
    settings: Settings = Depends(get_app_settings),
) -> EscrowService:
    """Provide an EscrowService bound to the process's EventStore."""
    return EscrowService(store, retry_attempts=settings.retry_attempts)
