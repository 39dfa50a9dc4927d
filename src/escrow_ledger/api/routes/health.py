"""Health check endpoint.

Reports the configured store backend and how many writes to it have failed.
A store whose writes are failing keeps serving from memory, so the app is
reported as degraded rather than down.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from escrow_ledger.api.deps import get_event_store
from escrow_ledger.infrastructure.storage.event_store import EventStore
from escrow_ledger.schemas.escrow import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns the health status of the application and its event store.",
)
def health_check(store: EventStore = Depends(get_event_store)) -> HealthResponse:
    """Summarize event store health."""
    return HealthResponse(
        status="ok" if store.persist_failures == 0 else "degraded",
        store=store.backend.name,
        escrows=len(store),
        persist_failures=store.persist_failures,
    )
