"""Escrow REST API routes.

These endpoints only parse input, call the service layer and translate the
result. Every business rule lives in the domain.

Routes:
    POST   /api/v1/escrow                — Create a new escrow
    GET    /api/v1/escrow                — List escrows
    GET    /api/v1/escrow/{id}           — Get escrow with its history
    GET    /api/v1/escrow/{id}/status    — Current state + allowed actions
    POST   /api/v1/escrow/{id}/actions   — Perform an action

Handlers are plain functions: FastAPI runs them in its threadpool, and the
event store serializes concurrent writes itself.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from escrow_ledger.api.deps import get_escrow_service
from escrow_ledger.domain.enums import UserRole
from escrow_ledger.logging_config import get_logger
from escrow_ledger.schemas.escrow import (
    ActionResponse,
    CreateEscrowRequest,
    EscrowDetailResponse,
    EscrowEventResponse,
    EscrowResponse,
    EscrowStatusResponse,
    PerformActionRequest,
)
from escrow_ledger.services.escrow_service import EscrowService

router = APIRouter(prefix="/api/v1/escrow", tags=["Escrow"])
logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


@router.post(
    "",
    response_model=EscrowResponse,
    status_code=201,
    summary="Create a new escrow",
)
def create_escrow(
    request: CreateEscrowRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> EscrowResponse:
    """Create a new escrow in PROPOSED state."""
    escrow = svc.create_escrow(
        buyer_id=request.buyer_id,
        seller_id=request.seller_id,
        amount=request.amount,
        description=request.description,
    )
    return EscrowResponse.from_domain(escrow)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@router.post(
    "/{escrow_id}/actions",
    response_model=ActionResponse,
    summary="Perform an action",
)
def perform_action(
    escrow_id: str,
    request: PerformActionRequest,
    svc: EscrowService = Depends(get_escrow_service),
) -> ActionResponse:
    """Apply an action. A rejected action answers 400 with its rejection code."""
    result = svc.apply_action(
        escrow_id=escrow_id,
        action=request.action,
        performed_by=request.performed_by,
        role=request.role,
        reason=request.reason,
    )
    result.raise_for_rejection()
    return ActionResponse(
        escrow=EscrowResponse.from_domain(result.escrow),
        event=EscrowEventResponse.from_domain(result.event),
    )


# ---------------------------------------------------------------------------
# Read endpoints
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=list[EscrowResponse],
    summary="List escrows",
)
def list_escrows(
    svc: EscrowService = Depends(get_escrow_service),
) -> list[EscrowResponse]:
    """Return every escrow, most recently updated first."""
    return [EscrowResponse.from_domain(r.escrow) for r in svc.list_escrows()]


@router.get(
    "/{escrow_id}",
    response_model=EscrowDetailResponse,
    summary="Get escrow with history",
)
def get_escrow(
    escrow_id: str,
    svc: EscrowService = Depends(get_escrow_service),
) -> EscrowDetailResponse:
    """Fetch an escrow and its full event history."""
    record = svc.get_escrow(escrow_id)
    return EscrowDetailResponse(
        escrow=EscrowResponse.from_domain(record.escrow),
        events=[EscrowEventResponse.from_domain(e) for e in record.events],
    )


@router.get(
    "/{escrow_id}/status",
    response_model=EscrowStatusResponse,
    summary="Get lightweight status check",
)
def get_status(
    escrow_id: str,
    role: UserRole | None = None,
    svc: EscrowService = Depends(get_escrow_service),
) -> EscrowStatusResponse:
    """Return the current state and the actions `role` could take next."""
    return EscrowStatusResponse.from_status(svc.get_status(escrow_id, role))
