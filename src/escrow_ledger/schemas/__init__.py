"""Pydantic API schemas."""

from escrow_ledger.schemas.escrow import (
    ActionResponse,
    CreateEscrowRequest,
    EscrowDetailResponse,
    EscrowEventResponse,
    EscrowResponse,
    EscrowStatusResponse,
    HealthResponse,
    PerformActionRequest,
)

__all__ = [
    "ActionResponse",
    "CreateEscrowRequest",
    "EscrowDetailResponse",
    "EscrowEventResponse",
    "EscrowResponse",
    "EscrowStatusResponse",
    "HealthResponse",
    "PerformActionRequest",
]
