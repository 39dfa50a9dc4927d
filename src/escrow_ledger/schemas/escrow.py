"""Pydantic schemas for the Escrow API.

These schemas define the request/response shapes for the REST API. They are
separate from the domain dataclasses to keep a clean boundary between the
HTTP layer and the core. Responses use the same camelCase field names as the
persisted records.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from escrow_ledger.domain.enums import (
    EscrowAction,
    EscrowState,
    EventType,
    UserRole,
)
from escrow_ledger.domain.escrow import Escrow
from escrow_ledger.domain.events import EscrowEvent


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, emits camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------


class CreateEscrowRequest(CamelModel):
    """Request body for creating a new escrow."""

    buyer_id: str = Field(
        ...,
        min_length=1,
        description="Identifier of the buyer",
        examples=["buyer-123"],
    )
    seller_id: str = Field(
        ...,
        min_length=1,
        description="Identifier of the seller",
        examples=["seller-456"],
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount held in escrow",
        examples=[5000],
    )
    description: str = Field(
        ...,
        min_length=1,
        description="What the escrow is for",
        examples=["Purchase of goods"],
    )


class PerformActionRequest(CamelModel):
    """Request body for performing an action against an escrow."""

    action: EscrowAction
    performed_by: str = Field(
        ...,
        min_length=1,
        description="Identifier of the acting party",
    )
    role: UserRole = Field(
        ...,
        validation_alias=AliasChoices("role", "userRole"),
        description="Role the party acts under",
    )
    reason: str | None = Field(
        default=None,
        description="Optional free-text justification recorded on the event",
    )


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------


class EscrowResponse(CamelModel):
    """Response schema for an escrow snapshot."""

    id: str
    buyer_id: str
    seller_id: str
    amount: Decimal
    description: str
    current_state: EscrowState
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, escrow: Escrow) -> EscrowResponse:
        return cls.model_validate(escrow.to_dict())


class EscrowEventResponse(CamelModel):
    """Response schema for one history event. Type-specific fields are None
    when they do not apply to the event type."""

    id: str
    type: EventType
    timestamp: datetime
    escrow_id: str
    buyer_id: str | None = None
    seller_id: str | None = None
    amount: Decimal | None = None
    description: str | None = None
    action: EscrowAction | None = None
    from_state: EscrowState | None = None
    to_state: EscrowState | None = None
    performed_by: str | None = None
    role: UserRole | None = None
    reason: str | None = None

    @classmethod
    def from_domain(cls, event: EscrowEvent) -> EscrowEventResponse:
        return cls.model_validate(event.to_dict())


class EscrowDetailResponse(CamelModel):
    """An escrow with its full history."""

    escrow: EscrowResponse
    events: list[EscrowEventResponse]


class ActionResponse(CamelModel):
    """The new snapshot and the event an accepted action produced."""

    escrow: EscrowResponse
    event: EscrowEventResponse


class EscrowStatusResponse(CamelModel):
    """Lightweight status check response."""

    escrow_id: str
    state: EscrowState
    is_terminal: bool
    allowed_actions: list[EscrowAction] = Field(
        description="Actions that would be accepted from the current state"
    )
    version: int

    @classmethod
    def from_status(cls, status: dict[str, Any]) -> EscrowStatusResponse:
        return cls(**status)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    store: str = "unknown"
    escrows: int = 0
    persist_failures: int = 0
