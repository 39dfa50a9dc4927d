"""Escrow event log model.

Every change to an escrow is recorded as an immutable event in an
append-only history:

    ESCROW_CREATED   -> always first, exactly once per escrow
    STATE_CHANGED    -> one per accepted action, in acceptance order

The history is the source of truth: the current state of an escrow is the
to_state of its latest STATE_CHANGED event, or PROPOSED if there is none.

Events serialize to the camelCase JSON shape used by the persisted records:
    {"id", "type", "timestamp", "escrowId", ...type-specific fields}
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any, assert_never

from escrow_ledger.domain.enums import EscrowAction, EscrowState, EventType, UserRole


def new_event_id() -> str:
    """Generate a unique event ID."""
    return f"evt_{uuid.uuid4().hex}"


@dataclass(frozen=True)
class EscrowCreated:
    """An escrow came into existence in PROPOSED."""

    id: str
    timestamp: datetime
    escrow_id: str
    buyer_id: str
    seller_id: str
    amount: Decimal
    description: str

    @property
    def type(self) -> EventType:
        return EventType.ESCROW_CREATED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "escrowId": self.escrow_id,
            "buyerId": self.buyer_id,
            "sellerId": self.seller_id,
            "amount": str(self.amount),
            "description": self.description,
        }


@dataclass(frozen=True)
class StateChanged:
    """An action was accepted and moved the escrow between two states."""

    id: str
    timestamp: datetime
    escrow_id: str
    action: EscrowAction
    from_state: EscrowState
    to_state: EscrowState
    performed_by: str
    role: UserRole
    reason: str | None = None

    @property
    def type(self) -> EventType:
        return EventType.STATE_CHANGED

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "escrowId": self.escrow_id,
            "action": self.action.value,
            "fromState": self.from_state.value,
            "toState": self.to_state.value,
            "performedBy": self.performed_by,
            "role": self.role.value,
            "reason": self.reason,
        }


EscrowEvent = EscrowCreated | StateChanged


def parse_amount(value: Any) -> Decimal:
    """Read an amount written either as a decimal string or a JSON number."""
    return Decimal(str(value))


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; a value without an offset is taken as UTC."""
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def event_from_dict(data: dict[str, Any]) -> EscrowEvent:
    """Rebuild an event from its persisted dict form.

    Raises:
        ValueError: If the type tag is unknown.
        KeyError: If a required field is missing.
    """
    event_type = EventType(data["type"])
    timestamp = parse_timestamp(data["timestamp"])

    match event_type:
        case EventType.ESCROW_CREATED:
            return EscrowCreated(
                id=data["id"],
                timestamp=timestamp,
                escrow_id=data["escrowId"],
                buyer_id=data["buyerId"],
                seller_id=data["sellerId"],
                amount=parse_amount(data["amount"]),
                description=data["description"],
            )
        case EventType.STATE_CHANGED:
            return StateChanged(
                id=data["id"],
                timestamp=timestamp,
                escrow_id=data["escrowId"],
                action=EscrowAction(data["action"]),
                from_state=EscrowState(data["fromState"]),
                to_state=EscrowState(data["toState"]),
                performed_by=data["performedBy"],
                role=UserRole(data["role"]),
                reason=data.get("reason"),
            )
        case _:
            assert_never(event_type)


def fold_state(events: Iterable[EscrowEvent]) -> EscrowState:
    """Replay STATE_CHANGED events in order and return the resulting state.

    Later events always win; the log holds one linear history per escrow.
    """
    state = EscrowState.PROPOSED
    for event in events:
        match event:
            case StateChanged(to_state=to_state):
                state = to_state
            case EscrowCreated():
                pass
            case _:
                assert_never(event)
    return state
