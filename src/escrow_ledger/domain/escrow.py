"""Escrow aggregate.

Combines the transition guard with the event log: every accepted action
produces a new immutable Escrow snapshot plus the STATE_CHANGED event that
explains it. Snapshots are frozen; a mutation never changes a value in place.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from escrow_ledger.domain.enums import EscrowAction, EscrowState, RejectionCode, UserRole
from escrow_ledger.domain.events import (
    EscrowCreated,
    EscrowEvent,
    StateChanged,
    fold_state,
    new_event_id,
    parse_amount,
    parse_timestamp,
)
from escrow_ledger.domain.exceptions import TransitionRejectedError
from escrow_ledger.domain.state_machine import transition_state


@dataclass(frozen=True)
class Escrow:
    """Snapshot of an escrow at one point in its history."""

    id: str
    buyer_id: str
    seller_id: str
    amount: Decimal
    description: str
    current_state: EscrowState
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase shape."""
        return {
            "id": self.id,
            "buyerId": self.buyer_id,
            "sellerId": self.seller_id,
            "amount": str(self.amount),
            "description": self.description,
            "currentState": self.current_state.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Escrow:
        return cls(
            id=data["id"],
            buyer_id=data["buyerId"],
            seller_id=data["sellerId"],
            amount=parse_amount(data["amount"]),
            description=data["description"],
            current_state=EscrowState(data["currentState"]),
            created_at=parse_timestamp(data["createdAt"]),
            updated_at=parse_timestamp(data["updatedAt"]),
        )


@dataclass(frozen=True)
class ActionResult:
    """Outcome of apply_action.

    On success, `escrow` and `event` are set and must be persisted together.
    On rejection, both are None and nothing may be persisted.
    """

    success: bool
    escrow: Escrow | None = None
    event: StateChanged | None = None
    code: RejectionCode | None = None
    error: str | None = None

    def raise_for_rejection(self) -> None:
        """Raise TransitionRejectedError if the action was refused."""
        if not self.success:
            raise TransitionRejectedError(str(self.code), self.error or "")


def _utcnow() -> datetime:
    return datetime.now(UTC)


def create_escrow(
    escrow_id: str,
    buyer_id: str,
    seller_id: str,
    amount: Decimal,
    description: str,
    *,
    now: datetime | None = None,
) -> tuple[Escrow, EscrowCreated]:
    """Create a new escrow in PROPOSED together with its ESCROW_CREATED event.

    Input validation (positive amount, non-empty text) is the caller's job.
    """
    now = now or _utcnow()
    escrow = Escrow(
        id=escrow_id,
        buyer_id=buyer_id,
        seller_id=seller_id,
        amount=amount,
        description=description,
        current_state=EscrowState.PROPOSED,
        created_at=now,
        updated_at=now,
    )
    event = EscrowCreated(
        id=new_event_id(),
        timestamp=now,
        escrow_id=escrow_id,
        buyer_id=buyer_id,
        seller_id=seller_id,
        amount=amount,
        description=description,
    )
    return escrow, event


def apply_action(
    escrow: Escrow,
    action: EscrowAction,
    performed_by: str,
    role: UserRole,
    reason: str | None = None,
    *,
    now: datetime | None = None,
) -> ActionResult:
    """Apply an action to an escrow snapshot.

    Args:
        escrow: The current snapshot (left untouched).
        action: The requested action.
        performed_by: Identifier of the acting party.
        role: Role the party is acting under.
        reason: Optional free-text justification, recorded on the event.

    Returns:
        ActionResult carrying the new snapshot and event, or the rejection.
    """
    transition = transition_state(escrow.current_state, action, role)
    if not transition.accepted:
        return ActionResult(success=False, code=transition.code, error=transition.reason)

    now = now or _utcnow()
    new_escrow = replace(escrow, current_state=transition.next_state, updated_at=now)
    event = StateChanged(
        id=new_event_id(),
        timestamp=now,
        escrow_id=escrow.id,
        action=EscrowAction(action),
        from_state=escrow.current_state,
        to_state=transition.next_state,
        performed_by=performed_by,
        role=UserRole(role),
        reason=reason,
    )
    return ActionResult(success=True, escrow=new_escrow, event=event)


def reconstruct_escrow(events: Sequence[EscrowEvent]) -> Escrow | None:
    """Rebuild an escrow snapshot by replaying its history.

    Returns None when the history is empty or does not start with an
    ESCROW_CREATED event.
    """
    if not events:
        return None
    created = events[0]
    if not isinstance(created, EscrowCreated):
        return None

    return Escrow(
        id=created.escrow_id,
        buyer_id=created.buyer_id,
        seller_id=created.seller_id,
        amount=created.amount,
        description=created.description,
        current_state=fold_state(events),
        created_at=created.timestamp,
        updated_at=events[-1].timestamp,
    )
