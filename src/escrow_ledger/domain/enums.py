"""Domain enumerations for the Escrow Ledger.

These enums define the canonical states, actions, roles and event types used
throughout the system. They are framework-agnostic (no FastAPI imports).
"""

import enum


class EscrowState(enum.StrEnum):
    """Lifecycle states of an escrow.

    State transitions are enforced by the transition guard.
    See domain/state_machine.py for the transition table.
    """

    PROPOSED = "PROPOSED"
    FUNDED = "FUNDED"
    RELEASED = "RELEASED"
    DISPUTED = "DISPUTED"
    REFUNDED = "REFUNDED"


TERMINAL_STATES: frozenset[EscrowState] = frozenset(
    {EscrowState.RELEASED, EscrowState.REFUNDED}
)


class EscrowAction(enum.StrEnum):
    """Actions a participant can request against an escrow."""

    FUND = "FUND"
    RELEASE = "RELEASE"
    DISPUTE = "DISPUTE"
    RESOLVE_DISPUTE_RELEASE = "RESOLVE_DISPUTE_RELEASE"
    RESOLVE_DISPUTE_REFUND = "RESOLVE_DISPUTE_REFUND"
    # No role may refund outside of dispute resolution
    REFUND = "REFUND"


class UserRole(enum.StrEnum):
    """Roles a caller can act under."""

    BUYER = "BUYER"
    SELLER = "SELLER"
    ADMIN = "ADMIN"


class EventType(enum.StrEnum):
    """Discriminator of the events stored in an escrow's history.

    Every accepted action MUST produce exactly one STATE_CHANGED event.
    """

    ESCROW_CREATED = "ESCROW_CREATED"
    STATE_CHANGED = "STATE_CHANGED"


class RejectionCode(enum.StrEnum):
    """Why the transition guard refused an action."""

    TERMINAL_STATE = "TERMINAL_STATE"
    ROLE_NOT_PERMITTED = "ROLE_NOT_PERMITTED"
    INVALID_TRANSITION = "INVALID_TRANSITION"
