"""Domain layer — pure business logic with zero framework dependencies."""

from escrow_ledger.domain.enums import (
    TERMINAL_STATES,
    EscrowAction,
    EscrowState,
    EventType,
    RejectionCode,
    UserRole,
)
from escrow_ledger.domain.escrow import (
    ActionResult,
    Escrow,
    apply_action,
    create_escrow,
    reconstruct_escrow,
)
from escrow_ledger.domain.events import (
    EscrowCreated,
    EscrowEvent,
    StateChanged,
    event_from_dict,
)
from escrow_ledger.domain.exceptions import (
    ConcurrentModificationError,
    EscrowAlreadyExistsError,
    EscrowLedgerError,
    EscrowNotFoundError,
    TransitionRejectedError,
)
from escrow_ledger.domain.state_machine import (
    EscrowStateMachine,
    TransitionResult,
    allowed_actions,
    is_terminal_state,
    transition_state,
)

__all__ = [
    "TERMINAL_STATES",
    "EscrowAction",
    "EscrowState",
    "EventType",
    "RejectionCode",
    "UserRole",
    "ActionResult",
    "Escrow",
    "apply_action",
    "create_escrow",
    "reconstruct_escrow",
    "EscrowCreated",
    "EscrowEvent",
    "StateChanged",
    "event_from_dict",
    "ConcurrentModificationError",
    "EscrowAlreadyExistsError",
    "EscrowLedgerError",
    "EscrowNotFoundError",
    "TransitionRejectedError",
    "EscrowStateMachine",
    "TransitionResult",
    "allowed_actions",
    "is_terminal_state",
    "transition_state",
]
