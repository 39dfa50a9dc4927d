"""Escrow State Machine Guard.

Uses python-statemachine to declare the legal state transitions at the domain
level. In front of the table sit two gates: a terminal-state gate and a
role-permission gate. No matter what the API does, an illegal transition
(e.g., PROPOSED -> RELEASED) comes back as a rejection.

transition_state() is pure: it never raises for a business-rule violation,
it returns a TransitionResult with an explicit RejectionCode.

Transition table:
    PROPOSED  -> FUNDED    (fund, BUYER)
    FUNDED    -> RELEASED  (release, SELLER)
    FUNDED    -> DISPUTED  (dispute, BUYER)
    DISPUTED  -> RELEASED  (resolve_dispute_release, ADMIN)
    DISPUTED  -> REFUNDED  (resolve_dispute_refund, ADMIN)
"""

from __future__ import annotations

from dataclasses import dataclass

from statemachine import State, StateMachine
from statemachine.exceptions import TransitionNotAllowed

from escrow_ledger.domain.enums import (
    TERMINAL_STATES,
    EscrowAction,
    EscrowState,
    RejectionCode,
    UserRole,
)

# Which roles may invoke an action at all, regardless of state.
ACTION_PERMISSIONS: dict[EscrowAction, frozenset[UserRole]] = {
    EscrowAction.FUND: frozenset({UserRole.BUYER}),
    EscrowAction.RELEASE: frozenset({UserRole.SELLER}),
    EscrowAction.DISPUTE: frozenset({UserRole.BUYER}),
    EscrowAction.RESOLVE_DISPUTE_RELEASE: frozenset({UserRole.ADMIN}),
    EscrowAction.RESOLVE_DISPUTE_REFUND: frozenset({UserRole.ADMIN}),
    EscrowAction.REFUND: frozenset(),
}


class EscrowStateMachine(StateMachine):
    """State machine that declares the escrow transition table.

    Event names are the lowercase EscrowAction values.

    Usage:
        sm = EscrowStateMachine(current_state="FUNDED")
        sm.dispute()   # transitions to DISPUTED
        sm.status      # "DISPUTED"
    """

    # --- States ---
    PROPOSED = State("PROPOSED", initial=True)
    FUNDED = State("FUNDED")
    DISPUTED = State("DISPUTED")
    RELEASED = State("RELEASED", final=True)
    REFUNDED = State("REFUNDED", final=True)

    # --- Events / Transitions ---
    fund = PROPOSED.to(FUNDED)
    release = FUNDED.to(RELEASED)
    dispute = FUNDED.to(DISPUTED)
    resolve_dispute_release = DISPUTED.to(RELEASED)
    resolve_dispute_refund = DISPUTED.to(REFUNDED)

    def __init__(self, current_state: str = "PROPOSED") -> None:
        """Initialize the state machine at a given state.

        Args:
            current_state: An EscrowState value (e.g., "FUNDED").

        Raises:
            ValueError: If the value is not a known state.
        """
        valid_values = {s.value for s in self.states}
        if current_state not in valid_values:
            valid = ", ".join(sorted(valid_values))
            raise ValueError(
                f"Unknown state '{current_state}'. Valid states: {valid}"
            )
        super().__init__(start_value=current_state)

    @property
    def status(self) -> str:
        """Return the current state value as a string (matches EscrowState)."""
        return str(self.current_state.value)

    def get_allowed_events(self) -> list[str]:
        """Return the event names that can fire from the current state."""
        return [event.name for event in self.allowed_events]


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of asking the guard to move an escrow.

    Attributes:
        accepted: Whether the action is legal.
        next_state: The resulting state (only when accepted).
        code: Why the action was refused (only when rejected).
        reason: Human-readable rejection message (only when rejected).
    """

    accepted: bool
    next_state: EscrowState | None = None
    code: RejectionCode | None = None
    reason: str | None = None

    @classmethod
    def ok(cls, next_state: EscrowState) -> TransitionResult:
        return cls(accepted=True, next_state=next_state)

    @classmethod
    def rejected(cls, code: RejectionCode, reason: str) -> TransitionResult:
        return cls(accepted=False, code=code, reason=reason)


def is_terminal_state(state: EscrowState) -> bool:
    """Return True if no action is legal from the given state."""
    return state in TERMINAL_STATES


def transition_state(
    state: EscrowState,
    action: EscrowAction,
    role: UserRole,
) -> TransitionResult:
    """Decide whether `role` may perform `action` from `state`.

    Gates are evaluated in order: terminal state, role permission,
    transition table. The first failing gate determines the rejection code.

    Args:
        state: Current EscrowState.
        action: Requested EscrowAction.
        role: Role of the caller.

    Returns:
        TransitionResult.ok(next_state) or TransitionResult.rejected(code, reason).
    """
    state = EscrowState(state)
    action = EscrowAction(action)
    role = UserRole(role)

    if is_terminal_state(state):
        return TransitionResult.rejected(
            RejectionCode.TERMINAL_STATE,
            f"No actions allowed from terminal state {state}",
        )

    if role not in ACTION_PERMISSIONS.get(action, frozenset()):
        return TransitionResult.rejected(
            RejectionCode.ROLE_NOT_PERMITTED,
            f"Role {role} is not allowed to perform action {action}",
        )

    sm = EscrowStateMachine(current_state=state.value)
    event_method = getattr(sm, action.value.lower(), None)
    if event_method is None or not callable(event_method):
        return _invalid_transition(state, action, role)
    try:
        event_method()
    except TransitionNotAllowed:
        return _invalid_transition(state, action, role)

    return TransitionResult.ok(EscrowState(sm.status))


def allowed_actions(state: EscrowState, role: UserRole | None = None) -> list[EscrowAction]:
    """Return the actions that would be accepted from `state`.

    When `role` is None, every role is considered.
    """
    roles = [role] if role is not None else list(UserRole)
    return [
        action
        for action in EscrowAction
        if any(transition_state(state, action, r).accepted for r in roles)
    ]


def _invalid_transition(
    state: EscrowState, action: EscrowAction, role: UserRole
) -> TransitionResult:
    return TransitionResult.rejected(
        RejectionCode.INVALID_TRANSITION,
        f"Invalid transition: {state} -> ({action}) by {role}",
    )
