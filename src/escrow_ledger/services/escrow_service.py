"""Escrow Service — application layer for the escrow lifecycle.

This is the layer that coordinates between:
    - Escrow aggregate (create / apply, which consults the transition guard)
    - Event store (durable snapshot + append-only history)

Both operations the outside world needs live here:
    CreateEscrow(buyer_id, seller_id, amount, description) -> Escrow
    ApplyAction(escrow_id, action, performed_by, role, reason?) -> ActionResult

ApplyAction uses optimistic concurrency: the update carries the version
(event count) it was computed from, and a stale version is retried from a
fresh read. Two racing FUND requests therefore produce one FUNDED event and
one INVALID_TRANSITION rejection.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import structlog
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_random,
)

from escrow_ledger.domain.escrow import (
    ActionResult,
    Escrow,
    apply_action,
    create_escrow,
    reconstruct_escrow,
)
from escrow_ledger.domain.exceptions import (
    ConcurrentModificationError,
    EscrowNotFoundError,
)
from escrow_ledger.domain.state_machine import allowed_actions, is_terminal_state
from escrow_ledger.logging_config import get_logger

if TYPE_CHECKING:
    from decimal import Decimal

    from tenacity import RetryCallState

    from escrow_ledger.domain.enums import EscrowAction, UserRole
    from escrow_ledger.domain.events import EscrowEvent
    from escrow_ledger.infrastructure.storage.event_store import EventStore
    from escrow_ledger.infrastructure.storage.records import EscrowRecord

logger = get_logger(__name__)


def new_escrow_id() -> str:
    """Generate a unique escrow ID."""
    return f"escrow_{uuid.uuid4().hex}"


def _log_conflict(retry_state: RetryCallState) -> None:
    logger.info("escrow.update_conflict_retry", attempt=retry_state.attempt_number)


class EscrowService:
    """Manages the escrow lifecycle on top of an injected EventStore."""

    def __init__(self, store: EventStore, retry_attempts: int = 3) -> None:
        self._store = store
        self._retry_attempts = retry_attempts

    @property
    def store(self) -> EventStore:
        return self._store

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_escrow(
        self,
        buyer_id: str,
        seller_id: str,
        amount: Decimal,
        description: str,
        escrow_id: str | None = None,
    ) -> Escrow:
        """Create a new escrow in PROPOSED and persist its creation event."""
        escrow, event = create_escrow(
            escrow_id or new_escrow_id(),
            buyer_id,
            seller_id,
            amount,
            description,
        )
        self._store.create(escrow, event)

        logger.info(
            "escrow.created",
            escrow_id=escrow.id,
            buyer_id=buyer_id,
            seller_id=seller_id,
            amount=str(amount),
        )
        return escrow

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def apply_action(
        self,
        escrow_id: str,
        action: EscrowAction,
        performed_by: str,
        role: UserRole,
        reason: str | None = None,
    ) -> ActionResult:
        """Apply an action to a stored escrow.

        Returns:
            The ActionResult. A rejection leaves the store untouched.

        Raises:
            EscrowNotFoundError: If the escrow does not exist.
            ConcurrentModificationError: If every retry lost the race.
        """
        retrying = Retrying(
            retry=retry_if_exception_type(ConcurrentModificationError),
            stop=stop_after_attempt(self._retry_attempts),
            wait=wait_random(min=0, max=0.01),
            before_sleep=_log_conflict,
            reraise=True,
        )
        with structlog.contextvars.bound_contextvars(escrow_id=escrow_id):
            return retrying(self._apply_once, escrow_id, action, performed_by, role, reason)

    def _apply_once(
        self,
        escrow_id: str,
        action: EscrowAction,
        performed_by: str,
        role: UserRole,
        reason: str | None,
    ) -> ActionResult:
        record = self._get_record_or_raise(escrow_id)
        result = apply_action(record.escrow, action, performed_by, role, reason)

        if not result.success:
            logger.info(
                "escrow.action_rejected",
                action=str(action),
                role=str(role),
                state=str(record.escrow.current_state),
                code=str(result.code),
            )
            return result

        self._store.update(result.escrow, result.event, expected_version=record.version)
        logger.info(
            "escrow.action_applied",
            action=str(action),
            performed_by=performed_by,
            from_state=str(result.event.from_state),
            to_state=str(result.event.to_state),
        )
        return result

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def get_escrow(self, escrow_id: str) -> EscrowRecord:
        """Get an escrow with its history or raise."""
        return self._get_record_or_raise(escrow_id)

    def list_escrows(self) -> list[EscrowRecord]:
        """Every stored escrow, most recently updated first."""
        return sorted(
            self._store.list_all(),
            key=lambda r: r.escrow.updated_at,
            reverse=True,
        )

    def get_events(self, escrow_id: str) -> tuple[EscrowEvent, ...]:
        """Get the audit trail."""
        return self._store.history(escrow_id)

    def get_status(self, escrow_id: str, role: UserRole | None = None) -> dict[str, Any]:
        """Get the current state with the actions that would be accepted."""
        record = self._get_record_or_raise(escrow_id)
        state = record.escrow.current_state
        return {
            "escrow_id": escrow_id,
            "state": state,
            "is_terminal": is_terminal_state(state),
            "allowed_actions": allowed_actions(state, role),
            "version": record.version,
        }

    def replay(self, escrow_id: str) -> Escrow | None:
        """Rebuild the escrow from its history alone."""
        return reconstruct_escrow(self._store.history(escrow_id))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_record_or_raise(self, escrow_id: str) -> EscrowRecord:
        record = self._store.get(escrow_id)
        if record is None:
            raise EscrowNotFoundError(escrow_id)
        return record
