"""Tests for the EscrowService lifecycle scenarios."""

from __future__ import annotations

from decimal import Decimal

import pytest

from escrow_ledger.domain.enums import EscrowAction, EscrowState, RejectionCode, UserRole
from escrow_ledger.domain.escrow import apply_action
from escrow_ledger.domain.events import EscrowCreated, StateChanged
from escrow_ledger.domain.exceptions import (
    ConcurrentModificationError,
    EscrowNotFoundError,
)
from escrow_ledger.services.escrow_service import EscrowService

BUYER = "buyer-123"
SELLER = "seller-456"
ADMIN = "admin-001"


@pytest.fixture
def escrow_id(service: EscrowService, sample_escrow_data) -> str:
    return service.create_escrow(**sample_escrow_data).id


def _fund(service: EscrowService, escrow_id: str) -> None:
    assert service.apply_action(escrow_id, EscrowAction.FUND, BUYER, UserRole.BUYER).success


class TestCreate:
    def test_create_starts_proposed_with_one_event(self, service, escrow_id) -> None:
        record = service.get_escrow(escrow_id)
        assert record.escrow.current_state == EscrowState.PROPOSED
        assert record.escrow.amount == Decimal("5000")
        assert len(record.events) == 1
        assert isinstance(record.events[0], EscrowCreated)

    def test_generated_ids_are_unique(self, service, sample_escrow_data) -> None:
        first = service.create_escrow(**sample_escrow_data)
        second = service.create_escrow(**sample_escrow_data)
        assert first.id != second.id
        assert first.id.startswith("escrow_")

    def test_explicit_id(self, service, sample_escrow_data) -> None:
        escrow = service.create_escrow(**sample_escrow_data, escrow_id="test-escrow-1")
        assert service.get_escrow("test-escrow-1").escrow == escrow


class TestHappyPath:
    def test_fund_then_release(self, service, escrow_id) -> None:
        funded = service.apply_action(escrow_id, EscrowAction.FUND, BUYER, UserRole.BUYER)
        assert funded.escrow.current_state == EscrowState.FUNDED
        assert service.get_escrow(escrow_id).version == 2

        released = service.apply_action(escrow_id, EscrowAction.RELEASE, SELLER, UserRole.SELLER)
        assert released.escrow.current_state == EscrowState.RELEASED

        record = service.get_escrow(escrow_id)
        assert record.escrow.current_state == EscrowState.RELEASED
        assert [e.type for e in record.events] == [
            "ESCROW_CREATED",
            "STATE_CHANGED",
            "STATE_CHANGED",
        ]

    @pytest.mark.parametrize("action", list(EscrowAction))
    @pytest.mark.parametrize("role", list(UserRole))
    def test_released_rejects_everything(self, service, escrow_id, action, role) -> None:
        _fund(service, escrow_id)
        service.apply_action(escrow_id, EscrowAction.RELEASE, SELLER, UserRole.SELLER)

        result = service.apply_action(escrow_id, action, "anyone", role)
        assert result.code == RejectionCode.TERMINAL_STATE
        assert service.get_escrow(escrow_id).version == 3


class TestDisputePaths:
    def test_dispute_resolved_with_release(self, service, escrow_id) -> None:
        _fund(service, escrow_id)
        disputed = service.apply_action(
            escrow_id, EscrowAction.DISPUTE, BUYER, UserRole.BUYER, reason="Item damaged"
        )
        assert disputed.escrow.current_state == EscrowState.DISPUTED

        resolved = service.apply_action(
            escrow_id, EscrowAction.RESOLVE_DISPUTE_RELEASE, ADMIN, UserRole.ADMIN
        )
        assert resolved.escrow.current_state == EscrowState.RELEASED

        events = service.get_events(escrow_id)
        assert len(events) == 4
        assert events[2].reason == "Item damaged"

    def test_dispute_resolved_with_refund_is_terminal(self, service, escrow_id) -> None:
        _fund(service, escrow_id)
        service.apply_action(escrow_id, EscrowAction.DISPUTE, BUYER, UserRole.BUYER)
        refunded = service.apply_action(
            escrow_id, EscrowAction.RESOLVE_DISPUTE_REFUND, ADMIN, UserRole.ADMIN
        )
        assert refunded.escrow.current_state == EscrowState.REFUNDED

        again = service.apply_action(escrow_id, EscrowAction.DISPUTE, BUYER, UserRole.BUYER)
        assert not again.success
        assert again.code == RejectionCode.TERMINAL_STATE
        assert len(service.get_events(escrow_id)) == 4


class TestRejections:
    def test_release_from_proposed(self, service, escrow_id) -> None:
        before = service.get_escrow(escrow_id)
        result = service.apply_action(escrow_id, EscrowAction.RELEASE, SELLER, UserRole.SELLER)

        assert not result.success
        assert result.code == RejectionCode.INVALID_TRANSITION
        assert service.get_escrow(escrow_id) == before

    def test_seller_cannot_fund(self, service, escrow_id) -> None:
        result = service.apply_action(escrow_id, EscrowAction.FUND, SELLER, UserRole.SELLER)
        assert result.code == RejectionCode.ROLE_NOT_PERMITTED
        assert service.get_escrow(escrow_id).version == 1

    def test_unknown_escrow(self, service) -> None:
        with pytest.raises(EscrowNotFoundError):
            service.apply_action("nope", EscrowAction.FUND, BUYER, UserRole.BUYER)


class TestReadModels:
    def test_replay_matches_snapshot(self, service, escrow_id) -> None:
        _fund(service, escrow_id)
        service.apply_action(escrow_id, EscrowAction.DISPUTE, BUYER, UserRole.BUYER)
        assert service.replay(escrow_id) == service.get_escrow(escrow_id).escrow

    def test_status_for_role(self, service, escrow_id) -> None:
        _fund(service, escrow_id)
        status = service.get_status(escrow_id, UserRole.SELLER)
        assert status == {
            "escrow_id": escrow_id,
            "state": EscrowState.FUNDED,
            "is_terminal": False,
            "allowed_actions": [EscrowAction.RELEASE],
            "version": 2,
        }

    def test_list_most_recent_first(self, service, sample_escrow_data) -> None:
        first = service.create_escrow(**sample_escrow_data)
        second = service.create_escrow(**sample_escrow_data)
        _fund(service, first.id)
        assert [r.escrow.id for r in service.list_escrows()] == [first.id, second.id]

    def test_get_unknown(self, service) -> None:
        with pytest.raises(EscrowNotFoundError):
            service.get_escrow("nope")


class TestOptimisticConcurrency:
    def test_lost_race_is_retried_against_fresh_state(
        self, service, memory_store, escrow_id, monkeypatch
    ) -> None:
        original_get = memory_store.get
        raced = []

        def racing_get(requested_id: str):
            record = original_get(requested_id)
            if not raced:
                raced.append(True)
                competing = apply_action(record.escrow, EscrowAction.FUND, BUYER, UserRole.BUYER)
                memory_store.update(competing.escrow, competing.event)
            return record

        monkeypatch.setattr(memory_store, "get", racing_get)

        result = service.apply_action(escrow_id, EscrowAction.FUND, BUYER, UserRole.BUYER)

        # The retry sees FUNDED and refuses a second FUND
        assert result.code == RejectionCode.INVALID_TRANSITION
        record = original_get(escrow_id)
        assert record.version == 2
        assert sum(isinstance(e, StateChanged) for e in record.events) == 1

    def test_gives_up_after_retry_attempts(
        self, memory_store, sample_escrow_data, monkeypatch
    ) -> None:
        service = EscrowService(memory_store, retry_attempts=2)
        escrow = service.create_escrow(**sample_escrow_data)
        competing = apply_action(escrow, EscrowAction.FUND, BUYER, UserRole.BUYER)
        original_get = memory_store.get

        def always_racing_get(requested_id: str):
            record = original_get(requested_id)
            # Keep the snapshot PROPOSED so every retry still accepts FUND
            memory_store.update(escrow, competing.event)
            return record

        monkeypatch.setattr(memory_store, "get", always_racing_get)

        with pytest.raises(ConcurrentModificationError):
            service.apply_action(escrow.id, EscrowAction.FUND, BUYER, UserRole.BUYER)
