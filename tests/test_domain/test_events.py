"""Tests for event serialization and the replay fold."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest

from escrow_ledger.domain.enums import EscrowAction, EscrowState, UserRole
from escrow_ledger.domain.escrow import apply_action, create_escrow
from escrow_ledger.domain.events import (
    EscrowCreated,
    StateChanged,
    event_from_dict,
    fold_state,
    parse_timestamp,
)


class TestEventDicts:
    def test_created_event_shape(self, sample_escrow_data, fixed_now) -> None:
        _, event = create_escrow("escrow-1", **sample_escrow_data, now=fixed_now)
        data = event.to_dict()
        assert data == {
            "id": event.id,
            "type": "ESCROW_CREATED",
            "timestamp": "2025-03-01T12:00:00+00:00",
            "escrowId": "escrow-1",
            "buyerId": "buyer-123",
            "sellerId": "seller-456",
            "amount": "5000",
            "description": "Purchase of goods",
        }
        assert event_from_dict(data) == event

    def test_state_changed_event_shape(self, sample_escrow_data, fixed_now) -> None:
        escrow, _ = create_escrow("escrow-1", **sample_escrow_data, now=fixed_now)
        event = apply_action(escrow, EscrowAction.FUND, "buyer-123", UserRole.BUYER, now=fixed_now).event
        data = event.to_dict()
        assert data["type"] == "STATE_CHANGED"
        assert data["fromState"] == "PROPOSED"
        assert data["toState"] == "FUNDED"
        assert data["role"] == "BUYER"
        assert data["reason"] is None
        assert event_from_dict(data) == event

    def test_amount_read_from_json_number(self, fixed_now) -> None:
        event = event_from_dict(
            {
                "id": "evt_1",
                "type": "ESCROW_CREATED",
                "timestamp": fixed_now.isoformat(),
                "escrowId": "escrow-1",
                "buyerId": "b",
                "sellerId": "s",
                "amount": 12.5,
                "description": "d",
            }
        )
        assert isinstance(event, EscrowCreated)
        assert event.amount == Decimal("12.5")

    def test_unknown_type_rejected(self, fixed_now) -> None:
        with pytest.raises(ValueError):
            event_from_dict({"id": "evt_1", "type": "DELETED", "timestamp": fixed_now.isoformat()})


class TestFoldState:
    def test_no_state_changes_is_proposed(self, sample_escrow_data) -> None:
        _, created = create_escrow("escrow-1", **sample_escrow_data)
        assert fold_state([created]) == EscrowState.PROPOSED

    def test_last_to_state_wins(self, fixed_now) -> None:
        def changed(to_state: EscrowState) -> StateChanged:
            return StateChanged(
                id="evt",
                timestamp=fixed_now,
                escrow_id="escrow-1",
                action=EscrowAction.FUND,
                from_state=EscrowState.PROPOSED,
                to_state=to_state,
                performed_by="b",
                role=UserRole.BUYER,
            )

        assert fold_state([changed(EscrowState.FUNDED), changed(EscrowState.DISPUTED)]) == (
            EscrowState.DISPUTED
        )


class TestParseTimestamp:
    @pytest.mark.parametrize(
        "value",
        [
            "2025-03-01T12:00:00",
            "2025-03-01T12:00:00Z",
            "2025-03-01T12:00:00.000Z",
            "2025-03-01T12:00:00+00:00",
            "2025-03-01T14:00:00+02:00",
        ],
    )
    def test_always_aware_utc_instant(self, value, fixed_now) -> None:
        parsed = parse_timestamp(value)
        assert parsed.tzinfo is not None
        assert parsed == fixed_now

    def test_explicit_offset_is_kept(self) -> None:
        parsed = parse_timestamp("2025-03-01T14:00:00+02:00")
        assert parsed.utcoffset() == timedelta(hours=2)

    def test_naive_event_timestamp_loads_as_utc(self, sample_escrow_data, fixed_now) -> None:
        _, event = create_escrow("escrow-1", **sample_escrow_data, now=fixed_now)
        data = {**event.to_dict(), "timestamp": "2025-03-01T12:00:00"}
        loaded = event_from_dict(data)
        assert loaded.timestamp == datetime(2025, 3, 1, 12, tzinfo=UTC)
