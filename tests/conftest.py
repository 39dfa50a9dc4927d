"""Shared test fixtures for the Escrow Ledger test suite.

Provides:
    - Fresh event stores per test (in-memory or JSON under tmp_path)
    - A service bound to the fresh store
    - Factory data for creating escrows
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from escrow_ledger.infrastructure.storage.backends import InMemoryBackend, JsonFileBackend
from escrow_ledger.infrastructure.storage.event_store import EventStore
from escrow_ledger.services.escrow_service import EscrowService

# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_escrow_data() -> dict:
    """Return valid escrow creation data."""
    return {
        "buyer_id": "buyer-123",
        "seller_id": "seller-456",
        "amount": Decimal("5000"),
        "description": "Purchase of goods",
    }


@pytest.fixture
def fixed_now() -> datetime:
    """Return a deterministic timestamp for testing."""
    return datetime(2025, 3, 1, 12, 0, 0, tzinfo=UTC)


# ---------------------------------------------------------------------------
# Storage Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_backend() -> InMemoryBackend:
    return InMemoryBackend()


@pytest.fixture
def memory_store(memory_backend: InMemoryBackend) -> EventStore:
    """A fresh in-memory event store."""
    return EventStore(memory_backend)


@pytest.fixture
def json_store(tmp_path) -> EventStore:
    """A fresh event store backed by a JSON file under tmp_path."""
    return EventStore(JsonFileBackend(tmp_path / "escrows.json"))


@pytest.fixture
def service(memory_store: EventStore) -> EscrowService:
    """An escrow service bound to a fresh in-memory store."""
    return EscrowService(memory_store)
