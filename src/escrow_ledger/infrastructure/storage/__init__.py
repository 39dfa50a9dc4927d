"""Storage infrastructure — records, backends and the event store."""

from escrow_ledger.infrastructure.storage.backends import (
    InMemoryBackend,
    JsonFileBackend,
    ReconcilingBackend,
    StorageBackend,
    reconcile,
)
from escrow_ledger.infrastructure.storage.event_store import (
    EventStore,
    build_backend,
    build_event_store,
)
from escrow_ledger.infrastructure.storage.records import (
    EscrowRecord,
    dump_records,
    load_records,
)

__all__ = [
    "EscrowRecord",
    "EventStore",
    "InMemoryBackend",
    "JsonFileBackend",
    "ReconcilingBackend",
    "StorageBackend",
    "build_backend",
    "build_event_store",
    "dump_records",
    "load_records",
    "reconcile",
]
