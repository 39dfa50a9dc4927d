"""Event store — durable, keyed, append-only escrow history.

Holds the map escrow_id -> (latest snapshot, ordered events) in memory and
rewrites the whole map to its backend after every mutation. The store never
evaluates business rules; callers must only hand it snapshots and events that
the aggregate produced.

An EventStore is constructed once and injected into whoever needs it. Each
mutating call runs its read-modify-write-persist cycle under one lock, so
concurrent appends are never lost. Backend write failures are logged and
counted but do not fail the operation; the in-memory map stays authoritative
for the life of the process.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from escrow_ledger.domain.exceptions import (
    ConcurrentModificationError,
    EscrowAlreadyExistsError,
    EscrowNotFoundError,
)
from escrow_ledger.infrastructure.storage.backends import (
    InMemoryBackend,
    JsonFileBackend,
    ReconcilingBackend,
    StorageBackend,
)
from escrow_ledger.infrastructure.storage.records import EscrowRecord
from escrow_ledger.logging_config import get_logger

if TYPE_CHECKING:
    from escrow_ledger.config import Settings
    from escrow_ledger.domain.escrow import Escrow
    from escrow_ledger.domain.events import EscrowCreated, EscrowEvent, StateChanged

logger = get_logger(__name__)


class EventStore:
    """Append-only persistence for escrow snapshots and their histories."""

    def __init__(self, backend: StorageBackend) -> None:
        self._backend = backend
        self._lock = threading.RLock()
        self._records: dict[str, EscrowRecord] = backend.load()
        self.persist_failures = 0
        logger.info("event_store.loaded", backend=backend.name, escrows=len(self._records))

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, escrow: Escrow, event: EscrowCreated) -> EscrowRecord:
        """Insert a brand-new escrow with its creation event.

        Raises:
            EscrowAlreadyExistsError: If the ID is already stored.
        """
        with self._lock:
            if escrow.id in self._records:
                raise EscrowAlreadyExistsError(escrow.id)
            record = EscrowRecord(escrow=escrow, events=(event,))
            self._records[escrow.id] = record
            self._persist()
        return record

    def update(
        self,
        escrow: Escrow,
        event: StateChanged,
        expected_version: int | None = None,
    ) -> EscrowRecord:
        """Replace the snapshot and append one event to the history.

        Args:
            escrow: The new snapshot.
            event: The event explaining the change.
            expected_version: If given, the number of events the caller based
                its change on. A mismatch means someone else appended first.

        Raises:
            EscrowNotFoundError: If the ID is not stored.
            ConcurrentModificationError: If expected_version is stale.
        """
        with self._lock:
            current = self._records.get(escrow.id)
            if current is None:
                raise EscrowNotFoundError(escrow.id)
            if expected_version is not None and expected_version != current.version:
                raise ConcurrentModificationError(escrow.id, expected_version, current.version)
            record = EscrowRecord(escrow=escrow, events=(*current.events, event))
            self._records[escrow.id] = record
            self._persist()
        return record

    def clear(self) -> None:
        """Wipe every stored escrow. Administrative use only."""
        with self._lock:
            self._records = {}
            self._persist()
        logger.warning("event_store.cleared", backend=self._backend.name)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, escrow_id: str) -> EscrowRecord | None:
        """Return a copy of the stored record, or None if unknown."""
        with self._lock:
            record = self._records.get(escrow_id)
        if record is None:
            return None
        return EscrowRecord(escrow=record.escrow, events=tuple(record.events))

    def history(self, escrow_id: str) -> tuple[EscrowEvent, ...]:
        """Return the ordered events of one escrow.

        Raises:
            EscrowNotFoundError: If the ID is not stored.
        """
        record = self.get(escrow_id)
        if record is None:
            raise EscrowNotFoundError(escrow_id)
        return record.events

    def list_all(self) -> list[EscrowRecord]:
        """Return every stored record, in no particular order."""
        with self._lock:
            records = list(self._records.values())
        return [EscrowRecord(escrow=r.escrow, events=tuple(r.events)) for r in records]

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def __contains__(self, escrow_id: object) -> bool:
        with self._lock:
            return escrow_id in self._records

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _persist(self) -> None:
        """Write the full map to the backend. Must be called with the lock held."""
        try:
            self._backend.save(self._records)
        except OSError as exc:
            self.persist_failures += 1
            logger.warning(
                "event_store.persist_failed",
                backend=self._backend.name,
                error=str(exc),
                failures=self.persist_failures,
            )


def build_backend(settings: Settings) -> StorageBackend:
    """Pick the storage backend described by the settings."""
    if settings.store_backend == "memory":
        return InMemoryBackend()

    paths = settings.store_path_list
    if not paths:
        raise ValueError("STORE_PATHS must name at least one file for the json backend")
    if len(paths) == 1:
        return JsonFileBackend(paths[0])
    return ReconcilingBackend([JsonFileBackend(p) for p in paths])


def build_event_store(settings: Settings) -> EventStore:
    """Construct the process's event store from settings."""
    return EventStore(build_backend(settings))
