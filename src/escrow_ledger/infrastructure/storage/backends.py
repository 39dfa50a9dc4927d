"""Storage backends for the event store.

A backend only knows how to load and save the whole map of records. It never
looks at escrow states or events; that is the domain's job.

Implementations:
    - JsonFileBackend:     one JSON file on disk (default).
    - InMemoryBackend:     nothing survives the process (tests, demos).
    - ReconcilingBackend:  several locations holding the same logical data,
                           reconciled by updatedAt on load and all rewritten
                           on save.
"""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping, Sequence
from decimal import InvalidOperation
from pathlib import Path
from typing import Protocol, runtime_checkable

from escrow_ledger.infrastructure.storage.records import (
    EscrowRecord,
    dump_records,
    load_records,
)
from escrow_ledger.logging_config import get_logger

logger = get_logger(__name__)


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol that all storage backends must satisfy."""

    @property
    def name(self) -> str:
        """Short description used in log entries."""
        ...

    def load(self) -> dict[str, EscrowRecord]:
        """Return every stored record. Unreadable data counts as empty."""
        ...

    def save(self, records: Mapping[str, EscrowRecord]) -> None:
        """Replace the stored data with `records`.

        Raises:
            OSError: If the data could not be written.
        """
        ...


class InMemoryBackend:
    """Keeps the last saved map in memory."""

    def __init__(self, records: Mapping[str, EscrowRecord] | None = None) -> None:
        self._records: dict[str, EscrowRecord] = dict(records or {})
        self.save_count = 0

    @property
    def name(self) -> str:
        return "memory"

    def load(self) -> dict[str, EscrowRecord]:
        return dict(self._records)

    def save(self, records: Mapping[str, EscrowRecord]) -> None:
        self._records = dict(records)
        self.save_count += 1


class JsonFileBackend:
    """Stores every record in a single JSON file."""

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path)

    @property
    def name(self) -> str:
        return str(self._path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, EscrowRecord]:
        """Read the file; a missing, unreadable or corrupt file loads as empty."""
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text(encoding="utf-8")
            records = load_records(raw)
        except (OSError, ValueError, KeyError, TypeError, InvalidOperation) as exc:
            logger.warning(
                "storage.json.load_failed",
                path=str(self._path),
                error=str(exc),
            )
            return {}
        logger.debug("storage.json.loaded", path=str(self._path), escrows=len(records))
        return records

    def save(self, records: Mapping[str, EscrowRecord]) -> None:
        """Write through a temp file in the same directory, then rename over."""
        payload = dump_records(records)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self._path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise


def reconcile(sources: Sequence[Mapping[str, EscrowRecord]]) -> dict[str, EscrowRecord]:
    """Merge several copies of the store, keyed by escrow ID.

    When an ID appears in more than one source, the record whose snapshot has
    the later updated_at wins in full (snapshot and events together). On a tie
    the earlier source wins. Event lists are never merged.
    """
    merged: dict[str, EscrowRecord] = {}
    for source in sources:
        for escrow_id, record in source.items():
            current = merged.get(escrow_id)
            if current is None or record.escrow.updated_at > current.escrow.updated_at:
                merged[escrow_id] = record
    return merged


class ReconcilingBackend:
    """Several backends holding the same logical data.

    Intended for environments where the process may start from different
    working directories. Production deployments should use one location.
    """

    def __init__(self, backends: Sequence[StorageBackend]) -> None:
        if not backends:
            raise ValueError("ReconcilingBackend needs at least one backend")
        self._backends = list(backends)

    @property
    def name(self) -> str:
        return ",".join(b.name for b in self._backends)

    @property
    def backends(self) -> list[StorageBackend]:
        return list(self._backends)

    def load(self) -> dict[str, EscrowRecord]:
        """Reconcile every location; seed the primary file if it does not exist yet."""
        sources = [backend.load() for backend in self._backends]
        merged = reconcile(sources)
        logger.info(
            "event_store.reconciled",
            locations=len(sources),
            escrows=len(merged),
            per_location=[len(s) for s in sources],
        )
        primary = self._backends[0]
        if isinstance(primary, JsonFileBackend) and not primary.path.exists():
            try:
                primary.save(merged)
            except OSError as exc:
                logger.warning("storage.location_save_failed", location=primary.name, error=str(exc))
        return merged

    def save(self, records: Mapping[str, EscrowRecord]) -> None:
        """Write to every location; re-raise the first failure after trying all."""
        first_error: OSError | None = None
        for backend in self._backends:
            try:
                backend.save(records)
            except OSError as exc:
                logger.warning("storage.location_save_failed", location=backend.name, error=str(exc))
                if first_error is None:
                    first_error = exc
        if first_error is not None:
            raise first_error
