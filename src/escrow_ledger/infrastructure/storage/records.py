"""Persisted record shape for one escrow.

On disk, the store is a JSON object keyed by escrow ID:

    {
        "<escrow id>": {
            "escrow": {id, buyerId, sellerId, amount, description,
                       currentState, createdAt, updatedAt},
            "events": [{id, type, timestamp, escrowId, ...}, ...]
        }
    }

Timestamps are ISO-8601 strings. Amounts are written as decimal strings.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from escrow_ledger.domain.escrow import Escrow
from escrow_ledger.domain.events import EscrowEvent, event_from_dict


@dataclass(frozen=True)
class EscrowRecord:
    """Latest snapshot of an escrow plus its full ordered history."""

    escrow: Escrow
    events: tuple[EscrowEvent, ...]

    @property
    def version(self) -> int:
        """Number of events in the history; used for optimistic concurrency."""
        return len(self.events)

    def to_dict(self) -> dict[str, Any]:
        return {
            "escrow": self.escrow.to_dict(),
            "events": [event.to_dict() for event in self.events],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> EscrowRecord:
        return cls(
            escrow=Escrow.from_dict(data["escrow"]),
            events=tuple(event_from_dict(e) for e in data["events"]),
        )


def dump_records(records: Mapping[str, EscrowRecord]) -> str:
    """Serialize every record to the on-disk JSON document."""
    return json.dumps(
        {escrow_id: record.to_dict() for escrow_id, record in records.items()},
        indent=2,
    )


def load_records(raw: str) -> dict[str, EscrowRecord]:
    """Parse the on-disk JSON document.

    Raises:
        ValueError: On malformed JSON or unknown enum values.
        KeyError / TypeError: On a record missing required fields.
    """
    if not raw.strip():
        return {}
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError("Escrow store document must be a JSON object")
    return {escrow_id: EscrowRecord.from_dict(data) for escrow_id, data in parsed.items()}
