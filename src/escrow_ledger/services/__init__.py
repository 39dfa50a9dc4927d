"""Application services — use case orchestration."""

from escrow_ledger.services.escrow_service import EscrowService, new_escrow_id

__all__ = ["EscrowService", "new_escrow_id"]
