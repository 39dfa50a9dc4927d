"""Domain exceptions for the Escrow Ledger.

These exceptions are framework-agnostic and represent caller or storage
errors. Business-rule rejections from the transition guard are returned as
values, not raised; TransitionRejectedError exists for callers that prefer
to surface a rejection as an exception (the HTTP layer).
They are caught and translated to HTTP responses by the API layer's middleware.
"""


class EscrowLedgerError(Exception):
    """Base exception for all domain errors."""

    def __init__(self, message: str, code: str = "ESCROW_LEDGER_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


# --- Store Errors ---


class EscrowNotFoundError(EscrowLedgerError):
    """Raised when an escrow ID does not exist."""

    def __init__(self, escrow_id: str) -> None:
        super().__init__(
            message=f"Escrow not found: {escrow_id}",
            code="ESCROW_NOT_FOUND",
        )
        self.escrow_id = escrow_id


class EscrowAlreadyExistsError(EscrowLedgerError):
    """Raised when creating an escrow whose ID is already stored."""

    def __init__(self, escrow_id: str) -> None:
        super().__init__(
            message=f"Escrow already exists: {escrow_id}",
            code="ESCROW_ALREADY_EXISTS",
        )
        self.escrow_id = escrow_id


class ConcurrentModificationError(EscrowLedgerError):
    """Raised when an update was based on a stale read of the history.

    Example: two callers both read version 2 and both try to append.
    """

    def __init__(self, escrow_id: str, expected_version: int, actual_version: int) -> None:
        super().__init__(
            message=(
                f"Escrow {escrow_id} was modified concurrently: "
                f"expected version {expected_version}, found {actual_version}"
            ),
            code="CONCURRENT_MODIFICATION",
        )
        self.escrow_id = escrow_id
        self.expected_version = expected_version
        self.actual_version = actual_version


# --- State Machine Errors ---


class TransitionRejectedError(EscrowLedgerError):
    """Raised when a caller chooses to escalate a guard rejection.

    The code is the RejectionCode value (TERMINAL_STATE, ROLE_NOT_PERMITTED,
    INVALID_TRANSITION).
    """

    def __init__(self, code: str, reason: str) -> None:
        super().__init__(message=reason, code=code)
        self.reason = reason
