"""Error taxonomy for proposal assembly and submission"""

from typing import Any, List, Optional


class GovernanceError(Exception):
    """Base exception for governance proposal operations"""
    def __init__(self, message: str, error_code: Optional[str] = None):
        self.error_code = error_code
        super().__init__(message)


class InvalidIdentityError(GovernanceError):
    """Malformed or empty identity/address input. Caller bug, not retryable."""
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid identity '{field}': {message}", error_code="invalid_identity")


class EncodingError(GovernanceError):
    """A draft field violates an instruction's structural precondition"""
    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message, error_code="encoding")


class StaleStateError(GovernanceError):
    """Ledger state needed for assembly could not be read. Retry with a fresh read."""
    def __init__(self, message: str, address: Optional[str] = None):
        self.address = address
        super().__init__(message, error_code="stale_state")


class RejectedError(GovernanceError):
    """The ledger explicitly refused the transaction.

    ``details`` and ``logs`` carry what the ledger reported, unmodified, so
    the caller can surface them verbatim. Retrying requires a full
    re-assembly, never a resubmission of the same transaction.
    """
    def __init__(self, message: str, signature: Optional[str] = None,
                 details: Any = None, logs: Optional[List[str]] = None):
        self.signature = signature
        self.details = details
        self.logs = logs or []
        super().__init__(message, error_code="rejected")


class ConfirmationTimeoutError(GovernanceError):
    """Outcome unknown: the transaction may or may not have executed.

    Callers must re-query the proposal address before deciding to retry.
    """
    def __init__(self, message: str, signature: Optional[str] = None,
                 timeout: Optional[float] = None):
        self.signature = signature
        self.timeout = timeout
        super().__init__(message, error_code="confirmation_timeout")
