"""
Domain Errors

Every public operation either returns a complete result or raises one of
these. Resolution misses are not errors: they are described by
ResolutionWarning and only logged.
"""
from typing import Any, Optional


class TimeLedgerError(Exception):
    """Base exception for TimeLedger errors."""
    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(TimeLedgerError):
    """Malformed or missing input. Raised before any mutation."""
    status_code = 400


class NotFoundError(TimeLedgerError):
    """Referenced record does not exist."""
    status_code = 404


class ConflictError(TimeLedgerError):
    """Concurrent write to the same (user, date) kept colliding."""
    status_code = 409


class ReportTimeoutError(TimeLedgerError):
    """Report generation exceeded the caller's timeout."""
    status_code = 504


class ResolutionWarning(UserWarning):
    """A task entry could not be matched to a project."""

    def __init__(self, reference: str, reason: str):
        super().__init__(f"Unresolved project reference {reference!r}: {reason}")
        self.reference = reference
        self.reason = reason
