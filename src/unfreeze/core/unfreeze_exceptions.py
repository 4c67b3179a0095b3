"""
Exception hierarchy for the unfreeze (vesting) engine.

Every failure an action can produce is a typed exception carrying a stable
``code`` so the surrounding execution engine can surface it in the
transaction's execution result. None of them are retried internally.
"""

from __future__ import annotations
from typing import Optional, Any, Dict


class UnfreezeError(Exception):
    """Base exception for all unfreeze engine errors.

    Attributes:
        message: Human-readable error description
        details: Additional context about the error
        recoverable: Whether resubmitting a new transaction may succeed
    """

    code = "ErrUnfreeze"
    recoverable = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        recoverable: Optional[bool] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}
        if recoverable is not None:
            self.recoverable = recoverable


# ==================== Storage Errors ====================


class StorageError(UnfreezeError):
    """Raised when the persistent store cannot serve a request."""
    code = "ErrStorage"


class NotFoundError(StorageError):
    """Raised when a key (usually a schedule record) is absent."""
    code = "ErrNotFound"


class DecodeError(StorageError):
    """Raised when stored or submitted bytes cannot be deserialized."""
    code = "ErrDecode"


# ==================== Ledger Errors ====================


class LedgerError(UnfreezeError):
    """Raised by the token ledger; propagated verbatim by the actions."""
    code = "ErrLedger"


class FreezeError(LedgerError):
    """Raised when an owner's active balance cannot cover a freeze."""
    code = "ErrNoBalance"


class InsufficientFrozenBalanceError(LedgerError):
    """Raised when a frozen balance cannot cover a transfer or activation."""
    code = "ErrNoBalance"


class InvalidAmountError(LedgerError):
    """Raised for zero or negative ledger amounts."""
    code = "ErrAmount"


# ==================== Schedule Errors ====================


class ScheduleError(UnfreezeError):
    """Raised when a schedule rule rejects an action."""
    code = "ErrUnfreezeSchedule"


class BeforeDueError(ScheduleError):
    """Raised when no period has matured since the last withdrawal."""
    code = "ErrUnfreezeBeforeDue"
    recoverable = True


class AlreadyEmptiedError(ScheduleError):
    """Raised when the schedule has nothing left in escrow."""
    code = "ErrUnfreezeEmptied"


class InvalidReleaseModeError(ScheduleError):
    """Raised for a release mode other than percentage or fixed amount."""
    code = "ErrUnfreezeMeans"


class NotInitiatorError(ScheduleError):
    """Raised when someone other than the initiator tries to terminate."""
    code = "ErrUnfreezeID"


class InvalidParameterError(ScheduleError):
    """Raised when create parameters are out of range."""
    code = "ErrInvalidParam"


class UnknownActionError(UnfreezeError):
    """Raised when a transaction payload names no known action."""
    code = "ErrActionNotSupport"


# ==================== Configuration Errors ====================


class ConfigurationError(UnfreezeError):
    """Raised when engine configuration is missing or invalid."""
    code = "ErrConfig"


# ==================== Utility Functions ====================


def is_recoverable_error(exc: Exception) -> bool:
    """Check if an exception represents a condition that may clear later.

    Args:
        exc: The exception to check

    Returns:
        True if resubmitting the action later could succeed
    """
    if isinstance(exc, UnfreezeError):
        return bool(exc.recoverable)
    return False


def get_error_context(exc: Exception) -> Dict[str, Any]:
    """Extract error context from an exception for logging.

    Args:
        exc: The exception to extract context from

    Returns:
        Dictionary containing error type, code, message, and any additional details
    """
    context: Dict[str, Any] = {
        "error_type": type(exc).__name__,
        "error_message": str(exc),
    }

    if isinstance(exc, UnfreezeError):
        context["error_code"] = exc.code
        context["recoverable"] = is_recoverable_error(exc)
        if exc.details:
            context["details"] = exc.details

    return context
