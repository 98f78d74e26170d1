"""
Error types for the ordering engine.

Every failure is terminal for its invocation. The shell reports them as an
``OrderFailure`` carrying ``kind``; the host side can rebuild the exception
with ``error_from_kind``.
"""

from typing import Optional, Any, Dict, Type


class OrderingError(Exception):
    """
    Base exception for all ordering failures.

    Provides common functionality for error tracking and reporting.
    """

    kind = "OrderingError"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize ordering error.

        Args:
            message: Error message
            details: Optional detailed error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NoUsableHashesError(OrderingError):
    """
    Raised when fewer items carry a hash than the strategy needs.

    Simple Greedy needs one hashed item to start from; the index-based
    strategies need two.
    """

    kind = "NoUsableHashes"

    def __init__(self, message: str,
                 hashed_count: int = 0,
                 required: int = 1,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.hashed_count = hashed_count
        self.required = required

        self.details.update({
            'hashed_count': hashed_count,
            'required': required
        })


class CancelledError(OrderingError):
    """Raised at a checkpoint once the cancellation flag is observed."""

    kind = "Cancelled"

    def __init__(self, message: str = "Sorting cancelled by user",
                 phase: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.phase = phase
        self.details['phase'] = phase


class UnknownStrategyError(OrderingError):
    """Raised when the strategy selector names no known strategy."""

    kind = "UnknownStrategy"

    def __init__(self, message: str,
                 strategy: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.strategy = strategy
        self.details['strategy'] = strategy


class InvalidRequestError(OrderingError):
    """Raised when a request payload is malformed (bad cap, bad item refs)."""

    kind = "InvalidRequest"


_KINDS: Dict[str, Type[OrderingError]] = {
    cls.kind: cls
    for cls in (NoUsableHashesError, CancelledError, UnknownStrategyError, InvalidRequestError)
}


def error_from_kind(kind: str, message: str) -> OrderingError:
    """Rebuild a typed error from an ``errorKind`` / ``message`` pair."""
    cls = _KINDS.get(kind)
    if cls is None:
        error = OrderingError(message, {'kind': kind})
        error.kind = kind
        return error
    return cls(message)


def is_cancelled(error: Exception) -> bool:
    """Check if error is a cancellation."""
    return isinstance(error, CancelledError)
