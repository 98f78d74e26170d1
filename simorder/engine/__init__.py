"""
Execution layer: dispatch, typed failures and the worker process.
"""

from .errors import (
    CancelledError,
    InvalidRequestError,
    NoUsableHashesError,
    OrderingError,
    UnknownStrategyError,
    error_from_kind,
    is_cancelled,
)
from .shell import order_items, run_ordering
from .worker import OrderingWorker

__all__ = [
    'OrderingError',
    'NoUsableHashesError',
    'CancelledError',
    'UnknownStrategyError',
    'InvalidRequestError',
    'error_from_kind',
    'is_cancelled',
    'order_items',
    'run_ordering',
    'OrderingWorker',
]
