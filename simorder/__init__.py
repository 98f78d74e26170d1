"""simorder - similarity-based ordering of perceptually hashed media."""

__version__ = "0.1.0"

from .config import OrderingConfig
from .core.hashes import HashStore, hamming_distance
from .core.types import OrderFailure, OrderRequest, OrderSuccess, ProgressEvent, Strategy
from .engine import (
    CancelledError,
    NoUsableHashesError,
    OrderingError,
    OrderingWorker,
    UnknownStrategyError,
    order_items,
    run_ordering,
)
from .index import EdgeHeap, VPTree

__all__ = [
    "OrderingConfig",
    "HashStore",
    "hamming_distance",
    "OrderRequest",
    "OrderSuccess",
    "OrderFailure",
    "ProgressEvent",
    "Strategy",
    "OrderingError",
    "NoUsableHashesError",
    "CancelledError",
    "UnknownStrategyError",
    "OrderingWorker",
    "order_items",
    "run_ordering",
    "EdgeHeap",
    "VPTree",
    "__version__",
]
