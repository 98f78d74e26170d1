"""
Execution shell for the ordering engine.

One call per request: validate, build a fresh context, dispatch on the
strategy, and report either the ordered keys or a typed failure. Nothing
survives between calls.
"""

import random
import time
from typing import Hashable, List, Optional

from ..config import OrderingConfig
from ..core.hashes import HashStore
from ..core.types import (
    CancelToken,
    OrderFailure,
    OrderRequest,
    OrderResponse,
    OrderSuccess,
    ProgressCallback,
    Strategy,
)
from ..ordering.base import OrderingContext
from ..ordering.mst import order_mst
from ..ordering.simple import order_simple
from ..ordering.vptree_greedy import order_vptree
from ..utils.logging_setup import get_logger, log_operation
from .errors import InvalidRequestError, OrderingError, UnknownStrategyError

logger = get_logger(__name__)


def _resolve_strategy(name: str) -> Strategy:
    try:
        return Strategy(name)
    except ValueError:
        valid = ", ".join(s.value for s in Strategy)
        raise UnknownStrategyError(
            f"Unknown sorting algorithm {name!r}. Valid options: {valid}.",
            strategy=name,
        ) from None


def _validate(request: OrderRequest) -> List[Hashable]:
    try:
        keys = request.keys
    except (KeyError, TypeError) as e:
        raise InvalidRequestError(f"Malformed item reference: {e}") from None

    try:
        unique = len(set(keys))
    except TypeError as e:
        raise InvalidRequestError(f"Item keys must be hashable: {e}") from None
    if unique != len(keys):
        raise InvalidRequestError(f"Item keys must be unique ({len(keys) - unique} duplicates)")

    cap = request.max_comparisons
    if cap is not None and (isinstance(cap, bool) or not isinstance(cap, int) or cap < 1):
        raise InvalidRequestError(f"maxComparisons must be a positive integer, got {cap!r}")
    return keys


def run_ordering(
    request: OrderRequest,
    *,
    cancel: Optional[CancelToken] = None,
    progress: Optional[ProgressCallback] = None,
    rng: Optional[random.Random] = None,
    config: Optional[OrderingConfig] = None,
) -> List[Hashable]:
    """
    Order the items of ``request``.

    Args:
        request: the job description
        cancel: polled at checkpoints; once set the run raises CancelledError
        progress: receives ProgressEvent notifications
        rng: random source for Simple Greedy sampling (defaults to one seeded
            from ``request.seed``)
        config: tuning knobs; defaults to ``OrderingConfig()``

    Returns:
        The item keys in traversal order.

    Raises:
        OrderingError: any terminal failure, typed by kind
    """
    strategy = _resolve_strategy(request.strategy)
    keys = _validate(request)
    config = config or OrderingConfig()

    ctx = OrderingContext(
        keys=keys,
        store=HashStore(request.hashes),
        focus_index=request.focus_index,
        cancel=cancel,
        progress=progress,
        config=config,
    )

    if strategy is Strategy.SIMPLE:
        return order_simple(ctx, request.max_comparisons, rng or random.Random(request.seed))
    if strategy is Strategy.VPTREE:
        return order_vptree(ctx)
    return order_mst(ctx)


def order_items(
    request: OrderRequest,
    *,
    cancel: Optional[CancelToken] = None,
    progress: Optional[ProgressCallback] = None,
    rng: Optional[random.Random] = None,
    config: Optional[OrderingConfig] = None,
) -> OrderResponse:
    """
    Run ``request`` and report the outcome instead of raising.

    Ordering failures become ``OrderFailure``; anything else is a bug and
    propagates.
    """
    log_operation(logger, "order_items", strategy=request.strategy, items=len(request.items))
    started = time.time()
    try:
        ordered = run_ordering(request, cancel=cancel, progress=progress, rng=rng, config=config)
    except OrderingError as e:
        logger.warning(f"Ordering failed ({e.kind}): {e.message}")
        return OrderFailure(error_kind=e.kind, message=e.message)
    except Exception:
        logger.exception(f"Unexpected failure while ordering with {request.strategy}")
        raise

    logger.info(
        f"Ordered {len(ordered)} items with {request.strategy} in {time.time() - started:.3f}s",
        extra={'strategy': request.strategy, 'duration': time.time() - started},
    )
    return OrderSuccess(ordered_keys=ordered)
