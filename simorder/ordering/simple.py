"""
Simple greedy ordering: nearest-neighbor chaining without an index.

Each step compares the current item against (a random sample of) the
remaining items and moves to the closest. The sample cap bounds the cost
of a step on large collections at the price of optimality.
"""

from __future__ import annotations

import random
from typing import Hashable, List, Optional

import numpy as np

from .base import OrderingContext


def order_simple(
    ctx: OrderingContext,
    max_comparisons: Optional[int] = None,
    rng: Optional[random.Random] = None,
) -> List[Hashable]:
    """Greedy nearest-neighbor order over the hashed items of ``ctx``.

    Args:
        ctx: per-invocation context
        max_comparisons: candidates scored per step (None = all remaining)
        rng: random source for sampling; seed it for reproducible output

    Returns:
        Every key of ``ctx`` exactly once, hashless keys last.
    """
    ctx.phase = "sorting"
    ctx.checkpoint()
    ctx.require_hashes(1)
    rng = rng or random.Random()
    interval = ctx.config.progress_interval

    current = ctx.start_key()
    remaining = [key for key in ctx.hashed if key != current]
    ordered = [current]
    total = ctx.total

    while remaining:
        ctx.checkpoint()

        num_to_check = len(remaining)
        if max_comparisons is not None and max_comparisons < num_to_check:
            num_to_check = max_comparisons
            # partial Fisher-Yates: a uniform sample lands in the first slots
            for i in range(num_to_check):
                j = i + rng.randrange(len(remaining) - i)
                remaining[i], remaining[j] = remaining[j], remaining[i]

        distances = ctx.store.distances_from(current, remaining[:num_to_check])
        nearest = int(np.argmin(distances))
        if np.isinf(distances[nearest]):
            ordered.extend(remaining)
            break

        current = remaining.pop(nearest)
        ordered.append(current)
        if len(ordered) % interval == 0:
            ctx.report(f"Sorting: {len(ordered)}/{total}", len(ordered), total)

    return ctx.finish(ordered)
