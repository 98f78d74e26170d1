"""
Greedy nearest-neighbor chaining accelerated by a vantage-point tree.
"""

from __future__ import annotations

from typing import Hashable, List, Set

from ..index.vptree import VPTree
from .base import OrderingContext


def order_vptree(ctx: OrderingContext) -> List[Hashable]:
    """Repeatedly hop to the nearest unplaced item found by the index."""
    ctx.phase = "index"
    ctx.checkpoint()
    ctx.require_hashes(2)
    interval = ctx.config.progress_interval
    total = ctx.total

    ctx.enter_phase("index", "Building VP-Tree index...")
    tree: VPTree[Hashable] = VPTree(ctx.hashed, ctx.store.distance)

    ctx.enter_phase("sorting", "Sorting with VP-Tree...")
    current = ctx.start_key()
    ordered = [current]
    placed: Set[Hashable] = {current}

    while len(ordered) < len(ctx.hashed):
        ctx.checkpoint()

        nearest = tree.find_nearest(current, placed)
        if nearest is None:
            break

        ordered.append(nearest)
        placed.add(nearest)
        current = nearest
        if len(ordered) % interval == 0:
            ctx.report(f"Sorting: {len(ordered)}/{total}", len(ordered), total)

    return ctx.finish(ordered)
