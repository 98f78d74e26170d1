"""
MST-based ordering.

Pipeline:
    1. index every hashed item in a VP-tree
    2. build a k-NN similarity graph from the index
    3. grow a minimum spanning tree over the graph with Prim's algorithm
    4. walk the tree greedily, always taking the closest unvisited tree
       neighbor and falling back to a global nearest scan at dead ends

Walking a sparse MST avoids the long jumps pure greedy chaining makes once
it has used up the local neighborhood.
"""

from __future__ import annotations

import math
from typing import Dict, Hashable, List, Optional, Set

import numpy as np

from ..core.types import Edge, Neighbor
from ..index.heap import EdgeHeap
from ..index.vptree import VPTree
from ..utils.logging_setup import get_logger
from .base import OrderingContext

logger = get_logger(__name__)

SimilarityGraph = Dict[Hashable, List[Neighbor]]
SpanningTree = Dict[Hashable, List[Hashable]]


def neighbor_count(n: int, min_neighbors: int = 20, scale: float = 10.0) -> int:
    """k for an n-item graph: ``min(n - 1, max(min_neighbors, floor(sqrt(n) * scale)))``."""
    if n <= 1:
        return 0
    return min(n - 1, max(min_neighbors, int(math.floor(math.sqrt(n) * scale))))


def build_similarity_graph(
    keys: List[Hashable],
    tree: VPTree[Hashable],
    k: int,
    ctx: Optional[OrderingContext] = None,
) -> SimilarityGraph:
    """Map each key to its nearest neighbors (itself excluded), best first."""
    graph: SimilarityGraph = {}
    interval = ctx.config.graph_progress_interval if ctx else 0

    for i, key in enumerate(keys):
        if ctx is not None:
            ctx.checkpoint()
        graph[key] = tree.find_k_nearest(key, k + 1, exclude={key})
        if ctx is not None and (i + 1) % interval == 0:
            ctx.report(f"Building graph: {i + 1}/{len(keys)}", i + 1, len(keys))

    return graph


def build_mst(
    graph: SimilarityGraph,
    start: Hashable,
    ctx: Optional[OrderingContext] = None,
) -> SpanningTree:
    """Prim's algorithm over ``graph`` starting at ``start``.

    Stops when every node is visited or the frontier runs dry; on a
    disconnected graph only the component holding ``start`` is spanned.
    """
    node_count = len(graph)
    interval = ctx.config.graph_progress_interval if ctx else 0
    mst: SpanningTree = {start: []}
    visited: Set[Hashable] = {start}
    frontier = EdgeHeap()

    for nb in graph.get(start, []):
        frontier.push(Edge(source=start, target=nb.item, distance=nb.distance))

    while len(visited) < node_count and not frontier.is_empty():
        if ctx is not None:
            ctx.checkpoint()

        edge = frontier.pop()
        if edge is None or edge.target in visited:
            continue

        visited.add(edge.target)
        mst.setdefault(edge.source, []).append(edge.target)
        mst.setdefault(edge.target, []).append(edge.source)

        for nb in graph.get(edge.target, []):
            if nb.item not in visited:
                frontier.push(Edge(source=edge.target, target=nb.item, distance=nb.distance))

        if ctx is not None and len(visited) % interval == 0:
            ctx.report(f"MST progress: {len(visited)}/{node_count}", len(visited), node_count)

    if len(visited) < node_count:
        logger.debug(f"MST spans {len(visited)}/{node_count} nodes; graph is disconnected")
    return mst


def traverse_mst(
    mst: SpanningTree,
    start: Hashable,
    ctx: OrderingContext,
) -> List[Hashable]:
    """Greedy walk over the spanning tree, covering every hashed key of ``ctx``."""
    store = ctx.store
    interval = ctx.config.progress_interval
    total = ctx.total
    ordered = [start]
    traversed: Set[Hashable] = {start}
    current = start

    while len(ordered) < len(ctx.hashed):
        ctx.checkpoint()

        best: Optional[Hashable] = None
        best_distance = math.inf
        for neighbor in mst.get(current, []):
            if neighbor not in traversed:
                d = store.distance(current, neighbor)
                if d < best_distance:
                    best, best_distance = neighbor, d

        if best is None:
            # dead end or another component: nearest unvisited item overall
            unvisited = [key for key in ctx.hashed if key not in traversed]
            distances = store.distances_from(current, unvisited)
            nearest = int(np.argmin(distances))
            if np.isinf(distances[nearest]):
                break
            best = unvisited[nearest]

        traversed.add(best)
        ordered.append(best)
        current = best
        if len(ordered) % interval == 0:
            ctx.report(f"Traversing MST: {len(ordered)}/{total}", len(ordered), total)

    return ordered


def order_mst(ctx: OrderingContext) -> List[Hashable]:
    """Order the items of ``ctx`` by walking a k-NN minimum spanning tree."""
    ctx.phase = "index"
    ctx.checkpoint()
    ctx.require_hashes(2)

    ctx.enter_phase("index", "Building VP-Tree index...")
    tree: VPTree[Hashable] = VPTree(ctx.hashed, ctx.store.distance)

    ctx.enter_phase("graph", "Building similarity graph with VP-Tree...")
    k = neighbor_count(len(ctx.hashed), ctx.config.min_neighbors, ctx.config.neighbor_scale)
    graph = build_similarity_graph(ctx.hashed, tree, k, ctx)

    ctx.enter_phase("mst", "Computing MST...")
    start = ctx.start_key()
    mst = build_mst(graph, start, ctx)

    ctx.enter_phase("traversal", "Traversing MST...")
    return ctx.finish(traverse_mst(mst, start, ctx))
