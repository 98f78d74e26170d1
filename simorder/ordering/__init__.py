"""
Ordering strategies.

simple  -- randomized greedy chaining, no index
vptree  -- greedy chaining over a vantage-point tree
mst     -- greedy walk over a k-NN minimum spanning tree
"""

from .base import OrderingContext
from .mst import build_mst, build_similarity_graph, neighbor_count, order_mst, traverse_mst
from .simple import order_simple
from .vptree_greedy import order_vptree

__all__ = [
    'OrderingContext',
    'order_simple',
    'order_vptree',
    'order_mst',
    'neighbor_count',
    'build_similarity_graph',
    'build_mst',
    'traverse_mst',
]
