"""
Index structures used by the ordering strategies.

VPTree answers nearest and k-nearest queries in a metric space; EdgeHeap is
the Prim's frontier for MST construction.
"""

from .heap import EdgeHeap
from .vptree import VPTree, quickselect

__all__ = ["EdgeHeap", "VPTree", "quickselect"]
