# simorder/index/vptree.py
from __future__ import annotations

import heapq
import math
from dataclasses import dataclass
from typing import Callable, Container, Generic, List, Optional, Sequence, Tuple, TypeVar

from ..core.types import Neighbor

T = TypeVar("T")
DistanceFunc = Callable[[T, T], float]

_INSIDE = 0
_OUTSIDE = 1

# (distance from target to vantage point, radius, which side is gated)
_Gate = Tuple[float, float, int]


@dataclass
class _VPNode(Generic[T]):
    item: T
    radius: float = 0.0
    inside: Optional["_VPNode[T]"] = None
    outside: Optional["_VPNode[T]"] = None


class VPTree(Generic[T]):
    """Vantage-point tree for metric space nearest-neighbor search.

    Notes
    -----
    - The first item of each partition is its vantage point, so the layout is
      deterministic for a given input order.
    - The radius is the exact median distance to the vantage point. Items
      strictly closer go ``inside``, strictly farther go ``outside``; items at
      the median go to whichever side currently holds fewer items.
    - Build and search use explicit stacks, never recursion.
    - Items at infinite distance from a query are never returned.
    """

    def __init__(self, items: Sequence[T], distance_func: DistanceFunc[T]) -> None:
        self.distance_func: DistanceFunc[T] = distance_func
        self._size: int = len(items)
        self.root: Optional[_VPNode[T]] = self._build(items)

    # ----------------------------
    # Construction
    # ----------------------------
    def _build(self, items: Sequence[T]) -> Optional[_VPNode[T]]:
        if not items:
            return None

        root: Optional[_VPNode[T]] = None
        # (partition, parent node, side of parent to attach to)
        work: List[Tuple[List[T], Optional[_VPNode[T]], int]] = [(list(items), None, _INSIDE)]

        while work:
            chunk, parent, side = work.pop()
            node = _VPNode(item=chunk[0])
            if parent is None:
                root = node
            elif side == _INSIDE:
                parent.inside = node
            else:
                parent.outside = node

            if len(chunk) == 1:
                continue

            vp = chunk[0]
            rest = chunk[1:]
            distances = [self.distance_func(vp, item) for item in rest]
            node.radius = quickselect(list(distances), len(distances) // 2)

            inside: List[T] = []
            outside: List[T] = []
            for item, d in zip(rest, distances):
                if d < node.radius:
                    inside.append(item)
                elif d > node.radius:
                    outside.append(item)
                elif len(inside) <= len(outside):
                    inside.append(item)
                else:
                    outside.append(item)

            if outside:
                work.append((outside, node, _OUTSIDE))
            if inside:
                work.append((inside, node, _INSIDE))

        return root

    # ----------------------------
    # Queries
    # ----------------------------
    def find_nearest(self, target: T, exclude: Container[T] = frozenset()) -> Optional[T]:
        """Closest item to `target` that is not in `exclude`, or None."""
        if self.root is None:
            return None

        best_item: Optional[T] = None
        best_distance = math.inf
        stack: List[Tuple[_VPNode[T], Optional[_Gate]]] = [(self.root, None)]

        while stack:
            node, gate = stack.pop()
            if gate is not None and not _may_contain(gate, best_distance):
                continue

            excluded = node.item in exclude
            if excluded and math.isinf(best_distance):
                # no bound to prune with yet
                _push(stack, node.outside, None)
                _push(stack, node.inside, None)
                continue

            d = self.distance_func(target, node.item)
            if not excluded and d < best_distance:
                best_item, best_distance = node.item, d

            _push_children(stack, node, d)

        return best_item

    def find_k_nearest(self, target: T, k: int, exclude: Container[T] = frozenset()) -> List[Neighbor]:
        """Up to `k` nearest items to `target`, best first.

        Returns exactly ``min(k, available)`` results, where available counts
        the non-excluded items at a finite distance. Ties keep discovery order.
        """
        if self.root is None or k <= 0:
            return []

        # max-heap via negated keys: (-distance, -seq, item)
        results: List[Tuple[float, int, T]] = []
        seq = 0
        stack: List[Tuple[_VPNode[T], Optional[_Gate]]] = [(self.root, None)]

        while stack:
            tau = -results[0][0] if len(results) >= k else math.inf
            node, gate = stack.pop()
            if gate is not None and not _may_contain(gate, tau):
                continue

            excluded = node.item in exclude
            if excluded and math.isinf(tau):
                _push(stack, node.outside, None)
                _push(stack, node.inside, None)
                continue

            d = self.distance_func(target, node.item)
            if not excluded and not math.isinf(d):
                if len(results) < k:
                    heapq.heappush(results, (-d, -seq, node.item))
                elif d < tau:
                    heapq.heapreplace(results, (-d, -seq, node.item))
                seq += 1

            _push_children(stack, node, d)

        ordered = sorted(results, key=lambda entry: (-entry[0], -entry[1]))
        return [Neighbor(item=item, distance=-neg_d) for neg_d, _, item in ordered]

    # ----------------------------
    # Introspection / utilities
    # ----------------------------
    def __len__(self) -> int:
        return self._size

    def is_empty(self) -> bool:
        return self.root is None

    def __bool__(self) -> bool:
        return not self.is_empty()

    def depth(self) -> int:
        """Number of levels on the longest root-to-leaf path."""
        if self.root is None:
            return 0
        deepest = 0
        stack: List[Tuple[_VPNode[T], int]] = [(self.root, 1)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            for child in (node.inside, node.outside):
                if child is not None:
                    stack.append((child, level + 1))
        return deepest


# ----------------------------
# Search helpers
# ----------------------------
def _push(stack: list, node: Optional[_VPNode], gate: Optional[_Gate]) -> None:
    if node is not None:
        stack.append((node, gate))


def _push_children(stack: list, node: _VPNode, d: float) -> None:
    # The side holding the target is pushed last so it is searched first; the
    # far side is gated and re-checked against the bound when popped.
    if d < node.radius:
        _push(stack, node.outside, (d, node.radius, _OUTSIDE))
        _push(stack, node.inside, None)
    else:
        _push(stack, node.inside, (d, node.radius, _INSIDE))
        _push(stack, node.outside, None)


def _may_contain(gate: _Gate, tau: float) -> bool:
    if math.isinf(tau):
        return True
    d, radius, side = gate
    if side == _OUTSIDE:
        return d + tau >= radius
    return d - tau <= radius


# ----------------------------
# Selection
# ----------------------------
def quickselect(values: List[float], k: int) -> float:
    """Return the k-th smallest value (0-based), reordering `values` in place.

    Three-way partitioning around the middle element keeps runs of equal
    distances (common with Hamming metrics) linear.
    """
    if not values:
        raise ValueError("quickselect on empty sequence")
    if not 0 <= k < len(values):
        raise IndexError(f"k={k} out of range for {len(values)} values")

    left, right = 0, len(values) - 1
    while left < right:
        pivot = values[(left + right) // 2]
        lt, i, gt = left, left, right
        while i <= gt:
            v = values[i]
            if v < pivot:
                values[lt], values[i] = values[i], values[lt]
                lt += 1
                i += 1
            elif v > pivot:
                values[gt], values[i] = values[i], values[gt]
                gt -= 1
            else:
                i += 1
        if k < lt:
            right = lt - 1
        elif k > gt:
            left = gt + 1
        else:
            return pivot
    return values[k]
