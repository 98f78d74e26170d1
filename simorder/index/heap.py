# simorder/index/heap.py
from __future__ import annotations

import heapq
import itertools
from typing import Iterator, List, Optional, Tuple

from ..core.types import Edge


class EdgeHeap:
    """Binary min-heap of weighted edges, keyed on ``Edge.distance``.

    Notes
    -----
    - Equal distances pop in insertion order: each entry carries a sequence
      number after the distance, so edges themselves are never compared.
    - ``pop`` on an empty heap returns ``None`` instead of raising.
    """

    def __init__(self) -> None:
        self._heap: List[Tuple[float, int, Edge]] = []
        self._counter: Iterator[int] = itertools.count()

    def push(self, edge: Edge) -> None:
        heapq.heappush(self._heap, (edge.distance, next(self._counter), edge))

    def pop(self) -> Optional[Edge]:
        if not self._heap:
            return None
        return heapq.heappop(self._heap)[2]

    def peek(self) -> Optional[Edge]:
        return self._heap[0][2] if self._heap else None

    def size(self) -> int:
        return len(self._heap)

    def is_empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return not self.is_empty()
