"""Shared record types for the ordering engine.

Everything here is a plain dataclass so requests, progress events and
responses can cross a process boundary as dicts (see ``to_message`` /
``from_message``).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Protocol, Sequence, Union


class Strategy(Enum):
    """Available ordering strategies."""
    SIMPLE = "simple"    # randomized greedy, no index
    VPTREE = "vptree"    # greedy nearest-neighbor chaining over a VP-tree
    MST = "mst"          # k-NN graph -> Prim's MST -> greedy MST walk


# =============================================================================
# Graph records
# =============================================================================

@dataclass(frozen=True)
class Edge:
    """Weighted edge between two item keys, as stored in the MST frontier."""
    source: Hashable
    target: Hashable
    distance: float


@dataclass(frozen=True)
class Neighbor:
    """One k-NN result: an item key and its distance to the query."""
    item: Hashable
    distance: float


# =============================================================================
# Protocols
# =============================================================================

class CancelToken(Protocol):
    """Anything with ``is_set()``: threading.Event, multiprocessing.Event, ..."""

    def is_set(self) -> bool: ...


@dataclass(frozen=True)
class ProgressEvent:
    message: str
    current: int
    total: int

    def to_message(self) -> Dict[str, Any]:
        return {"type": "progress", "message": self.message, "current": self.current, "total": self.total}


ProgressCallback = Callable[[ProgressEvent], None]


# =============================================================================
# Request / response
# =============================================================================

def item_key(item: Any) -> Hashable:
    """Return the identity of an item reference.

    Host media records arrive as mappings with a ``path`` entry; anything
    else is taken to be the key itself.
    """
    if isinstance(item, Mapping):
        return item["path"]
    return item


@dataclass
class OrderRequest:
    """One ordering job.

    Attributes:
        strategy: "simple", "vptree" or "mst"
        items: item references (keys, or mappings with a ``path`` key)
        hashes: key -> perceptual hash; keys missing here are hashless
        focus_index: index into ``items`` of the currently focused item
        max_comparisons: Simple Greedy sample cap (None = unlimited)
        seed: optional seed for Simple Greedy sampling
    """
    strategy: str
    items: Sequence[Any]
    hashes: Mapping[Hashable, Any]
    focus_index: int = 0
    max_comparisons: Optional[int] = None
    seed: Optional[int] = None

    @property
    def keys(self) -> List[Hashable]:
        return [item_key(item) for item in self.items]

    def to_message(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "strategy": self.strategy,
            "items": list(self.items),
            "hashes": dict(self.hashes),
            "focusIndex": self.focus_index,
        }
        if self.max_comparisons is not None:
            data["maxComparisons"] = self.max_comparisons
        if self.seed is not None:
            data["seed"] = self.seed
        return data

    @classmethod
    def from_message(cls, data: Mapping[str, Any]) -> "OrderRequest":
        from ..engine.errors import InvalidRequestError

        try:
            focus_index = int(data.get("focusIndex", 0))
            items = list(data.get("items") or [])
            hashes = dict(data.get("hashes") or {})
        except (TypeError, ValueError) as e:
            raise InvalidRequestError(f"Malformed request: {e}") from None
        return cls(
            strategy=data.get("strategy", "simple"),
            items=items,
            hashes=hashes,
            focus_index=focus_index,
            max_comparisons=data.get("maxComparisons"),
            seed=data.get("seed"),
        )


@dataclass
class OrderSuccess:
    ordered_keys: List[Hashable] = field(default_factory=list)

    ok = True

    def to_message(self) -> Dict[str, Any]:
        return {"type": "complete", "orderedKeys": list(self.ordered_keys)}


@dataclass
class OrderFailure:
    error_kind: str
    message: str

    ok = False

    def to_message(self) -> Dict[str, Any]:
        return {"type": "error", "errorKind": self.error_kind, "message": self.message}


OrderResponse = Union[OrderSuccess, OrderFailure]
