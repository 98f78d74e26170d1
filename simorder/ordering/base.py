"""
Shared plumbing for the ordering strategies.

An ``OrderingContext`` is built fresh for every invocation. It owns the
hash store, the hashed/hashless split, start selection, the cancellation
checkpoint and progress reporting, so the strategy modules only contain
their own algorithm.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, Iterable, List, Optional, Sequence

from ..config import OrderingConfig
from ..core.hashes import HashStore
from ..core.types import CancelToken, ProgressCallback, ProgressEvent
from ..engine.errors import CancelledError, NoUsableHashesError
from ..utils.logging_setup import get_logger

logger = get_logger(__name__)


@dataclass
class OrderingContext:
    """Per-invocation state shared by every strategy.

    Attributes:
        keys: all item keys in caller order
        store: hash lookups and distances
        focus_index: index into ``keys`` of the focused item
        cancel: cancellation flag polled by ``checkpoint``
        progress: fire-and-forget progress sink
        config: tuning knobs (progress cadence, k bounds)
    """
    keys: Sequence[Hashable]
    store: HashStore
    focus_index: int = 0
    cancel: Optional[CancelToken] = None
    progress: Optional[ProgressCallback] = None
    config: OrderingConfig = field(default_factory=OrderingConfig)
    phase: str = "starting"

    def __post_init__(self) -> None:
        self.hashed, self.hashless = self.store.split(self.keys)

    @property
    def total(self) -> int:
        return len(self.keys)

    def require_hashes(self, minimum: int) -> None:
        """Raise ``NoUsableHashesError`` unless ``minimum`` items carry a hash."""
        count = len(self.hashed)
        if count < minimum:
            if minimum == 1:
                message = "No files with valid hashes"
            else:
                message = f"Only {count} files have valid hashes. Need at least {minimum} to sort."
            raise NoUsableHashesError(message, hashed_count=count, required=minimum)

    def start_key(self) -> Hashable:
        """The focused item when it carries a hash, else the first hashed item."""
        if 0 <= self.focus_index < len(self.keys):
            focused = self.keys[self.focus_index]
            if focused in self.store:
                return focused
        return self.hashed[0]

    def checkpoint(self) -> None:
        if self.cancel is not None and self.cancel.is_set():
            logger.debug(f"Cancellation observed during {self.phase}")
            raise CancelledError(phase=self.phase)

    def enter_phase(self, phase: str, message: str) -> None:
        self.phase = phase
        logger.debug(f"Phase {phase}: {len(self.hashed)} hashed, {len(self.hashless)} hashless")
        self.report(message, 0, self.total)

    def report(self, message: str, current: int, total: int) -> None:
        if self.progress is None:
            return
        try:
            self.progress(ProgressEvent(message=message, current=current, total=total))
        except Exception as e:
            # progress is best-effort and must never abort the ordering
            logger.warning(f"Progress callback failed: {e}")

    def finish(self, ordered: Iterable[Hashable]) -> List[Hashable]:
        """Ordered hashed keys, then unplaced hashed keys, then hashless keys."""
        result = list(ordered)
        placed = set(result)
        unplaced = [key for key in self.hashed if key not in placed]
        if unplaced:
            logger.debug(f"{len(unplaced)} hashed items had no usable distance; appended unordered")
        result.extend(unplaced)
        result.extend(self.hashless)
        return result
