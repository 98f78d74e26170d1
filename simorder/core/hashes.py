# simorder/core/hashes.py
"""
Perceptual hash distances and the per-request hash store.

The engine never looks at media content. Every comparison goes through a
``HashStore``, which maps item keys to fixed-length hashes and answers
distance queries. Hashes may be ``str``, ``bytes`` or any sequence of
discrete symbols; the reference metric is Hamming distance.
"""
from __future__ import annotations

import math
from collections.abc import Sized
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, Tuple

import numpy as np

HashValue = Sequence[Any]
Metric = Callable[[Optional[HashValue], Optional[HashValue]], float]


def hamming_distance(hash1: Optional[HashValue], hash2: Optional[HashValue]) -> float:
    """Count of differing positions between two equal-length hashes.

    Missing hashes and length mismatches are not comparable and return
    ``math.inf``.
    """
    if not has_hash(hash1) or not has_hash(hash2) or len(hash1) != len(hash2):
        return math.inf
    return float(sum(1 for a, b in zip(hash1, hash2) if a != b))


def has_hash(value: Optional[HashValue]) -> bool:
    """True when ``value`` is a usable (non-empty, sized) hash.

    Scalars such as a bare JSON number carry no symbols to compare and count
    as missing.
    """
    return isinstance(value, Sized) and len(value) > 0


def _as_vector(value: HashValue) -> np.ndarray:
    if isinstance(value, (bytes, bytearray)):
        return np.frombuffer(bytes(value), dtype=np.uint8)
    if isinstance(value, str):
        # one array cell per symbol, so '0f3a' compares nibble by nibble
        return np.array(list(value))
    return np.asarray(value)


class HashStore:
    """Read-only view over the caller's key -> hash mapping.

    Keys whose hash is missing or empty are *hashless*; ``distance`` returns
    ``math.inf`` for them. ``distances_from`` is the one-to-many form used by
    linear scans and is vectorised with numpy when the metric is Hamming.
    """

    def __init__(self, hashes: Mapping[Hashable, Optional[HashValue]], metric: Metric = hamming_distance) -> None:
        self.metric: Metric = metric
        self._hashes: Dict[Hashable, HashValue] = {
            key: value for key, value in hashes.items() if has_hash(value)
        }
        self._vectors: Dict[Hashable, np.ndarray] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._hashes

    def __len__(self) -> int:
        return len(self._hashes)

    def get(self, key: Hashable) -> Optional[HashValue]:
        return self._hashes.get(key)

    def distance(self, key1: Hashable, key2: Hashable) -> float:
        return self.metric(self._hashes.get(key1), self._hashes.get(key2))

    def distances_from(self, query: Hashable, keys: Sequence[Hashable]) -> np.ndarray:
        """Distances from ``query`` to each of ``keys`` as a float array.

        Non-comparable pairs come back as ``inf``.
        """
        out = np.full(len(keys), np.inf, dtype=np.float64)
        if not keys:
            return out
        if self.metric is not hamming_distance:
            for i, key in enumerate(keys):
                out[i] = self.distance(query, key)
            return out

        qvec = self._vector(query)
        if qvec is None:
            return out
        width = qvec.shape[0]
        positions: List[int] = []
        rows: List[np.ndarray] = []
        for i, key in enumerate(keys):
            vec = self._vector(key)
            if vec is None or vec.shape[0] != width:
                continue
            if vec.dtype.kind != qvec.dtype.kind:
                # mixed symbol types: compare element by element
                out[i] = self.distance(query, key)
                continue
            positions.append(i)
            rows.append(vec)
        if rows:
            matrix = np.stack(rows)
            out[positions] = np.count_nonzero(matrix != qvec, axis=1)
        return out

    def split(self, keys: Iterable[Hashable]) -> Tuple[List[Hashable], List[Hashable]]:
        """Partition ``keys`` into (hashed, hashless), preserving order."""
        hashed: List[Hashable] = []
        hashless: List[Hashable] = []
        for key in keys:
            (hashed if key in self._hashes else hashless).append(key)
        return hashed, hashless

    def _vector(self, key: Hashable) -> Optional[np.ndarray]:
        vec = self._vectors.get(key)
        if vec is None:
            value = self._hashes.get(key)
            if value is None:
                return None
            vec = _as_vector(value)
            self._vectors[key] = vec
        return vec
