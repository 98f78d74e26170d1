"""Shared fixtures for the simorder test suite."""

import random
from typing import Dict, List, Tuple

import pytest


def random_hashes(count: int, bits: int = 32, seed: int = 0, prefix: str = "img") -> Tuple[List[str], Dict[str, str]]:
    """Generate `count` item keys with random bit-string hashes."""
    rnd = random.Random(seed)
    keys = [f"{prefix}_{i:04d}.jpg" for i in range(count)]
    hashes = {key: "".join(rnd.choice("01") for _ in range(bits)) for key in keys}
    return keys, hashes


@pytest.fixture
def example_items() -> List[str]:
    return ["A", "B", "C", "D"]


@pytest.fixture
def example_hashes() -> Dict[str, str]:
    """Four 4-bit hashes: d(A,B)=1, d(C,D)=1, d(A,D)=3, d(B,C)=3, d(A,C)=4, d(B,D)=4."""
    return {"A": "0000", "B": "0001", "C": "1111", "D": "1110"}


@pytest.fixture
def hash_factory():
    return random_hashes
