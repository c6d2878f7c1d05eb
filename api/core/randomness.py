from __future__ import annotations

from typing import List, Sequence, TypeVar

import numpy as np

T = TypeVar("T")


def make_rng(seed: int | str | None = None) -> np.random.Generator:
    if seed is None or seed == "":
        return np.random.default_rng()
    return np.random.default_rng(int(seed))


def shuffled(items: Sequence[T], rng: np.random.Generator) -> List[T]:
    items = list(items)
    if len(items) < 2:
        return items
    return [items[idx] for idx in rng.permutation(len(items))]


def jitter(rng: np.random.Generator, width: float) -> float:
    """Uniform noise in ``[-width / 2, width / 2)``."""
    if width <= 0:
        return 0.0
    return float(rng.uniform(-width / 2.0, width / 2.0))


def offset(rng: np.random.Generator, max_offset: int) -> int:
    if max_offset <= 0:
        return 0
    return int(rng.integers(0, max_offset + 1))
