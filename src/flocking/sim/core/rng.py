from __future__ import annotations

import random
from typing import Protocol


class RandomSource(Protocol):
    def next_range(self, low: float, high: float) -> float:
        """Uniform sample in [low, high)."""
        ...


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        value = low + (high - low) * self._random.random()
        # rounding can land exactly on the upper bound for wide ranges
        if value >= high and high > low:
            return low
        return value
