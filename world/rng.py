"""Deterministic PRNG owned by a single generation call."""
from __future__ import annotations

import math
from random import Random
from typing import MutableSequence, Sequence, TypeVar

T = TypeVar("T")


class SeededRandom:
    """Seeded float stream plus helpers derived only from ``random()``.

    Every helper consumes draws from ``random()`` and nothing else, so the
    sequence of draws (and therefore the generated world) depends only on
    the seed and the order of calls.
    """

    def __init__(self, seed: int = 1) -> None:
        self._random = Random(seed)

    def reseed(self, seed: int) -> None:
        """Reset the stream to the start of *seed*'s sequence."""
        self._random.seed(seed)

    def random(self) -> float:
        """Return the next float in ``[0.0, 1.0)``."""
        return self._random.random()

    def randint(self, low: int, high: int) -> int:
        """Return an integer N such that ``low <= N <= high``."""
        return math.floor(self.random() * (high - low + 1)) + low

    def choice(self, seq: Sequence[T]) -> T:
        """Return a uniformly chosen element of the non-empty *seq*."""
        if not seq:
            raise ValueError("Cannot choose from an empty sequence.")
        return seq[self.randint(0, len(seq) - 1)]

    def shuffle(self, seq: MutableSequence[T]) -> None:
        """Fisher-Yates shuffle of *seq* in place."""
        for i in range(len(seq) - 1, 0, -1):
            j = self.randint(0, i)
            seq[i], seq[j] = seq[j], seq[i]
