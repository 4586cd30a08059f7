"""Helpers that draw from an injected uniform [0, 1) source.

Any object exposing ``random() -> float`` is accepted, so tests can pass a
seeded ``random.Random`` or a scripted stub. Every helper below reads only
``rng.random()``.
"""

from __future__ import annotations

import random
from typing import Optional, Protocol, Sequence, TypeVar

T = TypeVar("T")


class UniformSource(Protocol):
    def random(self) -> float:
        ...


_DEFAULT_RNG = random.Random()


def resolve(rng: Optional[UniformSource]) -> UniformSource:
    return rng if rng is not None else _DEFAULT_RNG


def uniform(rng: UniformSource, low: float, high: float) -> float:
    return low + (high - low) * rng.random()


def randint(rng: UniformSource, low: int, high: int) -> int:
    """Inclusive integer draw in [low, high]."""
    value = low + int(rng.random() * (high - low + 1))
    return min(value, high)


def choice(rng: UniformSource, seq: Sequence[T]) -> T:
    if not seq:
        raise ValueError("Cannot choose from an empty sequence")
    return seq[min(int(rng.random() * len(seq)), len(seq) - 1)]


def chance(rng: UniformSource, probability: float) -> bool:
    return rng.random() < probability


def weighted_choice(rng: UniformSource, weights: Sequence[tuple]) -> T:
    """Pick from ``[(item, weight), ...]`` by walking the cumulative weights."""
    total = sum(max(0.0, w) for _, w in weights)
    if total <= 0:
        return choice(rng, [item for item, _ in weights])
    roll = rng.random() * total
    cumulative = 0.0
    for item, weight in weights:
        cumulative += max(0.0, weight)
        if roll < cumulative:
            return item
    return weights[-1][0]
