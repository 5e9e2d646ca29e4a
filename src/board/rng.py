"""Small seeded pseudo-random helpers.

Every random decision in the engine flows from :func:`mulberry32` so a
``(seed, kinds)`` pair always reproduces the same puzzle.  The global
:mod:`random` state is never touched.
"""

from __future__ import annotations

import math
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")
Rng = Callable[[], float]

_MASK = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK


def mulberry32(seed: int) -> Rng:
    """Return a 32-bit Mulberry generator yielding floats in ``[0, 1)``."""

    state = int(seed) & _MASK

    def next_float() -> float:
        nonlocal state
        state = (state + 0x6D2B79F5) & _MASK
        t = state
        r = _imul(t ^ (t >> 15), 1 | t)
        r ^= (r + _imul(r ^ (r >> 7), 61 | r)) & _MASK
        return ((r ^ (r >> 14)) & _MASK) / 4294967296.0

    return next_float


def shuffle(items: Sequence[T], rng: Rng) -> List[T]:
    """Fisher-Yates shuffle walking from the end; returns a new list."""

    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = int(math.floor(rng() * (i + 1)))
        result[i], result[j] = result[j], result[i]
    return result


def rand_int(rng: Rng, upper: int) -> int:
    """Uniform integer in ``[0, upper)``."""

    return int(math.floor(rng() * upper))


def pick(items: Sequence[T], rng: Rng) -> T:
    return items[rand_int(rng, len(items))]


def weighted_pick(items: Sequence[T], weights: Sequence[float], rng: Rng) -> Optional[T]:
    """Pick one of *items* proportionally to *weights*; ``None`` when empty."""

    if not items:
        return None
    total = sum(max(0.0, weight) for weight in weights)
    if total <= 0:
        return pick(items, rng)
    roll = rng() * total
    for item, weight in zip(items, weights):
        roll -= max(0.0, weight)
        if roll <= 0:
            return item
    return items[-1]


__all__ = ["Rng", "mulberry32", "pick", "rand_int", "shuffle", "weighted_pick"]
