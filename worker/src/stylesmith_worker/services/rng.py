"""Seeded random source and selection primitives shared by the prompt engine."""

from __future__ import annotations

import hashlib
import math
from typing import Callable, Optional, Sequence, TypeVar

from .exceptions import InvariantError

T = TypeVar("T")

Rng = Callable[[], float]

_MASK_32 = 0xFFFFFFFF


def _imul(a: int, b: int) -> int:
    return (a * b) & _MASK_32


class SeededRng:
    """Mulberry32 generator returning floats in ``[0, 1)``.

    Instances are stateful and must not be shared between concurrent requests.
    """

    def __init__(self, seed: int):
        self.seed = seed & _MASK_32
        self._state = self.seed

    def __call__(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _MASK_32
        t = self._state
        x = _imul(t ^ (t >> 15), t | 1)
        x ^= (x + _imul(x ^ (x >> 7), x | 61)) & _MASK_32
        x &= _MASK_32
        return ((x ^ (x >> 14)) & _MASK_32) / 4294967296


def create_rng(seed: int) -> SeededRng:
    return SeededRng(seed)


def seed_from_text(text: str) -> int:
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    return int.from_bytes(digest[:4], "big")


def select_one(items: Sequence[T], rng: Rng) -> T:
    if not items:
        raise InvariantError("select_one called with an empty sequence")
    index = math.floor(rng() * len(items))
    return items[min(index, len(items) - 1)]


def shuffle(items: Sequence[T], rng: Rng) -> list[T]:
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = math.floor(rng() * (i + 1))
        result[i], result[j] = result[j], result[i]
    return result


def select_n(items: Sequence[T], count: int, rng: Rng) -> list[T]:
    if count > len(items):
        raise InvariantError(
            f"cannot select {count} items from a sequence of {len(items)}"
        )
    return shuffle(items, rng)[:count]


def select_random(items: Sequence[T], count: int, rng: Rng) -> list[T]:
    """Pick up to ``count`` distinct positions; an empty input yields an empty list."""
    if not items or count <= 0:
        return []
    return select_n(items, min(count, len(items)), rng)


def random_int_inclusive(minimum: int, maximum: int, rng: Rng) -> int:
    return minimum + math.floor(rng() * (maximum - minimum + 1))


def roll_chance(chance: Optional[float], rng: Rng) -> bool:
    if chance is None:
        return True
    return rng() < chance
