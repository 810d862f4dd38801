"""Seeded tie-breaking for equally ranked candidates."""

from __future__ import annotations

import hashlib
import random
from datetime import date
from typing import Callable, List, Sequence, TypeVar


T = TypeVar("T")


def seed_for(seed: int | str, day: date | str) -> int:
    """Stable integer seed derived from ``(seed, day)``."""
    digest = hashlib.sha256(f"{seed}-{day}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


class TieBreaker:
    """
    Orders candidates that share a rank.

    With ``randomize`` off, ties fall back to the candidate key (member id),
    giving a total order. With it on, ties are shuffled by a PRNG seeded from
    ``(seed, day)`` so repeated runs still match exactly.
    """

    def __init__(self, seed: int | str, day: date | str, randomize: bool = False):
        self.randomize = randomize
        self._rng = random.Random(seed_for(seed, day))

    def order(self, items: Sequence[T], rank: Callable[[T], tuple], key: Callable[[T], str]) -> List[T]:
        """Sort ascending by ``rank`` and break remaining ties."""
        ordered = sorted(items, key=key)
        if self.randomize:
            self._rng.shuffle(ordered)
        return sorted(ordered, key=rank)
