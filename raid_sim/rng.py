from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class CombatRng:
    """Seedable random source injected into a battle.

    Every probabilistic decision of the engine goes through this object so a
    recorded seed replays the battle exactly.
    """

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = random.Random(seed)

    def chance(self, p: float) -> bool:
        """Return True with probability ``p``."""
        if p <= 0.0:
            return False
        if p >= 1.0:
            return True
        return self._rng.random() < p

    def pick(self, items: Sequence[T]) -> T:
        """Uniformly choose one element of a non-empty sequence."""
        return items[self._rng.randrange(len(items))]

    def spawn_seed(self) -> int:
        return self._rng.randint(1, 10_000_000)


__all__ = ["CombatRng"]
