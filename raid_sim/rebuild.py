from __future__ import annotations

from fractions import Fraction
from typing import Dict, Mapping, Optional

from .rng import CombatRng


def rebuild_defenses(
    lost_by_type: Mapping[str, int],
    rate: float = 0.7,
    rng: Optional[CombatRng] = None,
    mode: str = "expected",
) -> Dict[str, int]:
    """Destroyed defenses restored after the battle, by type.

    ``expected`` mode takes floor(lost * rate) per type. ``stochastic`` mode
    rolls one reconstruction chance per lost unit on ``rng``. Types that end
    up with nothing rebuilt are left out.
    """
    rebuilt: Dict[str, int] = {}
    if mode == "stochastic":
        if rng is None:
            raise ValueError("stochastic rebuild needs an rng")
        for def_type in sorted(lost_by_type):
            count = sum(1 for _ in range(int(lost_by_type[def_type])) if rng.chance(rate))
            if count > 0:
                rebuilt[def_type] = count
        return rebuilt

    frac = Fraction(str(rate))
    for def_type in sorted(lost_by_type):
        count = int(int(lost_by_type[def_type]) * frac // 1)
        if count > 0:
            rebuilt[def_type] = count
    return rebuilt


__all__ = ["rebuild_defenses"]
