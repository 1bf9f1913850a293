"""Technology modifiers applied to base unit stats before combat."""
from __future__ import annotations

from typing import Mapping, Optional

from .errors import BattleConfigError
from .types import EffectiveUnitStats, UnitTypeDef

WEAPONS_TECH = "weaponsTech"
SHIELDING_TECH = "shieldingTech"
ARMOUR_TECH = "armourTech"

# Bonus per level, in tenths of the base value.
BONUS_TENTHS_PER_LEVEL = 1


def tech_level(levels: Optional[Mapping[str, int]], tech_id: str) -> int:
    """Return the level of ``tech_id``; unset technologies are level 0."""

    if not levels:
        return 0
    value = levels.get(tech_id, 0)
    return 0 if value is None else int(value)


def validate_tech_levels(levels: Optional[Mapping[str, int]], owner: str = "combatant") -> None:
    for tech_id, value in (levels or {}).items():
        if isinstance(value, bool) or not isinstance(value, int):
            raise BattleConfigError(f"{owner} tech '{tech_id}' must be an integer level, got {value!r}")
        if value < 0:
            raise BattleConfigError(f"{owner} tech '{tech_id}' cannot be negative ({value})")


def apply_bonus(base: int, level: int) -> int:
    """floor(base * (1 + level * 0.1)), computed exactly in integers."""

    return base * (10 + BONUS_TENTHS_PER_LEVEL * level) // 10


def resolve_stats(
    unit: UnitTypeDef,
    levels: Optional[Mapping[str, int]],
    is_defense: Optional[bool] = None,
) -> EffectiveUnitStats:
    """Compute the effective combat stats for ``unit`` under ``levels``.

    Defenses use exactly the same formula as ships; ``is_defense`` only
    overrides the flag carried into the result.
    """

    return EffectiveUnitStats(
        unit_id=unit.id,
        is_defense=unit.is_defense if is_defense is None else bool(is_defense),
        attack=apply_bonus(unit.attack, tech_level(levels, WEAPONS_TECH)),
        shield=apply_bonus(unit.shield, tech_level(levels, SHIELDING_TECH)),
        hull=apply_bonus(unit.hull, tech_level(levels, ARMOUR_TECH)),
        cargo=unit.cargo,
        rapidfire=unit.rapidfire,
    )


__all__ = [
    "WEAPONS_TECH",
    "SHIELDING_TECH",
    "ARMOUR_TECH",
    "tech_level",
    "validate_tech_levels",
    "apply_bonus",
    "resolve_stats",
]
