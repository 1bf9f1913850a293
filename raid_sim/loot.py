"""Plunder computation after a raid."""
from __future__ import annotations

from fractions import Fraction
from typing import Dict, Mapping

from .types import RESOURCE_KINDS, PlanetResources
from .units import UnitCatalog, get_catalog


def cargo_capacity(ships: Mapping[str, int], catalog: UnitCatalog | None = None) -> int:
    """Total cargo of a fleet; unknown unit ids raise ``UnknownUnitError``."""

    catalog = catalog or get_catalog()
    return sum(catalog.get(unit_id).cargo * int(count) for unit_id, count in ships.items() if count > 0)


def loot_caps(resources: PlanetResources, ratio: float = 0.5) -> Dict[str, int]:
    """floor(resource * ratio) for each resource kind."""

    frac = Fraction(str(ratio))
    return {
        kind: int(Fraction(getattr(resources, kind)) * frac // 1)
        for kind in RESOURCE_KINDS
    }


def calculate_loot(
    resources: PlanetResources,
    surviving_ships: Mapping[str, int],
    catalog: UnitCatalog | None = None,
    ratio: float = 0.5,
) -> PlanetResources:
    """Resources carried off by the surviving attacker fleet.

    The attacker never takes more than ``ratio`` of any single resource.
    When cargo is short, loot is prorated against the caps and any space
    left by rounding is filled metal first, then crystal, then deuterium.
    """
    caps = loot_caps(resources, ratio)
    total_cargo = cargo_capacity(surviving_ships, catalog)
    total_available = sum(caps.values())

    if total_available == 0 or total_cargo == 0:
        return PlanetResources()
    if total_cargo >= total_available:
        return PlanetResources(**caps)

    loot = {kind: caps[kind] * total_cargo // total_available for kind in RESOURCE_KINDS}
    remaining = total_cargo - sum(loot.values())
    for kind in RESOURCE_KINDS:
        if remaining <= 0:
            break
        take = min(remaining, caps[kind] - loot[kind])
        loot[kind] += take
        remaining -= take
    return PlanetResources(**loot)


__all__ = ["cargo_capacity", "loot_caps", "calculate_loot"]
