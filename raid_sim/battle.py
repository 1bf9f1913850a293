"""
Raid resolution entry point.

:func:`simulate_battle` is the whole function-call boundary of the engine:

- validates the attacker fleet and the defending planet up front
- resolves technology bonuses and builds fresh unit pools
- runs the round engine with an injected, seedable RNG
- classifies the outcome, computes loot and rebuilt defenses
- returns a sealed :class:`BattleReport`

Inputs are never mutated; the caller persists the report's results.
"""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import Dict, Mapping, Optional

from .config import CombatPolicy
from .errors import BattleConfigError, UnknownUnitError
from .loot import calculate_loot, cargo_capacity
from .outcome import LootPolicy, classify
from .rebuild import rebuild_defenses
from .reports.battle_report import BattleReport, build_battle_report
from .rng import CombatRng
from .simulators.combat import ATTACKER, DEFENDER, CombatResolver, build_combatant
from .technology import validate_tech_levels
from .types import RESOURCE_KINDS, FleetInput, PlanetInput, PlanetResources
from .units import UnitCatalog, get_catalog

logger = logging.getLogger(__name__)


def _validate_counts(
    counts: Optional[Mapping[str, int]],
    label: str,
    catalog: UnitCatalog,
    expect_defense: bool,
) -> Dict[str, int]:
    clean: Dict[str, int] = {}
    for unit_id, count in (counts or {}).items():
        try:
            unit = catalog.get(unit_id)
        except UnknownUnitError as exc:
            raise UnknownUnitError(f"{label}: {exc}") from exc
        if unit.is_defense != expect_defense:
            kind = "defense" if unit.is_defense else "ship"
            raise BattleConfigError(f"{label}: '{unit_id}' is a {kind} and cannot be listed here")
        if isinstance(count, bool) or not isinstance(count, int):
            raise BattleConfigError(f"{label}: count for '{unit_id}' must be an integer, got {count!r}")
        if count < 0:
            raise BattleConfigError(f"{label}: count for '{unit_id}' cannot be negative ({count})")
        if count:
            clean[unit_id] = count
    return clean


def _validate_resources(resources: PlanetResources) -> None:
    for kind in RESOURCE_KINDS:
        value = getattr(resources, kind)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise BattleConfigError(f"planet {kind} must be a number, got {value!r}")
        if not math.isfinite(value):
            raise BattleConfigError(f"planet {kind} must be finite, got {value!r}")
        if value < 0:
            raise BattleConfigError(f"planet {kind} cannot be negative ({value})")


def simulate_battle(
    attacker: FleetInput,
    defender: PlanetInput,
    seed: Optional[int] = None,
    rng: Optional[CombatRng] = None,
    policy: Optional[CombatPolicy] = None,
    catalog: Optional[UnitCatalog] = None,
) -> BattleReport:
    """Resolve a raid of ``attacker`` against ``defender``.

    Either pass a ``seed`` or an already constructed ``rng``; the seed stored
    in the report is the one the RNG was created with.

    Raises:
        BattleConfigError: on unknown unit ids, misplaced units, negative or
            non-integer counts, negative resources or tech levels. Nothing
            has been simulated when this is raised.
    """
    policy = policy or CombatPolicy()
    catalog = catalog or get_catalog()
    if rng is None:
        rng = CombatRng(seed)
    elif seed is not None and rng.seed != seed:
        raise BattleConfigError("pass either seed or rng, not both with different seeds")

    attacker_ships = _validate_counts(attacker.ships, "attacker ships", catalog, expect_defense=False)
    defender_ships = _validate_counts(defender.ships, "defender ships", catalog, expect_defense=False)
    defender_defense = _validate_counts(defender.defense, "defender defenses", catalog, expect_defense=True)
    validate_tech_levels(attacker.tech, "attacker")
    validate_tech_levels(defender.tech, "defender")
    _validate_resources(defender.resources)

    att_pool = build_combatant(ATTACKER, attacker_ships, None, attacker.tech, catalog)
    def_pool = build_combatant(DEFENDER, defender_ships, defender_defense, defender.tech, catalog)

    resolver = CombatResolver(att_pool, def_pool, rng, policy)
    resolution = resolver.resolve()

    verdict = classify(resolution.attacker.total_alive(), resolution.defender.total_alive())
    surviving_attackers = resolution.attacker.counts(alive=True)
    cargo = cargo_capacity(surviving_attackers, catalog)
    loot_allowed = LootPolicy.from_policy(policy).allows(verdict, cargo)
    if loot_allowed:
        loot = calculate_loot(defender.resources, surviving_attackers, catalog, ratio=policy.loot_ratio)
    else:
        loot = PlanetResources()

    rebuilt = rebuild_defenses(
        resolution.defender.counts(alive=False, defenses=True),
        rate=policy.rebuild_rate,
        rng=rng,
        mode=policy.rebuild_mode,
    )

    report = build_battle_report(
        seed=rng.seed,
        verdict=verdict,
        resolution=resolution,
        max_rounds=policy.max_rounds,
        attacker_initial=attacker_ships,
        defender_ships_initial=defender_ships,
        defender_defense_initial=defender_defense,
        loot_allowed=loot_allowed,
        loot=loot,
        defense_rebuilt=rebuilt,
        resources_before=defender.resources,
    )
    logger.info(
        "battle seed=%s: %s after %d round(s), loot %d",
        report.seed,
        report.outcome,
        report.rounds_fought,
        loot.total(),
    )
    return report


def apply_report(planet: PlanetInput, report: BattleReport) -> PlanetInput:
    """Return the defender's planet as it stands after ``report``."""

    return replace(
        planet,
        ships=dict(report.defender_ship_survivors),
        defense=dict(report.defender_defense_after),
        tech=dict(planet.tech),
        resources=report.defender_resources_after,
    )


__all__ = ["simulate_battle", "apply_report"]
