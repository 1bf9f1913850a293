"""Round-based combat resolution for planetary raids.

This module implements the combat state machine: up to ``max_rounds``
rounds in which shields regenerate, every surviving unit fires at a random
enemy (with rapidfire chains), shots bounce off or are absorbed by shields
before reaching the hull, and badly damaged units may explode.  The driver
is :class:`CombatResolver`; :func:`build_combatant` turns unit counts plus
technology levels into a live unit pool.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction
from typing import Dict, Iterable, List, Mapping, Optional

from ..config import MAX_ROUNDS, CombatPolicy
from ..rng import CombatRng
from ..technology import resolve_stats
from ..types import EffectiveUnitStats
from ..units import UnitCatalog

logger = logging.getLogger(__name__)

ATTACKER = "attacker"
DEFENDER = "defender"

# =============================
# Basic data structures
# =============================


class EngineState(str, Enum):
    IDLE = "idle"
    ROUND_IN_PROGRESS = "round_in_progress"
    CONCLUDED = "concluded"


@dataclass
class CombatUnit:
    """Runtime representation of a single ship or defense in combat."""

    uid: str
    side: str
    stats: EffectiveUnitStats
    shield: int
    hull: int
    destroyed: bool = False
    slot: int = field(default=-1, repr=False, compare=False)

    @property
    def unit_type(self) -> str:
        return self.stats.unit_id

    @property
    def is_defense(self) -> bool:
        return self.stats.is_defense

    def alive(self) -> bool:
        return not self.destroyed

    def hull_fraction(self) -> float:
        return self.hull / self.stats.hull

    def regenerate_shield(self) -> None:
        self.shield = self.stats.shield


class Combatant:
    """One side's exclusively owned unit pool.

    ``units`` keeps build order for reporting; the live roster is a
    separate list with swap-removal so target selection stays O(1).
    """

    def __init__(self, side: str, units: Iterable[CombatUnit] = ()):
        self.side = side
        self.units: List[CombatUnit] = list(units)
        self._live: List[CombatUnit] = []
        for unit in self.units:
            if unit.destroyed:
                continue
            unit.slot = len(self._live)
            self._live.append(unit)

    @property
    def live(self) -> List[CombatUnit]:
        return self._live

    def alive(self) -> bool:
        return bool(self._live)

    def total_alive(self) -> int:
        return len(self._live)

    def living_in_order(self) -> List[CombatUnit]:
        return [u for u in self.units if not u.destroyed]

    def destroy(self, unit: CombatUnit) -> None:
        assert not unit.destroyed, f"{unit.uid} destroyed twice"
        unit.hull = 0
        unit.shield = 0
        unit.destroyed = True
        idx = unit.slot
        last = self._live.pop()
        if last is not unit:
            self._live[idx] = last
            last.slot = idx
        unit.slot = -1

    def counts(self, alive: bool = True, defenses: Optional[bool] = None) -> Dict[str, int]:
        """Count units by type, either surviving (``alive``) or destroyed."""
        out: Dict[str, int] = {}
        for unit in self.units:
            if unit.destroyed == alive:
                continue
            if defenses is not None and unit.is_defense != defenses:
                continue
            out[unit.unit_type] = out.get(unit.unit_type, 0) + 1
        return out


@dataclass
class SideRoundStats:
    """What one side did and suffered during a single round."""

    shots: int = 0
    rapidfire_shots: int = 0
    bounced: int = 0
    shield_absorbed: int = 0
    hull_damage: int = 0
    kills: int = 0
    explosions: int = 0
    losses: Dict[str, int] = field(default_factory=dict)
    survivors: Dict[str, int] = field(default_factory=dict)

    def record_loss(self, unit: CombatUnit) -> None:
        self.losses[unit.unit_type] = self.losses.get(unit.unit_type, 0) + 1


@dataclass
class RoundLog:
    round: int
    attacker: SideRoundStats
    defender: SideRoundStats


@dataclass
class CombatResolution:
    attacker: Combatant
    defender: Combatant
    rounds_completed: int = 0
    rounds: List[RoundLog] = field(default_factory=list)


# =============================
# Pool construction
# =============================


def build_combatant(
    side: str,
    ships: Mapping[str, int] | None,
    defense: Mapping[str, int] | None,
    tech: Mapping[str, int] | None,
    catalog: UnitCatalog,
) -> Combatant:
    """Create one live unit per counted ship/defense, sorted by unit id.

    Effective stats are resolved once per unit type and shared by every
    instance of that type.
    """
    units: List[CombatUnit] = []
    for counts in (ships or {}, defense or {}):
        for unit_id in sorted(counts):
            count = int(counts[unit_id])
            if count <= 0:
                continue
            stats = resolve_stats(catalog.get(unit_id), tech)
            for i in range(count):
                units.append(
                    CombatUnit(
                        uid=f"{side}_{unit_id}_{i}",
                        side=side,
                        stats=stats,
                        shield=stats.shield,
                        hull=stats.hull,
                    )
                )
    return Combatant(side=side, units=units)


# =============================
# Probability helpers
# =============================


def rapidfire_chance(factor: int) -> float:
    """Chance of an extra shot for rapidfire ``factor``; 0 unless factor > 1."""

    if factor is None or factor <= 1:
        return 0.0
    return (factor - 1) / factor


def explosion_chance(hull_fraction: float, threshold: float = 0.7) -> float:
    """Chance a damaged unit breaks apart: ``1 - hull%`` below ``threshold``."""

    if hull_fraction <= 0.0:
        return 1.0
    if hull_fraction >= threshold:
        return 0.0
    return 1.0 - hull_fraction


# =============================
# Core combat driver
# =============================


class CombatResolver:
    def __init__(
        self,
        attacker: Combatant,
        defender: Combatant,
        rng: CombatRng,
        policy: Optional[CombatPolicy] = None,
    ):
        self.policy = policy or CombatPolicy()
        self.rng = rng
        self.attacker = attacker
        self.defender = defender
        self.state = EngineState.IDLE
        self.round = 0
        self.rounds: List[RoundLog] = []
        bounce = Fraction(str(self.policy.bounce_ratio)).limit_denominator(1_000_000)
        self._bounce_num = bounce.numerator
        self._bounce_den = bounce.denominator

    # ----- Public API -----

    def resolve(self) -> CombatResolution:
        if self.state is EngineState.IDLE:
            self._begin()
        while self.state is not EngineState.CONCLUDED:
            self.step()
        return CombatResolution(
            attacker=self.attacker,
            defender=self.defender,
            rounds_completed=self.round,
            rounds=list(self.rounds),
        )

    def step(self) -> RoundLog:
        """Play exactly one round and advance the state machine."""
        if self.state is EngineState.IDLE:
            self._begin()
        if self.state is EngineState.CONCLUDED:
            raise RuntimeError("battle already concluded")
        self.round += 1
        log = self._play_round(self.round)
        self.rounds.append(log)
        if not (self.attacker.alive() and self.defender.alive()):
            self.state = EngineState.CONCLUDED
        elif self.round >= self.policy.max_rounds:
            self.state = EngineState.CONCLUDED
        return log

    # ----- Rounds -----

    def _begin(self) -> None:
        if self.attacker.alive() and self.defender.alive():
            self.state = EngineState.ROUND_IN_PROGRESS
        else:
            logger.debug("one side starts empty; battle concludes without rounds")
            self.state = EngineState.CONCLUDED

    def _play_round(self, round_index: int) -> RoundLog:
        att_stats = SideRoundStats()
        def_stats = SideRoundStats()

        for unit in self.attacker.live + self.defender.live:
            unit.regenerate_shield()

        att_shooters = list(self.attacker.living_in_order())
        def_shooters = list(self.defender.living_in_order())

        for unit in att_shooters:
            self._fire(unit, self.defender, att_stats, def_stats)
        for unit in def_shooters:
            if unit.destroyed and not self.policy.simultaneous_fire:
                continue
            self._fire(unit, self.attacker, def_stats, att_stats)

        if self.policy.explosion_timing == "round_end":
            self._round_end_explosions(self.attacker, att_stats)
            self._round_end_explosions(self.defender, def_stats)

        att_stats.survivors = self.attacker.counts(alive=True)
        def_stats.survivors = self.defender.counts(alive=True)
        self._check_invariants()
        logger.debug(
            "round %d: attacker %d alive (%d shots), defender %d alive (%d shots)",
            round_index,
            self.attacker.total_alive(),
            att_stats.shots,
            self.defender.total_alive(),
            def_stats.shots,
        )
        return RoundLog(round=round_index, attacker=att_stats, defender=def_stats)

    def _fire(
        self,
        shooter: CombatUnit,
        opponent: Combatant,
        tally: SideRoundStats,
        victim_tally: SideRoundStats,
    ) -> None:
        extra = 0
        while opponent.alive():
            target = self.rng.pick(opponent.live)
            # a bounced shot ends the chain
            if not self._apply_shot(shooter, target, opponent, tally, victim_tally):
                break
            if extra >= self.policy.rapidfire_chain_limit:
                break
            chance = rapidfire_chance(shooter.stats.rapidfire.get(target.unit_type, 0))
            if not self.rng.chance(chance):
                break
            extra += 1
            tally.rapidfire_shots += 1

    def _apply_shot(
        self,
        shooter: CombatUnit,
        target: CombatUnit,
        opponent: Combatant,
        tally: SideRoundStats,
        victim_tally: SideRoundStats,
    ) -> bool:
        """Resolve one shot; returns False when it bounced off the shield."""
        damage = shooter.stats.attack
        tally.shots += 1
        # damage < shield * bounce_ratio, kept in integers
        if damage * self._bounce_den < target.shield * self._bounce_num:
            tally.bounced += 1
            return False

        if damage <= target.shield:
            target.shield -= damage
            tally.shield_absorbed += damage
        else:
            hull_damage = damage - target.shield
            tally.shield_absorbed += target.shield
            tally.hull_damage += min(hull_damage, target.hull)
            target.shield = 0
            target.hull -= hull_damage

        if target.hull <= 0:
            opponent.destroy(target)
            tally.kills += 1
            victim_tally.record_loss(target)
        elif self.policy.explosion_timing == "per_hit":
            self._maybe_explode(target, opponent, victim_tally)
        return True

    def _round_end_explosions(self, side: Combatant, tally: SideRoundStats) -> None:
        for unit in side.living_in_order():
            self._maybe_explode(unit, side, tally)

    def _maybe_explode(self, unit: CombatUnit, side: Combatant, tally: SideRoundStats) -> None:
        chance = explosion_chance(unit.hull_fraction(), self.policy.explosion_threshold)
        if chance > 0.0 and self.rng.chance(chance):
            side.destroy(unit)
            tally.explosions += 1
            tally.record_loss(unit)

    # ----- Utility -----

    def _check_invariants(self) -> None:
        for side in (self.attacker, self.defender):
            for unit in side.units:
                assert (unit.hull == 0) == unit.destroyed, f"{unit.uid}: hull {unit.hull}, destroyed={unit.destroyed}"
                assert 0 <= unit.hull <= unit.stats.hull, f"{unit.uid}: hull {unit.hull} out of range"
                assert 0 <= unit.shield <= unit.stats.shield, f"{unit.uid}: shield {unit.shield} out of range"


def resolve_combat(
    attacker: Combatant,
    defender: Combatant,
    rng: CombatRng,
    policy: Optional[CombatPolicy] = None,
) -> CombatResolution:
    resolver = CombatResolver(attacker, defender, rng, policy)
    return resolver.resolve()


__all__ = [
    "ATTACKER",
    "DEFENDER",
    "MAX_ROUNDS",
    "EngineState",
    "CombatUnit",
    "Combatant",
    "SideRoundStats",
    "RoundLog",
    "CombatResolution",
    "CombatResolver",
    "build_combatant",
    "rapidfire_chance",
    "explosion_chance",
    "resolve_combat",
]
