from __future__ import annotations
from dataclasses import dataclass, fields
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple
import json

from ..outcome import Verdict
from ..simulators.combat import CombatResolution, SideRoundStats
from ..types import PlanetResources


def _freeze(counts: Mapping[str, int] | None) -> Mapping[str, int]:
    return MappingProxyType({k: int(v) for k, v in sorted((counts or {}).items()) if v})


def _plain(value: Any) -> Any:
    if isinstance(value, (dict, MappingProxyType)):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, PlanetResources):
        return value.as_dict()
    if hasattr(value, "__dataclass_fields__"):
        return {f.name: _plain(getattr(value, f.name)) for f in fields(value)}
    return value


def _fmt_counts(counts: Mapping[str, int]) -> str:
    if not counts:
        return "none"
    return ", ".join(f"{k} x{v}" for k, v in counts.items())


@dataclass(frozen=True)
class SideSummary:
    shots: int
    rapidfire_shots: int
    bounced: int
    shield_absorbed: int
    hull_damage: int
    kills: int
    explosions: int
    losses: Mapping[str, int]
    survivors: Mapping[str, int]

    @classmethod
    def from_stats(cls, stats: SideRoundStats) -> "SideSummary":
        return cls(
            shots=stats.shots,
            rapidfire_shots=stats.rapidfire_shots,
            bounced=stats.bounced,
            shield_absorbed=stats.shield_absorbed,
            hull_damage=stats.hull_damage,
            kills=stats.kills,
            explosions=stats.explosions,
            losses=_freeze(stats.losses),
            survivors=_freeze(stats.survivors),
        )


@dataclass(frozen=True)
class RoundSummary:
    round: int
    attacker: SideSummary
    defender: SideSummary


@dataclass(frozen=True)
class BattleReport:
    """Sealed result of one raid, handed to the persistence layer."""

    seed: Optional[int]
    outcome: str
    draw_kind: Optional[str]
    rounds_fought: int
    max_rounds: int
    rounds: Tuple[RoundSummary, ...]
    attacker_initial: Mapping[str, int]
    attacker_survivors: Mapping[str, int]
    attacker_losses: Mapping[str, int]
    defender_ships_initial: Mapping[str, int]
    defender_defense_initial: Mapping[str, int]
    defender_ship_survivors: Mapping[str, int]
    defender_defense_survivors: Mapping[str, int]
    defender_ship_losses: Mapping[str, int]
    defender_defense_losses: Mapping[str, int]
    loot_allowed: bool
    loot: PlanetResources
    defense_rebuilt: Mapping[str, int]
    defender_resources_after: PlanetResources
    defender_defense_after: Mapping[str, int]

    @property
    def winner(self) -> Optional[str]:
        if self.outcome == "attacker_victory":
            return "attacker"
        if self.outcome == "defender_victory":
            return "defender"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return _plain(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, sort_keys=True)

    def to_markdown(self) -> str:
        lines = []
        lines.append(f"# Battle Report ({self.outcome})")
        lines.append(f"- **Seed:** {self.seed}  |  **Rounds:** {self.rounds_fought}/{self.max_rounds}")
        if self.draw_kind:
            lines.append(f"- **Draw:** {self.draw_kind}")
        lines.append("\n## Forces")
        lines.append(f"- attacker: {_fmt_counts(self.attacker_initial)}")
        lines.append(f"- defender ships: {_fmt_counts(self.defender_ships_initial)}")
        lines.append(f"- defender defenses: {_fmt_counts(self.defender_defense_initial)}")
        lines.append("\n## Rounds")
        for r in self.rounds:
            a, d = r.attacker, r.defender
            lines.append(
                f"{r.round}. attacker {a.shots} shots ({a.rapidfire_shots} rapidfire, {a.bounced} bounced), "
                f"{a.kills} kills  |  defender {d.shots} shots ({d.rapidfire_shots} rapidfire, "
                f"{d.bounced} bounced), {d.kills} kills"
            )
        lines.append("\n## Losses")
        lines.append(f"- attacker: {_fmt_counts(self.attacker_losses)}")
        lines.append(f"- defender ships: {_fmt_counts(self.defender_ship_losses)}")
        lines.append(f"- defender defenses: {_fmt_counts(self.defender_defense_losses)}")
        lines.append("\n## Aftermath")
        loot = self.loot
        lines.append(
            f"- loot: metal {loot.metal} | crystal {loot.crystal} | deuterium {loot.deuterium}"
            + ("" if self.loot_allowed else " (not eligible)")
        )
        lines.append(f"- defenses rebuilt: {_fmt_counts(self.defense_rebuilt)}")
        return "\n".join(lines)


def build_battle_report(
    seed: Optional[int],
    verdict: Verdict,
    resolution: CombatResolution,
    max_rounds: int,
    attacker_initial: Mapping[str, int],
    defender_ships_initial: Mapping[str, int],
    defender_defense_initial: Mapping[str, int],
    loot_allowed: bool,
    loot: PlanetResources,
    defense_rebuilt: Mapping[str, int],
    resources_before: PlanetResources,
) -> BattleReport:
    surviving_defense = resolution.defender.counts(alive=True, defenses=True)
    defense_after: Dict[str, int] = dict(surviving_defense)
    for def_type, count in defense_rebuilt.items():
        defense_after[def_type] = defense_after.get(def_type, 0) + count

    rounds: List[RoundSummary] = [
        RoundSummary(
            round=log.round,
            attacker=SideSummary.from_stats(log.attacker),
            defender=SideSummary.from_stats(log.defender),
        )
        for log in resolution.rounds
    ]
    return BattleReport(
        seed=seed,
        outcome=verdict.outcome.value,
        draw_kind=verdict.draw_kind.value if verdict.draw_kind else None,
        rounds_fought=resolution.rounds_completed,
        max_rounds=max_rounds,
        rounds=tuple(rounds),
        attacker_initial=_freeze(attacker_initial),
        attacker_survivors=_freeze(resolution.attacker.counts(alive=True)),
        attacker_losses=_freeze(resolution.attacker.counts(alive=False)),
        defender_ships_initial=_freeze(defender_ships_initial),
        defender_defense_initial=_freeze(defender_defense_initial),
        defender_ship_survivors=_freeze(resolution.defender.counts(alive=True, defenses=False)),
        defender_defense_survivors=_freeze(surviving_defense),
        defender_ship_losses=_freeze(resolution.defender.counts(alive=False, defenses=False)),
        defender_defense_losses=_freeze(resolution.defender.counts(alive=False, defenses=True)),
        loot_allowed=loot_allowed,
        loot=loot,
        defense_rebuilt=_freeze(defense_rebuilt),
        defender_resources_after=resources_before.minus(loot),
        defender_defense_after=_freeze(defense_after),
    )


__all__ = ["SideSummary", "RoundSummary", "BattleReport", "build_battle_report"]
