"""Battle outcome classification and loot eligibility."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .config import CombatPolicy


class Outcome(str, Enum):
    ATTACKER_VICTORY = "attacker_victory"
    DEFENDER_VICTORY = "defender_victory"
    DRAW = "draw"


class DrawKind(str, Enum):
    MUTUAL_DESTRUCTION = "mutual_destruction"
    ROUND_CAP = "round_cap"


@dataclass(frozen=True)
class Verdict:
    outcome: Outcome
    draw_kind: Optional[DrawKind] = None


def classify(attackers_alive: int, defenders_alive: int) -> Verdict:
    """Classify a concluded battle from the surviving unit counts.

    A draw is either mutual destruction or both sides still fielding units
    when the round cap was reached.
    """
    if attackers_alive > 0 and defenders_alive == 0:
        return Verdict(Outcome.ATTACKER_VICTORY)
    if defenders_alive > 0 and attackers_alive == 0:
        return Verdict(Outcome.DEFENDER_VICTORY)
    if attackers_alive == 0 and defenders_alive == 0:
        return Verdict(Outcome.DRAW, DrawKind.MUTUAL_DESTRUCTION)
    return Verdict(Outcome.DRAW, DrawKind.ROUND_CAP)


@dataclass(frozen=True)
class LootPolicy:
    """Which outcomes allow the attacker to plunder."""

    on_attacker_victory: bool = True
    on_draw: bool = True

    @classmethod
    def from_policy(cls, policy: CombatPolicy) -> "LootPolicy":
        return cls(
            on_attacker_victory=policy.loot_on_attacker_victory,
            on_draw=policy.loot_on_draw,
        )

    def allows(self, verdict: Verdict, attacker_cargo: int) -> bool:
        if attacker_cargo <= 0:
            return False
        if verdict.outcome is Outcome.ATTACKER_VICTORY:
            return self.on_attacker_victory
        if verdict.outcome is Outcome.DRAW and verdict.draw_kind is DrawKind.ROUND_CAP:
            return self.on_draw
        return False


__all__ = ["Outcome", "DrawKind", "Verdict", "classify", "LootPolicy"]
