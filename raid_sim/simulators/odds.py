from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Mapping, Optional

import numpy as np

from ..battle import simulate_battle
from ..config import CombatPolicy
from ..rng import CombatRng
from ..types import FleetInput, PlanetInput
from ..units import UnitCatalog


@dataclass
class BattleOdds:
    """Aggregate of repeated raids on the same matchup."""

    n_sims: int
    attacker_win_prob: float
    defender_win_prob: float
    draw_prob: float
    mean_rounds: float
    expected_losses_attacker: float
    expected_losses_defender: float
    expected_loot: float
    loot_std: float
    loot_p90: float
    attacker_losses_by_type: Dict[str, float] = field(default_factory=dict)
    defender_losses_by_type: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


def estimate_odds(
    attacker: FleetInput,
    defender: PlanetInput,
    n_sims: int = 200,
    seed: Optional[int] = None,
    policy: Optional[CombatPolicy] = None,
    catalog: Optional[UnitCatalog] = None,
) -> BattleOdds:
    """Monte-Carlo estimate of a raid's outcome distribution.

    Each battle gets its own seed drawn from a master RNG, so a fixed
    ``seed`` makes the whole estimate reproducible.
    """
    if n_sims <= 0:
        raise ValueError("n_sims must be positive")
    master = CombatRng(seed)
    outcomes = np.empty(n_sims, dtype=object)
    rounds = np.zeros(n_sims, dtype=np.int64)
    att_losses = np.zeros(n_sims, dtype=np.int64)
    def_losses = np.zeros(n_sims, dtype=np.int64)
    loot = np.zeros(n_sims, dtype=np.int64)
    att_by_type: List[Mapping[str, int]] = []
    def_by_type: List[Mapping[str, int]] = []

    for i in range(n_sims):
        report = simulate_battle(
            attacker,
            defender,
            rng=CombatRng(master.spawn_seed()),
            policy=policy,
            catalog=catalog,
        )
        outcomes[i] = report.outcome
        rounds[i] = report.rounds_fought
        att_losses[i] = sum(report.attacker_losses.values())
        def_losses[i] = sum(report.defender_ship_losses.values()) + sum(report.defender_defense_losses.values())
        loot[i] = report.loot.total()
        att_by_type.append(report.attacker_losses)
        def_by_type.append({**report.defender_ship_losses, **report.defender_defense_losses})

    return BattleOdds(
        n_sims=n_sims,
        attacker_win_prob=float(np.mean(outcomes == "attacker_victory")),
        defender_win_prob=float(np.mean(outcomes == "defender_victory")),
        draw_prob=float(np.mean(outcomes == "draw")),
        mean_rounds=float(rounds.mean()),
        expected_losses_attacker=float(att_losses.mean()),
        expected_losses_defender=float(def_losses.mean()),
        expected_loot=float(loot.mean()),
        loot_std=float(loot.std()),
        loot_p90=float(np.percentile(loot, 90)),
        attacker_losses_by_type=_mean_by_type(att_by_type),
        defender_losses_by_type=_mean_by_type(def_by_type),
    )


def _mean_by_type(samples: List[Mapping[str, int]]) -> Dict[str, float]:
    kinds = sorted({k for s in samples for k in s})
    if not kinds:
        return {}
    table = np.array([[s.get(k, 0) for k in kinds] for s in samples], dtype=np.float64)
    return {k: float(v) for k, v in zip(kinds, table.mean(axis=0))}


__all__ = ["BattleOdds", "estimate_odds"]
