import pytest

from raid_sim.config import CombatPolicy
from raid_sim.simulators.odds import BattleOdds, estimate_odds
from raid_sim.types import FleetInput, PlanetInput, PlanetResources


def raid():
    attacker = FleetInput(ships={"lightFighter": 15, "smallCargo": 3})
    defender = PlanetInput(defense={"rocketLauncher": 6}, resources=PlanetResources(metal=20_000, crystal=8_000))
    return attacker, defender


def test_estimate_is_reproducible():
    a = estimate_odds(*raid(), n_sims=12, seed=3)
    b = estimate_odds(*raid(), n_sims=12, seed=3)
    assert isinstance(a, BattleOdds)
    assert a.to_dict() == b.to_dict()


def test_probabilities_sum_to_one():
    odds = estimate_odds(*raid(), n_sims=10, seed=1)
    assert odds.attacker_win_prob + odds.defender_win_prob + odds.draw_prob == pytest.approx(1.0)
    assert 1.0 <= odds.mean_rounds <= 6.0
    assert odds.loot_p90 >= 0.0 and odds.loot_std >= 0.0
    assert set(odds.defender_losses_by_type) <= {"rocketLauncher"}


def test_stalemate_is_always_a_draw():
    attacker = FleetInput(ships={"solarSatellite": 2})
    defender = PlanetInput(defense={"largeShieldDome": 1})
    odds = estimate_odds(attacker, defender, n_sims=4, seed=9, policy=CombatPolicy(max_rounds=3))
    assert odds.draw_prob == 1.0
    assert odds.mean_rounds == 3.0
    assert odds.expected_losses_attacker == 0.0
    assert odds.attacker_losses_by_type == {}


def test_needs_positive_sims():
    with pytest.raises(ValueError):
        estimate_odds(*raid(), n_sims=0)
