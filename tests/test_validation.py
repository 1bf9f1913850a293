import pytest

from raid_sim.battle import simulate_battle
from raid_sim.errors import BattleConfigError, UnknownUnitError
from raid_sim.rng import CombatRng
from raid_sim.technology import WEAPONS_TECH
from raid_sim.types import FleetInput, PlanetInput, PlanetResources


def planet(**kwargs):
    base = dict(defense={"rocketLauncher": 5}, resources=PlanetResources(metal=1000))
    base.update(kwargs)
    return PlanetInput(**base)


def test_unknown_unit_rejected():
    with pytest.raises(UnknownUnitError):
        simulate_battle(FleetInput(ships={"starDestroyer": 1}), planet(), seed=1)
    with pytest.raises(UnknownUnitError):
        simulate_battle(FleetInput(ships={"cruiser": 1}), planet(defense={"laserGrid": 1}), seed=1)


@pytest.mark.parametrize("count", [-1, 1.5, "3", True])
def test_bad_counts_rejected(count):
    with pytest.raises(BattleConfigError):
        simulate_battle(FleetInput(ships={"cruiser": count}), planet(), seed=1)


def test_defense_cannot_attack():
    with pytest.raises(BattleConfigError):
        simulate_battle(FleetInput(ships={"rocketLauncher": 1}), planet(), seed=1)


def test_ship_is_not_a_defense():
    with pytest.raises(BattleConfigError):
        simulate_battle(FleetInput(ships={"cruiser": 1}), planet(defense={"cruiser": 1}), seed=1)


def test_negative_resources_rejected():
    with pytest.raises(BattleConfigError):
        simulate_battle(FleetInput(ships={"cruiser": 1}), planet(resources=PlanetResources(metal=-5)), seed=1)


def test_bad_tech_rejected():
    with pytest.raises(BattleConfigError):
        simulate_battle(FleetInput(ships={"cruiser": 1}, tech={WEAPONS_TECH: -1}), planet(), seed=1)
    with pytest.raises(BattleConfigError):
        simulate_battle(FleetInput(ships={"cruiser": 1}), planet(tech={WEAPONS_TECH: 2.5}), seed=1)


def test_conflicting_seed_and_rng():
    with pytest.raises(BattleConfigError):
        simulate_battle(FleetInput(ships={"cruiser": 1}), planet(), seed=1, rng=CombatRng(2))


def test_inputs_are_not_mutated():
    attacker = FleetInput(ships={"cruiser": 10, "lightFighter": 0}, tech={WEAPONS_TECH: 2})
    defender = planet()
    simulate_battle(attacker, defender, seed=4)
    assert attacker.ships == {"cruiser": 10, "lightFighter": 0}
    assert attacker.tech == {WEAPONS_TECH: 2}
    assert defender.defense == {"rocketLauncher": 5}
    assert defender.resources == PlanetResources(metal=1000)


@pytest.mark.parametrize("amount", [float("nan"), float("inf")])
def test_non_finite_resources_rejected(amount):
    with pytest.raises(BattleConfigError):
        simulate_battle(FleetInput(ships={"cruiser": 1}), planet(resources=PlanetResources(crystal=amount)), seed=1)
