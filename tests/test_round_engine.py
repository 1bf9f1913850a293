import pytest

from raid_sim.battle import simulate_battle
from raid_sim.config import MAX_ROUNDS, CombatPolicy
from raid_sim.rng import CombatRng
from raid_sim.simulators.combat import (
    ATTACKER,
    DEFENDER,
    CombatResolver,
    EngineState,
    build_combatant,
    resolve_combat,
)
from raid_sim.types import FleetInput, PlanetInput, UnitTypeDef
from raid_sim.units import UnitCatalog, get_catalog


def stalemate():
    # satellites bounce off the dome; the dome's shots are soaked by satellite shields
    attacker = FleetInput(ships={"solarSatellite": 3})
    defender = PlanetInput(defense={"largeShieldDome": 1})
    return attacker, defender


def test_round_cap_is_six():
    attacker, defender = stalemate()
    report = simulate_battle(attacker, defender, seed=7)
    assert MAX_ROUNDS == 6
    assert report.rounds_fought == 6
    assert len(report.rounds) == 6
    assert report.outcome == "draw"
    assert report.draw_kind == "round_cap"
    assert report.attacker_survivors == {"solarSatellite": 3}
    assert report.defender_defense_survivors == {"largeShieldDome": 1}


def test_round_cap_follows_policy():
    attacker, defender = stalemate()
    report = simulate_battle(attacker, defender, seed=7, policy=CombatPolicy(max_rounds=2))
    assert report.rounds_fought == 2
    assert report.max_rounds == 2


def test_battle_ends_once_a_side_is_gone():
    attacker = FleetInput(ships={"deathstar": 1})
    defender = PlanetInput(defense={"rocketLauncher": 1})
    report = simulate_battle(attacker, defender, seed=3)
    assert report.rounds_fought == 1
    assert report.outcome == "attacker_victory"
    assert report.defender_defense_losses == {"rocketLauncher": 1}


def test_empty_defender_is_an_immediate_win():
    report = simulate_battle(FleetInput(ships={"smallCargo": 1}), PlanetInput(), seed=1)
    assert report.rounds_fought == 0
    assert report.outcome == "attacker_victory"
    assert report.rounds == ()


def test_empty_attacker_loses_without_rounds():
    report = simulate_battle(FleetInput(), PlanetInput(defense={"rocketLauncher": 2}), seed=1)
    assert report.rounds_fought == 0
    assert report.outcome == "defender_victory"


def test_destroyed_units_are_never_targeted_again():
    cat = UnitCatalog.from_units([
        UnitTypeDef(id="gun", name="Gun", is_defense=False, attack=10, shield=0, hull=100),
        UnitTypeDef(id="post", name="Post", is_defense=True, attack=0, shield=0, hull=1),
    ])
    attacker = build_combatant(ATTACKER, {"gun": 1}, None, None, cat)
    defender = build_combatant(DEFENDER, None, {"post": 3}, None, cat)
    res = resolve_combat(attacker, defender, CombatRng(11))
    assert res.rounds_completed == 3
    assert [log.attacker.kills for log in res.rounds] == [1, 1, 1]
    assert [log.attacker.shots for log in res.rounds] == [1, 1, 1]
    assert res.defender.counts(alive=False) == {"post": 3}


def test_step_through_state_machine():
    cat = get_catalog()
    attacker = build_combatant(ATTACKER, {"solarSatellite": 1}, None, None, cat)
    defender = build_combatant(DEFENDER, None, {"largeShieldDome": 1}, None, cat)
    resolver = CombatResolver(attacker, defender, CombatRng(0))
    assert resolver.state is EngineState.IDLE
    first = resolver.step()
    assert first.round == 1
    assert resolver.state is EngineState.ROUND_IN_PROGRESS
    for _ in range(5):
        resolver.step()
    assert resolver.state is EngineState.CONCLUDED
    with pytest.raises(RuntimeError):
        resolver.step()


def test_pools_are_sorted_by_unit_id():
    cat = get_catalog()
    a = build_combatant(ATTACKER, {"lightFighter": 1, "cruiser": 1}, None, None, cat)
    b = build_combatant(ATTACKER, {"cruiser": 1, "lightFighter": 1}, None, None, cat)
    assert [u.uid for u in a.units] == [u.uid for u in b.units]
    assert a.units[0].unit_type == "cruiser"


class AlwaysRng(CombatRng):
    def chance(self, p: float) -> bool:
        return p > 0.0


def test_destroyed_units_never_fire_in_later_rounds():
    cat = UnitCatalog.from_units([
        UnitTypeDef(id="gun", name="Gun", is_defense=False, attack=10, shield=0, hull=1000,
                    rapidfire={"post": 10, "dome": 10}),
        UnitTypeDef(id="post", name="Post", is_defense=True, attack=50, shield=0, hull=1),
        UnitTypeDef(id="dome", name="Dome", is_defense=True, attack=0, shield=0, hull=10**9),
    ])
    attacker = build_combatant(ATTACKER, {"gun": 1}, None, None, cat)
    defender = build_combatant(DEFENDER, None, {"post": 1, "dome": 1}, None, cat)
    policy = CombatPolicy(rapidfire_chain_limit=200)
    resolver = CombatResolver(attacker, defender, AlwaysRng(5), policy)

    first = resolver.step()
    assert first.defender.losses == {"post": 1}
    assert first.defender.shots == 2
    gun = attacker.units[0]
    assert gun.hull == 950

    res = resolver.resolve()
    assert res.rounds_completed == MAX_ROUNDS
    for log in res.rounds[1:]:
        assert log.defender.shots == 1
        assert log.defender.losses == {}
    assert gun.hull == 950
    assert not gun.destroyed
