import pytest

from raid_sim.rebuild import rebuild_defenses
from raid_sim.rng import CombatRng


def test_seventy_percent_rebuilt():
    assert rebuild_defenses({"rocketLauncher": 100}) == {"rocketLauncher": 70}
    assert rebuild_defenses({"lightLaser": 50}) == {"lightLaser": 35}


def test_floor_and_omission():
    assert rebuild_defenses({"gaussCannon": 3}) == {"gaussCannon": 2}
    assert rebuild_defenses({"plasmaTurret": 1}) == {}
    assert rebuild_defenses({"ionCannon": 0}) == {}
    assert rebuild_defenses({}) == {}


def test_multiple_types():
    rebuilt = rebuild_defenses({"rocketLauncher": 10, "heavyLaser": 1, "lightLaser": 20})
    assert rebuilt == {"rocketLauncher": 7, "lightLaser": 14}


def test_stochastic_mode_is_seeded():
    lost = {"rocketLauncher": 200, "lightLaser": 40}
    a = rebuild_defenses(lost, rng=CombatRng(8), mode="stochastic")
    b = rebuild_defenses(lost, rng=CombatRng(8), mode="stochastic")
    assert a == b
    assert 0 < a["rocketLauncher"] <= 200


def test_stochastic_mode_needs_rng():
    with pytest.raises(ValueError):
        rebuild_defenses({"rocketLauncher": 5}, mode="stochastic")
