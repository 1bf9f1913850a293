from raid_sim.technology import (
    ARMOUR_TECH,
    SHIELDING_TECH,
    WEAPONS_TECH,
    apply_bonus,
    resolve_stats,
    tech_level,
)
from raid_sim.units import get_catalog


def test_bonus_is_ten_percent_per_level():
    assert apply_bonus(50, 10) == 100
    assert apply_bonus(200, 5) == 300
    assert apply_bonus(27000, 3) == 35100


def test_bonus_truncates():
    assert apply_bonus(10, 10) == 20
    assert apply_bonus(5, 1) == 5
    assert apply_bonus(25, 3) == 32


def test_level_zero_is_base_and_monotone():
    for base in (0, 1, 7, 80, 2000, 9_000_000):
        assert apply_bonus(base, 0) == base
        values = [apply_bonus(base, t) for t in range(30)]
        assert values == sorted(values)


def test_defense_uses_same_formula():
    heavy_laser = get_catalog().get("heavyLaser")
    levels = {WEAPONS_TECH: 5, SHIELDING_TECH: 5, ARMOUR_TECH: 5}
    stats = resolve_stats(heavy_laser, levels)
    assert stats.is_defense
    assert (stats.attack, stats.shield, stats.hull) == (375, 150, 12000)


def test_each_tech_touches_only_its_stat():
    cruiser = get_catalog().get("cruiser")
    stats = resolve_stats(cruiser, {ARMOUR_TECH: 3})
    assert stats.attack == cruiser.attack
    assert stats.shield == cruiser.shield
    assert stats.hull == 35100
    assert stats.cargo == cruiser.cargo


def test_missing_levels_default_to_zero():
    assert tech_level(None, WEAPONS_TECH) == 0
    assert tech_level({}, ARMOUR_TECH) == 0
    assert tech_level({WEAPONS_TECH: 4}, SHIELDING_TECH) == 0
