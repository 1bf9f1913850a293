"""Raid simulator: resolve fleet vs planet battles, loot and defense rebuilds."""

from importlib import import_module
from typing import Any

__version__ = "0.1.0"
__all__ = [
    "simulate_battle",
    "apply_report",
    "BattleReport",
    "FleetInput",
    "PlanetInput",
    "PlanetResources",
    "UnitTypeDef",
    "UnitCatalog",
    "get_catalog",
    "CombatPolicy",
    "load_policy",
    "CombatRng",
    "Outcome",
    "BattleConfigError",
    "UnknownUnitError",
    "estimate_odds",
    "BattleOdds",
    "__version__",
]

_EXPORTS = {
    "simulate_battle": ("battle", "simulate_battle"),
    "apply_report": ("battle", "apply_report"),
    "BattleReport": ("reports.battle_report", "BattleReport"),
    "FleetInput": ("types", "FleetInput"),
    "PlanetInput": ("types", "PlanetInput"),
    "PlanetResources": ("types", "PlanetResources"),
    "UnitTypeDef": ("types", "UnitTypeDef"),
    "UnitCatalog": ("units", "UnitCatalog"),
    "get_catalog": ("units", "get_catalog"),
    "CombatPolicy": ("config", "CombatPolicy"),
    "load_policy": ("config", "load_policy"),
    "CombatRng": ("rng", "CombatRng"),
    "Outcome": ("outcome", "Outcome"),
    "BattleConfigError": ("errors", "BattleConfigError"),
    "UnknownUnitError": ("errors", "UnknownUnitError"),
    "estimate_odds": ("simulators.odds", "estimate_odds"),
    "BattleOdds": ("simulators.odds", "BattleOdds"),
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module_name, attr_name = _EXPORTS[name]
        module = import_module(f".{module_name}", __name__)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> list[str]:
    return sorted(set(list(globals().keys()) + list(__all__)))
