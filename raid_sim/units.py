"""Utilities for loading the static ship and defense catalog."""
from __future__ import annotations

import json
import os
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

from .errors import BattleConfigError, UnknownUnitError
from .types import UnitTypeDef


def _parse_entry(unit_id: str, block: Mapping[str, Any], is_defense: bool) -> UnitTypeDef:
    rapidfire = {str(k): int(v) for k, v in (block.get("rapidfire") or {}).items()}
    unit = UnitTypeDef(
        id=unit_id,
        name=str(block.get("name", unit_id)),
        is_defense=is_defense,
        attack=int(block.get("attack", 0)),
        shield=int(block.get("shield", 0)),
        hull=int(block.get("hull", 0)),
        cargo=0 if is_defense else int(block.get("cargo", 0)),
        rapidfire=MappingProxyType(rapidfire),
    )
    if unit.hull <= 0:
        raise BattleConfigError(f"unit '{unit_id}' must have positive hull, got {unit.hull}")
    if min(unit.attack, unit.shield, unit.cargo) < 0:
        raise BattleConfigError(f"unit '{unit_id}' has negative base stats")
    return unit


class UnitCatalog:
    """Registry of unit definitions that loads JSON data on demand."""

    def __init__(self, path: Optional[str] = None) -> None:
        self._path = path or os.path.join(os.path.dirname(__file__), "data", "units.json")
        self._data: Dict[str, UnitTypeDef] = {}
        self._meta: Dict[str, Any] = {}
        self._loaded = False

    @classmethod
    def from_units(cls, units: Iterable[UnitTypeDef]) -> "UnitCatalog":
        """Build an in-memory catalog, bypassing the data file."""
        catalog = cls(path="<memory>")
        for unit in units:
            catalog._data[unit.id] = unit
        catalog._loaded = True
        return catalog

    def load(self) -> None:
        if self._loaded:
            return
        with open(self._path, "r", encoding="utf-8") as handle:
            payload = json.load(handle)
        self._meta = payload.get("_meta", {})
        for unit_id, block in (payload.get("ships") or {}).items():
            self._data[unit_id] = _parse_entry(unit_id, block, is_defense=False)
        for unit_id, block in (payload.get("defenses") or {}).items():
            if unit_id in self._data:
                raise BattleConfigError(f"unit id '{unit_id}' is both a ship and a defense")
            self._data[unit_id] = _parse_entry(unit_id, block, is_defense=True)
        self._loaded = True

    @property
    def meta(self) -> Dict[str, Any]:
        self.load()
        return self._meta

    def get(self, unit_id: str) -> UnitTypeDef:
        self.load()
        try:
            return self._data[unit_id]
        except KeyError as exc:
            available = ", ".join(sorted(self._data))
            raise UnknownUnitError(f"Unknown unit type '{unit_id}'. Available: {available}") from exc

    def __contains__(self, unit_id: object) -> bool:
        self.load()
        return unit_id in self._data

    def ships(self) -> Dict[str, UnitTypeDef]:
        self.load()
        return {k: v for k, v in self._data.items() if not v.is_defense}

    def defenses(self) -> Dict[str, UnitTypeDef]:
        self.load()
        return {k: v for k, v in self._data.items() if v.is_defense}


_catalog: Optional[UnitCatalog] = None


def get_catalog(path: Optional[str] = None) -> UnitCatalog:
    global _catalog
    if _catalog is None or path is not None:
        _catalog = UnitCatalog(path=path)
    return _catalog


def get_unit(unit_id: str) -> UnitTypeDef:
    return get_catalog().get(unit_id)


__all__ = ["UnitCatalog", "get_catalog", "get_unit"]
