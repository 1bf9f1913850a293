"""Shared lightweight dataclasses used across the combat engine."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Dict, Mapping

RESOURCE_KINDS = ("metal", "crystal", "deuterium")


@dataclass(frozen=True)
class UnitTypeDef:
    """Static definition of a ship or defense kind.

    ``rapidfire`` maps an opposing unit id to an integer factor; factors of
    0 or 1 (or a missing entry) grant no extra shots.
    """

    id: str
    name: str
    is_defense: bool
    attack: int
    shield: int
    hull: int
    cargo: int = 0
    rapidfire: Mapping[str, int] = field(default_factory=dict)

    def rapidfire_against(self, unit_id: str) -> int:
        return int(self.rapidfire.get(unit_id, 0))


@dataclass(frozen=True)
class EffectiveUnitStats:
    """Base stats after technology bonuses; fixed for the whole battle."""

    unit_id: str
    is_defense: bool
    attack: int
    shield: int
    hull: int
    cargo: int
    rapidfire: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PlanetResources:
    metal: int = 0
    crystal: int = 0
    deuterium: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, int] | None) -> "PlanetResources":
        data = data or {}
        return cls(**{kind: data.get(kind, 0) for kind in RESOURCE_KINDS})

    def as_dict(self) -> Dict[str, int]:
        return {kind: getattr(self, kind) for kind in RESOURCE_KINDS}

    def total(self) -> int:
        return self.metal + self.crystal + self.deuterium

    def minus(self, other: "PlanetResources") -> "PlanetResources":
        return replace(
            self,
            metal=self.metal - other.metal,
            crystal=self.crystal - other.crystal,
            deuterium=self.deuterium - other.deuterium,
        )


@dataclass
class FleetInput:
    """Attacking fleet as supplied by the caller: ship counts plus tech."""

    ships: Dict[str, int] = field(default_factory=dict)
    tech: Dict[str, int] = field(default_factory=dict)


@dataclass
class PlanetInput:
    """Defending planet: stationed ships, defenses, tech and stockpile."""

    ships: Dict[str, int] = field(default_factory=dict)
    defense: Dict[str, int] = field(default_factory=dict)
    tech: Dict[str, int] = field(default_factory=dict)
    resources: PlanetResources = field(default_factory=PlanetResources)


__all__ = [
    "RESOURCE_KINDS",
    "UnitTypeDef",
    "EffectiveUnitStats",
    "PlanetResources",
    "FleetInput",
    "PlanetInput",
]
