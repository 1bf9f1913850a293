"""Exceptions raised by the raid simulator."""
from __future__ import annotations


class BattleConfigError(ValueError):
    """Raised when battle inputs or combat policy are invalid.

    Validation happens before the first round so a rejected battle never
    leaves partially mutated state behind.
    """


class UnknownUnitError(BattleConfigError, KeyError):
    """Raised when a unit id is not present in the unit catalog."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message instead.
        return str(self.args[0]) if self.args else ""


__all__ = ["BattleConfigError", "UnknownUnitError"]
