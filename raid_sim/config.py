from __future__ import annotations
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Iterable, Mapping
import json
import os

import yaml

from .errors import BattleConfigError

DEFAULT_POLICY_PATH = os.path.join(os.path.dirname(__file__), "data", "policy.yaml")
ENV_PREFIX = "RAID_SIM__"

EXPLOSION_TIMINGS = ("round_end", "per_hit")
REBUILD_MODES = ("expected", "stochastic")
MAX_ROUNDS = 6


def _deep_merge(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in (b or {}).items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _load_one(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        text = f.read()
    try:
        if path.endswith(".json"):
            d = json.loads(text)
        else:
            d = yaml.safe_load(text)
    except (ValueError, yaml.YAMLError) as exc:
        raise BattleConfigError(f"cannot parse config file {path}: {exc}") from exc
    if d is None:
        return {}
    if not isinstance(d, dict):
        raise BattleConfigError(f"config file {path} must contain a mapping at top level")
    return d


def load_configs(paths: Iterable[str] | None) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {}
    for p in (paths or []):
        cfg = _deep_merge(cfg, _load_one(p))
    return cfg


def env_overrides(prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    # Nested via double underscores: RAID_SIM__COMBAT__MAX_ROUNDS=8
    out: Dict[str, Any] = {}
    for k, v in os.environ.items():
        if not k.startswith(prefix):
            continue
        parts = k[len(prefix):].split("__")
        cur = out
        for i, part in enumerate(parts):
            key = part.lower()
            if i == len(parts) - 1:
                cur[key] = _coerce(v)
            else:
                cur = cur.setdefault(key, {})
    return out


def _coerce(s: str) -> Any:
    t = s.strip().lower()
    if t in ("true", "false"):
        return t == "true"
    try:
        if "." in t:
            return float(t)
        return int(t)
    except ValueError:
        return s.strip()


def apply_cli_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    return _deep_merge(base, overrides or {})


@dataclass(frozen=True)
class CombatPolicy:
    """Tunable rules for one battle. Read-only once built."""

    max_rounds: int = MAX_ROUNDS
    simultaneous_fire: bool = True
    bounce_ratio: float = 0.01
    explosion_threshold: float = 0.7
    explosion_timing: str = "round_end"
    rapidfire_chain_limit: int = 5000
    loot_ratio: float = 0.5
    loot_on_attacker_victory: bool = True
    loot_on_draw: bool = True
    rebuild_rate: float = 0.7
    rebuild_mode: str = "expected"

    def __post_init__(self) -> None:
        if int(self.max_rounds) < 1:
            raise BattleConfigError(f"max_rounds must be >= 1, got {self.max_rounds}")
        if int(self.rapidfire_chain_limit) < 0:
            raise BattleConfigError("rapidfire_chain_limit cannot be negative")
        for name in ("bounce_ratio", "explosion_threshold", "loot_ratio", "rebuild_rate"):
            value = getattr(self, name)
            if not 0.0 <= float(value) <= 1.0:
                raise BattleConfigError(f"{name} must lie in [0, 1], got {value}")
        if self.explosion_timing not in EXPLOSION_TIMINGS:
            raise BattleConfigError(
                f"explosion_timing must be one of {EXPLOSION_TIMINGS}, got {self.explosion_timing!r}"
            )
        if self.rebuild_mode not in REBUILD_MODES:
            raise BattleConfigError(f"rebuild_mode must be one of {REBUILD_MODES}, got {self.rebuild_mode!r}")

    @classmethod
    def from_dict(cls, cfg: Mapping[str, Any]) -> "CombatPolicy":
        """Build a policy from the nested ``combat``/``loot``/``rebuild`` layout."""
        combat = dict(cfg.get("combat") or {})
        loot = dict(cfg.get("loot") or {})
        rebuild = dict(cfg.get("rebuild") or {})
        flat: Dict[str, Any] = dict(combat)
        if "ratio" in loot:
            flat["loot_ratio"] = loot.pop("ratio")
        for key, value in loot.items():
            flat[f"loot_{key}"] = value
        for key, value in rebuild.items():
            flat[f"rebuild_{key}"] = value

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(flat) - known)
        if unknown:
            raise BattleConfigError(f"unknown policy keys: {', '.join(unknown)}")
        return cls(**flat)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_policy(
    paths: Iterable[str] | None = None,
    env_prefix: str | None = ENV_PREFIX,
    overrides: Dict[str, Any] | None = None,
) -> CombatPolicy:
    """Layer defaults, config files, environment and explicit overrides."""
    cfg = _load_one(DEFAULT_POLICY_PATH)
    cfg = _deep_merge(cfg, load_configs(paths))
    if env_prefix:
        cfg = _deep_merge(cfg, env_overrides(env_prefix))
    cfg = apply_cli_overrides(cfg, overrides or {})
    return CombatPolicy.from_dict(cfg)


__all__ = [
    "MAX_ROUNDS",
    "CombatPolicy",
    "load_policy",
    "load_configs",
    "env_overrides",
    "apply_cli_overrides",
    "_deep_merge",
]
