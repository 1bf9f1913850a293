from __future__ import annotations
import argparse, json, logging, sys, time
from typing import Any, Dict, Tuple

from .battle import simulate_battle
from .config import ENV_PREFIX, _load_one, load_policy
from .errors import BattleConfigError
from .hashing import report_digest
from .simulators.odds import estimate_odds
from .types import FleetInput, PlanetInput, PlanetResources


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="python -m raid_sim.cli",
        description="Fleet vs planet raid simulator"
    )
    p.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, ...)")
    sub = p.add_subparsers(dest="cmd")

    # simulate
    sm = sub.add_parser("simulate", help="Resolve one raid and emit a battle report")
    _add_common_args(sm)
    sm.add_argument("--report", type=str, default=None, help="Path to save report (.json or .md)")
    sm.add_argument("--print-md", action="store_true", help="Print Markdown report to stdout")

    # bench
    bn = sub.add_parser("bench", help="Run many seeded raids and summarise the odds")
    _add_common_args(bn)
    bn.add_argument("--sims", type=int, default=200, help="Number of battles")
    bn.add_argument("--out", type=str, default=None, help="Save odds JSON")

    args = p.parse_args(argv)
    if getattr(args, "cmd", None) is None:
        p.print_help()
        sys.exit(2)
    return args


def _add_common_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--scenario", type=str, required=True, help="YAML/JSON file with attacker and defender")
    ap.add_argument("--seed", type=int, default=0)
    ap.add_argument("--config", type=str, action="append", default=[], help="YAML/JSON policy files (merged)")
    ap.add_argument("--env-prefix", type=str, default=ENV_PREFIX, help="Env prefix for policy overrides")


def load_scenario(path: str) -> Tuple[FleetInput, PlanetInput]:
    """Read a scenario file into attacker and defender inputs."""
    data = _load_one(path)
    att = data.get("attacker") or {}
    dfd = data.get("defender") or {}
    if not isinstance(att, dict) or not isinstance(dfd, dict):
        raise BattleConfigError(f"scenario {path}: attacker and defender must be mappings")
    attacker = FleetInput(ships=dict(att.get("ships") or {}), tech=dict(att.get("tech") or {}))
    defender = PlanetInput(
        ships=dict(dfd.get("ships") or {}),
        defense=dict(dfd.get("defense") or {}),
        tech=dict(dfd.get("tech") or {}),
        resources=PlanetResources.from_mapping(dfd.get("resources")),
    )
    return attacker, defender


def _simulate(args: argparse.Namespace) -> int:
    attacker, defender = load_scenario(args.scenario)
    policy = load_policy(args.config, env_prefix=args.env_prefix)
    report = simulate_battle(attacker, defender, seed=args.seed, policy=policy)

    if args.report:
        if args.report.endswith(".json"):
            with open(args.report, "w", encoding="utf-8") as f:
                f.write(report.to_json())
        elif args.report.endswith(".md"):
            with open(args.report, "w", encoding="utf-8") as f:
                f.write(report.to_markdown())
        else:
            print("Report path must end with .json or .md", file=sys.stderr)
            return 2
    if args.print_md:
        print(report.to_markdown())
    else:
        loot = report.loot
        print(
            f"{report.outcome} after {report.rounds_fought} round(s); "
            f"loot {loot.metal}/{loot.crystal}/{loot.deuterium}; digest {report_digest(report)}"
        )
    return 0


def _bench(args: argparse.Namespace) -> Dict[str, Any]:
    attacker, defender = load_scenario(args.scenario)
    policy = load_policy(args.config, env_prefix=args.env_prefix)
    t0 = time.perf_counter()
    odds = estimate_odds(attacker, defender, n_sims=args.sims, seed=args.seed, policy=policy)
    elapsed = max(1e-9, time.perf_counter() - t0)
    out = odds.to_dict()
    out["seed"] = args.seed
    out["sims_per_sec"] = args.sims / elapsed
    return out


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.cmd == "simulate":
            return _simulate(args)

        if args.cmd == "bench":
            out = _bench(args)
            if args.out:
                with open(args.out, "w", encoding="utf-8") as f:
                    json.dump(out, f, indent=2, sort_keys=True)
            print(json.dumps(out, sort_keys=True))
            return 0
    except (BattleConfigError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    return 1


if __name__ == "__main__":
    raise SystemExit(main())
