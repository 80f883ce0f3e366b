from __future__ import annotations
import argparse, logging, sys
from typing import Any, Dict, List

from .config import SimulationConfig, load_configs, env_overrides, apply_cli_overrides
from .coevolution_runner import GenerationReport, Showdown, run_coevolution, run_showdown
from .data.catalog import ATTACKER_COMPOSITION, DEFENDER_COMPOSITION
from .genome import AttackerAlloc, DefenderAlloc
from .reports.run_report import build_run_report


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="python -m fleet_ai.cli",
        description="Co-evolve attacker and defender fleet compositions"
    )
    sub = p.add_subparsers(dest="cmd")

    # evolve
    ev = sub.add_parser("evolve", help="Run the co-evolution loop and a final showdown")
    _add_common_args(ev)
    ev.add_argument("--population", type=int, default=None)
    ev.add_argument("--elite", type=int, default=None)
    ev.add_argument("--generations", type=int, default=None)
    ev.add_argument("--workers", type=int, default=None)
    ev.add_argument("--backend", choices=["thread", "process"], default=None)
    ev.add_argument("--no-showdown", action="store_true", help="Skip the final full battle")
    ev.add_argument("--report", type=str, default=None, help="Path to save report (.json or .md)")

    # battle
    bt = sub.add_parser("battle", help="Fight one full battle between two allocation vectors")
    _add_common_args(bt)
    bt.add_argument("--attacker", type=str, required=True,
                    help=f"Comma separated fractions over {','.join(map(str, ATTACKER_COMPOSITION))}")
    bt.add_argument("--defender", type=str, required=True,
                    help=f"Comma separated fractions over {','.join(map(str, DEFENDER_COMPOSITION))}")

    args = p.parse_args(argv)
    if getattr(args, "cmd", None) is None:
        p.print_help()
        sys.exit(2)
    return args


def _add_common_args(ap: argparse.ArgumentParser) -> None:
    ap.add_argument("--config", type=str, action="append", default=[], help="YAML/JSON config files (merged)")
    ap.add_argument("--env-prefix", type=str, default="FLEET_AI__", help="Env prefix for overrides")
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--max-rounds", type=int, default=None)
    ap.add_argument("--zero-loss-policy", choices=["cap", "skip"], default=None)
    ap.add_argument("--log-level", type=str, default="WARNING")


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    out: Dict[str, Any] = {}

    def put(section: str, key: str, value: Any) -> None:
        if value is not None:
            out.setdefault(section, {})[key] = value

    put("evolution", "seed", args.seed)
    put("combat", "max_rounds", args.max_rounds)
    put("combat", "zero_loss_policy", args.zero_loss_policy)
    put("evolution", "population", getattr(args, "population", None))
    put("evolution", "elite", getattr(args, "elite", None))
    put("evolution", "generations", getattr(args, "generations", None))
    put("evaluator", "workers", getattr(args, "workers", None))
    put("evaluator", "backend", getattr(args, "backend", None))
    return out


def _build_config(args: argparse.Namespace) -> SimulationConfig:
    cfg = load_configs(args.config)
    cfg = apply_cli_overrides(cfg, env_overrides(args.env_prefix))
    cfg = apply_cli_overrides(cfg, _cli_overrides(args))
    return SimulationConfig.from_mapping(cfg)


def _parse_fractions(text: str) -> List[float]:
    return [float(x) for x in text.split(",") if x.strip()]


def _print_generation(report: GenerationReport) -> None:
    print(
        f"[{report.best_defender_score:f}, {report.best_attacker_score:f}] "
        f"({list(report.best_defender)}, {list(report.best_attacker)})"
    )


def _print_summary(title: str, summary: Dict[str, int], lost: int | None = None) -> None:
    print("--------")
    print(title)
    print("--------")
    for name, count in summary.items():
        print(f"\t{name} = {count}")
    if lost is not None:
        print(f"Lost = {lost}")


def _print_showdown(sd: Showdown) -> None:
    _print_summary("Attacker", sd.attacker_before)
    _print_summary("Defender", sd.defender_before)
    print("--------")
    print(sd.resolution.tag)
    _print_summary("Attacker", sd.attacker_after, sd.attacker_lost)
    _print_summary("Defender", sd.defender_after, sd.defender_lost)
    print("--------")


def _evolve(args: argparse.Namespace) -> int:
    config = _build_config(args)
    result = run_coevolution(config, on_generation=_print_generation)
    showdown = None
    if not args.no_showdown and result.best_attacker is not None:
        showdown = run_showdown(result.best_attacker, result.best_defender, config)
        _print_showdown(showdown)
    if args.report:
        report = build_run_report(config.to_dict(), result, showdown)
        if args.report.endswith(".json"):
            with open(args.report, "w", encoding="utf-8") as f:
                f.write(report.to_json())
        elif args.report.endswith(".md"):
            with open(args.report, "w", encoding="utf-8") as f:
                f.write(report.to_markdown())
        else:
            print("Report path must end with .json or .md", file=sys.stderr)
            return 1
    return 0


def _battle(args: argparse.Namespace) -> int:
    config = _build_config(args)
    attacker = AttackerAlloc(_parse_fractions(args.attacker))
    defender = DefenderAlloc(_parse_fractions(args.defender))
    _print_showdown(run_showdown(attacker, defender, config))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.cmd == "evolve":
        return _evolve(args)
    if args.cmd == "battle":
        return _battle(args)
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
