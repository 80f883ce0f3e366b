from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional
import os, json

import yaml

from .data.catalog import DEFAULT_CATALOG, UnitCatalog
from .game_models import Resources
from .simulators.combat import CombatRules, RapidFireReference, ZeroLossPolicy

DEFAULT_ATTACKER_RESOURCES = Resources(22449840, 14911680, 8420160)
DEFAULT_DEFENDER_RESOURCES = Resources(2244984, 1491168, 842016)

EVALUATOR_BACKENDS = ("thread", "process")

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
    if path.endswith(".json"):
        d = json.loads(text)
    else:
        # YAML is a superset of JSON, so this covers both.
        d = yaml.safe_load(text)
    if d is None:
        return {}
    if not isinstance(d, dict):
        raise ValueError(f"config file {path} must contain a mapping, got {type(d).__name__}")
    return d

def load_configs(paths: Iterable[str] | None) -> Dict[str, Any]:
    cfg: Dict[str, Any] = {}
    for p in (paths or []):
        cfg = _deep_merge(cfg, _load_one(p))
    return cfg

def env_overrides(prefix: str = "FLEET_AI__") -> Dict[str, Any]:
    # Nested via double underscores: FLEET_AI__EVOLUTION__POPULATION=50
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
        if "." in t or "e" in t:
            return float(t)
        return int(t)
    except ValueError:
        return s

def apply_cli_overrides(base: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    return _deep_merge(base, overrides or {})


def _resources(raw: Any, default: Resources) -> Resources:
    if raw is None:
        return default.copy()
    if isinstance(raw, Mapping):
        res = Resources(
            int(raw.get("metal", default.metal)),
            int(raw.get("crystal", default.crystal)),
            int(raw.get("deuterium", default.deuterium)),
        )
    else:
        res = Resources(*(int(v) for v in raw))
    if min(res.metal, res.crystal, res.deuterium) < 0:
        raise ValueError(f"starting budget must be non-negative: {res}")
    return res


@dataclass
class SimulationConfig:
    """Every tunable of a co-evolution run, with the reference defaults."""

    population: int = 100
    elite: int = 20
    generations: int = 10
    workers: int = 8
    backend: str = "thread"
    seed: Optional[int] = None
    attacker_resources: Resources = field(default_factory=DEFAULT_ATTACKER_RESOURCES.copy)
    defender_resources: Resources = field(default_factory=DEFAULT_DEFENDER_RESOURCES.copy)
    rules: CombatRules = field(default_factory=CombatRules)
    catalog: UnitCatalog = DEFAULT_CATALOG

    def __post_init__(self) -> None:
        if self.population < 1:
            raise ValueError(f"population must be >= 1, got {self.population}")
        if not 1 <= self.elite <= self.population:
            raise ValueError(f"elite pool must be in [1, population], got {self.elite}")
        if self.generations < 0:
            raise ValueError(f"generations must be >= 0, got {self.generations}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.backend not in EVALUATOR_BACKENDS:
            raise ValueError(f"backend must be one of {EVALUATOR_BACKENDS}, got {self.backend!r}")
        if self.rules.max_rounds < 1:
            raise ValueError(f"max_rounds must be >= 1, got {self.rules.max_rounds}")
        if self.rules.fitness_cap <= 0:
            raise ValueError(f"fitness_cap must be positive, got {self.rules.fitness_cap}")

    @classmethod
    def from_mapping(cls, cfg: Optional[Mapping[str, Any]]) -> "SimulationConfig":
        """Build from a merged config mapping.

        Recognised sections: ``evolution`` (population, elite, generations,
        seed), ``evaluator`` (workers, backend), ``combat`` (max_rounds,
        rapid_fire_reference, zero_loss_policy, fitness_cap), ``budgets``
        (attacker, defender) and ``catalog`` (see ``UnitCatalog.with_overrides``).
        """
        cfg = cfg or {}
        evo = dict(cfg.get("evolution") or {})
        ev = dict(cfg.get("evaluator") or {})
        combat = dict(cfg.get("combat") or {})
        budgets = dict(cfg.get("budgets") or {})
        defaults = CombatRules()
        seed = evo.get("seed")
        rules = CombatRules(
            max_rounds=int(combat.get("max_rounds", defaults.max_rounds)),
            rapid_fire_reference=RapidFireReference(
                combat.get("rapid_fire_reference", defaults.rapid_fire_reference.value)
            ),
            zero_loss_policy=ZeroLossPolicy(
                combat.get("zero_loss_policy", defaults.zero_loss_policy.value)
            ),
            fitness_cap=float(combat.get("fitness_cap", defaults.fitness_cap)),
        )
        return cls(
            population=int(evo.get("population", 100)),
            elite=int(evo.get("elite", 20)),
            generations=int(evo.get("generations", 10)),
            seed=None if seed is None else int(seed),
            workers=int(ev.get("workers", 8)),
            backend=str(ev.get("backend", "thread")),
            attacker_resources=_resources(budgets.get("attacker"), DEFAULT_ATTACKER_RESOURCES),
            defender_resources=_resources(budgets.get("defender"), DEFAULT_DEFENDER_RESOURCES),
            rules=rules,
            catalog=DEFAULT_CATALOG.with_overrides(cfg.get("catalog")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "evolution": {
                "population": self.population,
                "elite": self.elite,
                "generations": self.generations,
                "seed": self.seed,
            },
            "evaluator": {"workers": self.workers, "backend": self.backend},
            "combat": {
                "max_rounds": self.rules.max_rounds,
                "rapid_fire_reference": self.rules.rapid_fire_reference.value,
                "zero_loss_policy": self.rules.zero_loss_policy.value,
                "fitness_cap": self.rules.fitness_cap,
            },
            "budgets": {
                "attacker": self.attacker_resources.as_dict(),
                "defender": self.defender_resources.as_dict(),
            },
            "catalog": self.catalog.overrides_against(DEFAULT_CATALOG),
        }


__all__ = [
    "DEFAULT_ATTACKER_RESOURCES",
    "DEFAULT_DEFENDER_RESOURCES",
    "SimulationConfig",
    "load_configs",
    "env_overrides",
    "apply_cli_overrides",
    "_deep_merge",
]
