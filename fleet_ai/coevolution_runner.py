"""
Co-evolution driver for attacker and defender fleet compositions.

Each generation:
1. Fitness - every attacker genome fights every defender genome
2. Ranking - attackers by descending score, defenders by ascending score
3. Breeding - both populations are replaced by children of their elite pools

After the last generation the best attacker and defender of the final
evaluated generation can be built into fleets and fought to a terminal
outcome with :func:`run_showdown`.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional
import logging
import random

from .config import SimulationConfig
from .data.catalog import ATTACKER_COMPOSITION, DEFENDER_COMPOSITION
from .evaluator import FitnessEvaluator
from .evolution import Scores, reproduce_attackers, reproduce_defenders
from .fleet_builder import make_fleet_by_alloc, summarize_fleet
from .genome import AttackerAlloc, DefenderAlloc, random_population
from .simulators.combat import CombatResolution, simulate_combat

logger = logging.getLogger(__name__)


@dataclass
class GenerationReport:
    generation: int
    best_attacker_score: float
    best_defender_score: float
    best_attacker: AttackerAlloc
    best_defender: DefenderAlloc
    mean_attacker_score: float = 0.0
    mean_defender_score: float = 0.0
    skipped: int = 0
    elapsed: float = 0.0


@dataclass
class CoevolutionResult:
    attackers: List[AttackerAlloc]
    defenders: List[DefenderAlloc]
    history: List[GenerationReport] = field(default_factory=list)

    @property
    def best_attacker(self) -> Optional[AttackerAlloc]:
        return self.history[-1].best_attacker if self.history else None

    @property
    def best_defender(self) -> Optional[DefenderAlloc]:
        return self.history[-1].best_defender if self.history else None


@dataclass
class Showdown:
    attacker_before: Dict[str, int]
    defender_before: Dict[str, int]
    resolution: CombatResolution

    @property
    def attacker_after(self) -> Dict[str, int]:
        return summarize_fleet(self.resolution.attacker)

    @property
    def defender_after(self) -> Dict[str, int]:
        return summarize_fleet(self.resolution.defender)

    @property
    def attacker_lost(self) -> int:
        return self.resolution.attacker.lost.total()

    @property
    def defender_lost(self) -> int:
        return self.resolution.defender.lost.total()


def run_generation(
    attackers: List[AttackerAlloc],
    defenders: List[DefenderAlloc],
    generation: int,
    config: SimulationConfig,
    evaluator: FitnessEvaluator,
    rng: random.Random,
):
    """Evaluate one generation and breed the next.

    Returns ``(next_attackers, next_defenders, report)``.
    """
    res = evaluator.evaluate(attackers, defenders, generation)
    atk_scores = Scores.rank(res.attacker_scores)
    def_scores = Scores.rank(res.defender_scores)

    report = GenerationReport(
        generation=generation,
        best_attacker_score=atk_scores.best_high,
        best_defender_score=def_scores.best_low,
        best_attacker=attackers[atk_scores.top(1)[0]],
        best_defender=defenders[def_scores.bottom(1)[0]],
        mean_attacker_score=float(res.attacker_scores.mean()),
        mean_defender_score=float(res.defender_scores.mean()),
        skipped=res.skipped,
        elapsed=res.elapsed,
    )
    logger.info(
        "[gen %03d] best_atk=%.3f best_def=%.3f skipped=%d (%.2fs)",
        generation,
        report.best_attacker_score,
        report.best_defender_score,
        report.skipped,
        report.elapsed,
    )

    next_attackers = reproduce_attackers(attackers, atk_scores, config.elite, rng)
    next_defenders = reproduce_defenders(defenders, def_scores, config.elite, rng)
    return next_attackers, next_defenders, report


def run_coevolution(
    config: Optional[SimulationConfig] = None,
    on_generation: Optional[Callable[[GenerationReport], None]] = None,
    evaluator: Optional[FitnessEvaluator] = None,
    attackers: Optional[List[AttackerAlloc]] = None,
    defenders: Optional[List[DefenderAlloc]] = None,
) -> CoevolutionResult:
    config = config or SimulationConfig()
    rng = random.Random(config.seed)
    evaluator = evaluator or FitnessEvaluator(config)
    attackers = list(attackers) if attackers else random_population(AttackerAlloc, config.population, rng)
    defenders = list(defenders) if defenders else random_population(DefenderAlloc, config.population, rng)
    if len(attackers) != len(defenders):
        raise ValueError(
            f"populations must match in size: {len(attackers)} attackers, {len(defenders)} defenders"
        )

    history: List[GenerationReport] = []
    for gen in range(config.generations):
        attackers, defenders, report = run_generation(
            attackers, defenders, gen, config, evaluator, rng
        )
        history.append(report)
        if on_generation is not None:
            on_generation(report)

    return CoevolutionResult(attackers=attackers, defenders=defenders, history=history)


def run_showdown(
    attacker: AttackerAlloc,
    defender: DefenderAlloc,
    config: Optional[SimulationConfig] = None,
    rng: Optional[random.Random] = None,
) -> Showdown:
    """Build both fleets from the starting budgets and fight a full battle."""
    config = config or SimulationConfig()
    attacker_fleet = make_fleet_by_alloc(
        config.attacker_resources.copy(), ATTACKER_COMPOSITION, attacker, config.catalog
    )
    defender_fleet = make_fleet_by_alloc(
        config.defender_resources.copy(), DEFENDER_COMPOSITION, defender, config.catalog
    )
    attacker_before = summarize_fleet(attacker_fleet)
    defender_before = summarize_fleet(defender_fleet)
    resolution = simulate_combat(
        attacker_fleet,
        defender_fleet,
        catalog=config.catalog,
        rules=config.rules,
        rng=rng or random.Random(config.seed),
    )
    logger.info(
        "showdown: %s (attacker lost %d, defender lost %d)",
        resolution.tag,
        resolution.attacker.lost.total(),
        resolution.defender.lost.total(),
    )
    return Showdown(attacker_before, defender_before, resolution)


__all__ = [
    "CoevolutionResult",
    "GenerationReport",
    "Showdown",
    "run_coevolution",
    "run_generation",
    "run_showdown",
]
