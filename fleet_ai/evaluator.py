"""All-pairs fitness evaluation between the attacker and defender populations.

Every attacker genome fights every defender genome once. Pairings are
independent: each one builds fresh fleets from copies of the starting budgets
and draws from its own random stream, so the order in which workers finish
does not change the result.

The ``thread`` backend is a two-queue worker pool: the calling thread enqueues
all pairings and then one stop marker per worker, the workers push scored
results onto a result queue, and a single aggregator thread is the only code
that touches the score arrays. Once every worker has exited the result queue
is closed and :meth:`FitnessEvaluator.evaluate` waits for the aggregator
before returning. The ``process`` backend hands pairings to a
``ProcessPoolExecutor`` and aggregates in the calling thread as futures
complete.
"""
from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple
import logging
import queue
import random
import threading
import time

import numpy as np

from .config import SimulationConfig
from .data.catalog import ATTACKER_COMPOSITION, DEFENDER_COMPOSITION, UnitCatalog
from .fleet_builder import make_fleet_by_alloc
from .game_models import Resources
from .genome import AttackerAlloc, DefenderAlloc
from .simulators.combat import CombatRules, simulate_fight

logger = logging.getLogger(__name__)

# (attacker genome, defender genome, pairing rng) -> fitness or None to skip
BattleFn = Callable[[AttackerAlloc, DefenderAlloc, random.Random], Optional[float]]

_STOP = object()


@dataclass
class PairingTask:
    i: int
    j: int
    attacker: AttackerAlloc
    defender: DefenderAlloc
    seed_key: Optional[str]


@dataclass
class PairingResult:
    i: int
    j: int
    score: Optional[float]


@dataclass
class _WorkerFailure:
    task: PairingTask
    error: BaseException


@dataclass
class EvaluationResult:
    matrix: np.ndarray
    attacker_scores: np.ndarray
    defender_scores: np.ndarray
    skipped: int = 0
    elapsed: float = 0.0


@dataclass
class FleetBattle:
    """Default battle: build both fleets from fresh budgets and run a fitness fight."""

    attacker_resources: Resources
    defender_resources: Resources
    catalog: UnitCatalog
    rules: CombatRules

    def __call__(
        self, attacker: AttackerAlloc, defender: DefenderAlloc, rng: random.Random
    ) -> Optional[float]:
        attacker_fleet = make_fleet_by_alloc(
            self.attacker_resources.copy(), ATTACKER_COMPOSITION, attacker, self.catalog
        )
        defender_fleet = make_fleet_by_alloc(
            self.defender_resources.copy(), DEFENDER_COMPOSITION, defender, self.catalog
        )
        return simulate_fight(
            attacker_fleet, defender_fleet, catalog=self.catalog, rules=self.rules, rng=rng
        )


def pairing_rng(seed_key: Optional[str]) -> random.Random:
    # String seeds hash deterministically across processes, unlike hash().
    return random.Random(seed_key) if seed_key is not None else random.Random()


def _run_pairing(battle: BattleFn, task: PairingTask) -> PairingResult:
    score = battle(task.attacker, task.defender, pairing_rng(task.seed_key))
    return PairingResult(task.i, task.j, score)


class FitnessEvaluator:
    def __init__(self, config: SimulationConfig, battle: Optional[BattleFn] = None):
        self.config = config
        self.battle: BattleFn = battle or FleetBattle(
            attacker_resources=config.attacker_resources,
            defender_resources=config.defender_resources,
            catalog=config.catalog,
            rules=config.rules,
        )

    # ----- Public API -----

    def evaluate(
        self,
        attackers: Sequence[AttackerAlloc],
        defenders: Sequence[DefenderAlloc],
        generation: int = 0,
    ) -> EvaluationResult:
        """Score every (attacker i, defender j) pairing.

        ``attacker_scores[i]`` sums row ``i`` of the matrix and
        ``defender_scores[j]`` sums column ``j``; skipped pairings are NaN in
        the matrix and contribute nothing to either sum.
        """
        t0 = time.perf_counter()
        result = EvaluationResult(
            matrix=np.full((len(attackers), len(defenders)), np.nan),
            attacker_scores=np.zeros(len(attackers)),
            defender_scores=np.zeros(len(defenders)),
        )
        tasks = self._tasks(attackers, defenders, generation)
        if self.config.backend == "process":
            self._evaluate_processes(tasks, result)
        else:
            self._evaluate_threads(tasks, result)
        result.elapsed = time.perf_counter() - t0
        logger.debug(
            "generation %d: %d pairings in %.2fs (%d skipped, backend=%s, workers=%d)",
            generation,
            len(tasks),
            result.elapsed,
            result.skipped,
            self.config.backend,
            self.config.workers,
        )
        return result

    # ----- Backends -----

    def _evaluate_threads(self, tasks: List[PairingTask], result: EvaluationResult) -> None:
        workers = self.config.workers
        task_q: "queue.Queue[object]" = queue.Queue(maxsize=workers * 2)
        result_q: "queue.Queue[object]" = queue.Queue()
        failures: List[_WorkerFailure] = []

        def work() -> None:
            while True:
                task = task_q.get()
                if task is _STOP:
                    return
                try:
                    result_q.put(_run_pairing(self.battle, task))
                except Exception as exc:
                    result_q.put(_WorkerFailure(task, exc))

        def aggregate() -> None:
            while True:
                item = result_q.get()
                if item is _STOP:
                    return
                if isinstance(item, _WorkerFailure):
                    failures.append(item)
                    continue
                self._accumulate(result, item)

        aggregator = threading.Thread(target=aggregate, name="fitness-aggregator", daemon=True)
        aggregator.start()
        pool = [
            threading.Thread(target=work, name=f"fitness-worker-{n}", daemon=True)
            for n in range(workers)
        ]
        for t in pool:
            t.start()
        for task in tasks:
            task_q.put(task)
        for _ in pool:
            task_q.put(_STOP)
        for t in pool:
            t.join()
        result_q.put(_STOP)
        aggregator.join()

        if failures:
            first = failures[0]
            logger.error(
                "%d pairing(s) failed; first was attacker %d vs defender %d",
                len(failures),
                first.task.i,
                first.task.j,
            )
            raise first.error

    def _evaluate_processes(self, tasks: List[PairingTask], result: EvaluationResult) -> None:
        with ProcessPoolExecutor(max_workers=self.config.workers) as executor:
            futures = [executor.submit(_run_pairing, self.battle, task) for task in tasks]
            for future in as_completed(futures):
                self._accumulate(result, future.result())

    # ----- Utility -----

    def _tasks(
        self,
        attackers: Sequence[AttackerAlloc],
        defenders: Sequence[DefenderAlloc],
        generation: int,
    ) -> List[PairingTask]:
        seed = self.config.seed
        return [
            PairingTask(
                i=i,
                j=j,
                attacker=atk,
                defender=dfd,
                seed_key=None if seed is None else f"{seed}:{generation}:{i}:{j}",
            )
            for i, atk in enumerate(attackers)
            for j, dfd in enumerate(defenders)
        ]

    @staticmethod
    def _accumulate(result: EvaluationResult, item: PairingResult) -> None:
        if item.score is None:
            result.skipped += 1
            return
        result.matrix[item.i, item.j] = item.score
        result.attacker_scores[item.i] += item.score
        result.defender_scores[item.j] += item.score


def evaluate_populations(
    attackers: Sequence[AttackerAlloc],
    defenders: Sequence[DefenderAlloc],
    config: Optional[SimulationConfig] = None,
    generation: int = 0,
    battle: Optional[BattleFn] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Convenience wrapper returning only the per-genome score vectors."""
    res = FitnessEvaluator(config or SimulationConfig(), battle=battle).evaluate(
        attackers, defenders, generation
    )
    return res.attacker_scores, res.defender_scores


__all__ = [
    "BattleFn",
    "EvaluationResult",
    "FitnessEvaluator",
    "FleetBattle",
    "PairingResult",
    "PairingTask",
    "evaluate_populations",
    "pairing_rng",
]
