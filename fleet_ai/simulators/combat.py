"""Round-based stochastic fleet combat.

Each round the attacker picks targets and fires, then the defender picks
targets and fires at the attacker's post-shot state; units destroyed during
the round still fire until the casualty cleanup at the end of the round.
The driver is :class:`CombatResolver`; :func:`simulate_combat` plays a full
battle and reports a terminal outcome, while :func:`simulate_fight` is the
early-terminating variant used as a fitness signal by the optimizer.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
import logging
import random

from ..data.catalog import DEFAULT_CATALOG, UnitCatalog
from ..game_models import Fleet, UnitType

logger = logging.getLogger(__name__)

# Below this fraction of base hull a damaged unit may explode outright.
EXPLOSION_HULL_THRESHOLD = 0.7
# A shot weaker than 1% of the target's current shield is absorbed without effect.
SHIELD_BOUNCE_DIVISOR = 100


class BattleOutcome(str, Enum):
    WIN = "WIN"
    LOSS = "LOSS"
    DRAW_BOTH_ELIMINATED = "DRAW-BOTH-LOSE"
    DRAW_TIMEOUT = "DRAW-TIMEOUT"


class ZeroLossPolicy(str, Enum):
    """What a fitness battle reports when the attacker lost nothing.

    ``cap``: report ``fitness_cap`` (or ``0.0`` if the defender lost nothing
    either).
    ``skip``: report ``None`` so the evaluator leaves the pairing out.
    """

    CAP = "cap"
    SKIP = "skip"


class RapidFireReference(str, Enum):
    """Which opposing unit the rapid-fire chance is looked up against.

    ``last`` checks the last unit of the opposing fleet every time; ``chosen``
    checks the target that was just picked.
    """

    LAST = "last"
    CHOSEN = "chosen"


@dataclass
class CombatRules:
    max_rounds: int = 6
    rapid_fire_reference: RapidFireReference = RapidFireReference.LAST
    zero_loss_policy: ZeroLossPolicy = ZeroLossPolicy.CAP
    fitness_cap: float = 10_000.0


@dataclass
class CombatResolution:
    outcome: BattleOutcome
    attacker: Fleet
    defender: Fleet
    round_index: Optional[int] = None
    rounds_completed: int = 0

    @property
    def tag(self) -> str:
        if self.round_index is None:
            return self.outcome.value
        return f"{self.outcome.value}({self.round_index})"


class CombatResolver:
    """Plays rounds between two fleets, mutating both in place."""

    def __init__(
        self,
        attacker: Fleet,
        defender: Fleet,
        catalog: Optional[UnitCatalog] = None,
        rules: Optional[CombatRules] = None,
        rng: Optional[random.Random] = None,
        seed: Optional[int] = None,
    ):
        self.attacker = attacker
        self.defender = defender
        self.catalog = catalog or DEFAULT_CATALOG
        self.rules = rules or CombatRules()
        self.rng = rng if rng is not None else random.Random(seed)
        self.rounds_completed = 0

    # ----- Public API -----

    def resolve(self) -> CombatResolution:
        """Full battle: stop only once a side is wiped out, or time out."""
        for round_index in range(self.rules.max_rounds):
            self.play_round()
            attacker_gone = self.attacker.is_empty()
            defender_gone = self.defender.is_empty()
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug(
                    "round %d: attacker=%d units, defender=%d units",
                    round_index,
                    len(self.attacker),
                    len(self.defender),
                )
            if attacker_gone and defender_gone:
                return self._resolution(BattleOutcome.DRAW_BOTH_ELIMINATED, round_index)
            if attacker_gone:
                return self._resolution(BattleOutcome.LOSS, round_index)
            if defender_gone:
                return self._resolution(BattleOutcome.WIN, round_index)
        return self._resolution(BattleOutcome.DRAW_TIMEOUT, None)

    def fight(self) -> Optional[float]:
        """Fitness battle: defender losses over attacker losses."""
        for _ in range(self.rules.max_rounds):
            self.play_round()
            if self.attacker.is_empty() or self.defender.is_empty():
                break
        return fitness_ratio(
            self.attacker.lost.total(), self.defender.lost.total(), self.rules
        )

    def play_round(self) -> None:
        self.process(self.attacker, self.defender)
        self.process(self.defender, self.attacker)
        self.remove_dead_units(self.attacker)
        self.remove_dead_units(self.defender)
        self.rounds_completed += 1

    # ----- Round phases -----

    def process(self, acting: Fleet, opposing: Fleet) -> None:
        self.pick_targets(acting, opposing)
        self.attack_targets(acting, opposing)

    def pick_targets(self, acting: Fleet, opposing: Fleet) -> None:
        """Give every acting unit one or more random target indices.

        Targets are drawn from the whole opposing list, including units already
        wrecked this round. After each pick the shooter keeps picking while its
        rapid-fire roll succeeds.
        """
        rng = self.rng
        count = len(opposing.units)
        if count == 0:
            for unit in acting.units:
                unit.targets = []
            return
        chosen_mode = self.rules.rapid_fire_reference is RapidFireReference.CHOSEN
        reference = opposing.units[-1].type
        chance_vs_reference: Dict[UnitType, float] = {}
        for unit in acting.units:
            if chosen_mode:
                targets = [rng.randrange(count)]
                while True:
                    chance = self.catalog.rapid_fire(unit.type, opposing.units[targets[-1]].type)
                    if chance <= 0.0 or rng.random() >= chance:
                        break
                    targets.append(rng.randrange(count))
                unit.targets = targets
                continue
            chance = chance_vs_reference.get(unit.type)
            if chance is None:
                chance = self.catalog.rapid_fire(unit.type, reference)
                chance_vs_reference[unit.type] = chance
            targets = [rng.randrange(count)]
            if chance > 0.0:
                while rng.random() < chance:
                    targets.append(rng.randrange(count))
            unit.targets = targets

    def attack_targets(self, acting: Fleet, opposing: Fleet) -> None:
        rng = self.rng
        stats = self.catalog.stats
        for unit in acting.units:
            weapon = unit.weapon
            for idx in unit.targets:
                target = opposing.units[idx]
                if not target.alive():
                    continue
                if weapon * SHIELD_BOUNCE_DIVISOR < target.shield:
                    continue
                if weapon < target.shield:
                    target.shield -= weapon
                    continue
                target.hull -= weapon - target.shield
                target.shield = 0
                if target.hull <= 0:
                    target.hull = 0
                    continue
                hull_pct = target.hull / stats[target.type].hull
                if hull_pct < EXPLOSION_HULL_THRESHOLD and rng.random() < 1.0 - hull_pct:
                    target.hull = 0

    def remove_dead_units(self, fleet: Fleet) -> int:
        """Drop wrecks, book their cost as losses and recharge survivors' shields."""
        survivors = []
        stats = self.catalog.stats
        for unit in fleet.units:
            if unit.alive():
                unit.shield = stats[unit.type].shield
                survivors.append(unit)
            else:
                fleet.lost.add(stats[unit.type].cost)
        removed = len(fleet.units) - len(survivors)
        fleet.units = survivors
        return removed

    # ----- Utility -----

    def _resolution(self, outcome: BattleOutcome, round_index: Optional[int]) -> CombatResolution:
        return CombatResolution(
            outcome=outcome,
            attacker=self.attacker,
            defender=self.defender,
            round_index=round_index,
            rounds_completed=self.rounds_completed,
        )


def fitness_ratio(
    attacker_lost: int, defender_lost: int, rules: Optional[CombatRules] = None
) -> Optional[float]:
    rules = rules or CombatRules()
    if attacker_lost == 0:
        if rules.zero_loss_policy is ZeroLossPolicy.SKIP:
            return None
        return rules.fitness_cap if defender_lost > 0 else 0.0
    return defender_lost / attacker_lost


def simulate_combat(
    attacker: Fleet,
    defender: Fleet,
    catalog: Optional[UnitCatalog] = None,
    rules: Optional[CombatRules] = None,
    rng: Optional[random.Random] = None,
) -> CombatResolution:
    return CombatResolver(attacker, defender, catalog=catalog, rules=rules, rng=rng).resolve()


def simulate_fight(
    attacker: Fleet,
    defender: Fleet,
    catalog: Optional[UnitCatalog] = None,
    rules: Optional[CombatRules] = None,
    rng: Optional[random.Random] = None,
) -> Optional[float]:
    return CombatResolver(attacker, defender, catalog=catalog, rules=rules, rng=rng).fight()


__all__ = [
    "BattleOutcome",
    "CombatResolution",
    "CombatResolver",
    "CombatRules",
    "RapidFireReference",
    "ZeroLossPolicy",
    "fitness_ratio",
    "simulate_combat",
    "simulate_fight",
]
