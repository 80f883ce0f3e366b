"""Allocation vectors (genomes) and the crossover/mutation rule that breeds them."""
from __future__ import annotations

import random
from typing import ClassVar, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from .data.catalog import ATTACKER_COMPOSITION, DEFENDER_COMPOSITION
from .game_models import FleetInvariantError, UnitType

# Each field independently has this chance of being forced to an extreme.
MUTATION_RATE = 0.001
WEAK_MUTATION_VALUE = 0.001
STRONG_MUTATION_VALUE = 0.999

G = TypeVar("G", bound="Allocation")


class Allocation(tuple):
    """Fixed-length tuple of spend fractions over a side's composition."""

    COMPOSITION: ClassVar[Tuple[UnitType, ...]] = ()

    def __new__(cls: Type[G], values: Iterable[float]) -> G:
        items = tuple(float(v) for v in values)
        if len(items) != len(cls.COMPOSITION):
            raise FleetInvariantError(
                f"{cls.__name__} needs {len(cls.COMPOSITION)} fractions, got {len(items)}"
            )
        return super().__new__(cls, items)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self)!r})"

    @classmethod
    def random(cls: Type[G], rng: random.Random) -> G:
        """Random fractions with the final slot pinned to 1.0 to exhaust the budget."""
        return cls([rng.random() for _ in cls.COMPOSITION[:-1]] + [1.0])


class AttackerAlloc(Allocation):
    COMPOSITION = ATTACKER_COMPOSITION


class DefenderAlloc(Allocation):
    COMPOSITION = DEFENDER_COMPOSITION


def blend(
    left: Sequence[float], right: Sequence[float], rng: Optional[random.Random] = None
) -> List[float]:
    """Field-wise crossover with rare catastrophic mutation.

    Each field rolls once: the bottom 0.1% forces ``0.001``, the top 0.1%
    forces ``0.999``, anything else mixes the parents with a weight that is the
    mean of two uniform draws, so even blends are likelier than lopsided ones.
    """
    if len(left) != len(right):
        raise FleetInvariantError("must have equal lengths")
    rng = rng or random
    out: List[float] = []
    for a, b in zip(left, right):
        roll = rng.random()
        if roll < MUTATION_RATE:
            out.append(WEAK_MUTATION_VALUE)
        elif roll > 1.0 - MUTATION_RATE:
            out.append(STRONG_MUTATION_VALUE)
        else:
            p = (rng.random() + rng.random()) / 2
            # p*x + (1-p)*x can drift by an ulp; identical parents breed true.
            out.append(a if a == b else p * a + (1.0 - p) * b)
    return out


def random_population(cls: Type[G], size: int, rng: random.Random) -> List[G]:
    return [cls.random(rng) for _ in range(size)]


__all__ = [
    "Allocation",
    "AttackerAlloc",
    "DefenderAlloc",
    "MUTATION_RATE",
    "STRONG_MUTATION_VALUE",
    "WEAK_MUTATION_VALUE",
    "blend",
    "random_population",
]
