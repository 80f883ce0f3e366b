"""Ranking and breeding of the attacker and defender populations."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Type, TypeVar
import random

import numpy as np

from .genome import Allocation, AttackerAlloc, DefenderAlloc, blend

G = TypeVar("G", bound=Allocation)


@dataclass
class Scores:
    """Scores sorted ascending, each paired with the genome index it came from."""

    values: np.ndarray
    idx: np.ndarray

    @classmethod
    def rank(cls, data: Sequence[float]) -> "Scores":
        raw = np.asarray(data, dtype=float)
        order = np.argsort(raw, kind="stable")
        return cls(values=raw[order], idx=order)

    def __len__(self) -> int:
        return len(self.values)

    def top(self, k: int) -> List[int]:
        """Original indices of the ``k`` highest scores."""
        return [int(i) for i in self.idx[len(self.idx) - k:]]

    def bottom(self, k: int) -> List[int]:
        """Original indices of the ``k`` lowest scores."""
        return [int(i) for i in self.idx[:k]]

    @property
    def best_high(self) -> float:
        return float(self.values[-1])

    @property
    def best_low(self) -> float:
        return float(self.values[0])


def reproduce(
    population: Sequence[G],
    elite: Sequence[int],
    rng: Optional[random.Random] = None,
    size: Optional[int] = None,
) -> List[G]:
    """Breed a new generation from the genomes at the ``elite`` indices.

    Both parents are drawn uniformly with replacement, so a parent may be
    paired with itself.
    """
    if not elite:
        raise ValueError("elite pool is empty")
    rng = rng or random.Random()
    cls: Type[G] = type(population[0])
    size = len(population) if size is None else size
    out: List[G] = []
    for _ in range(size):
        left = population[elite[rng.randrange(len(elite))]]
        right = population[elite[rng.randrange(len(elite))]]
        out.append(cls(blend(left, right, rng)))
    return out


def reproduce_attackers(
    population: Sequence[AttackerAlloc], scores: Scores, elite: int, rng: Optional[random.Random] = None
) -> List[AttackerAlloc]:
    # High ratio = defender lost more value than the attacker did.
    return reproduce(population, scores.top(elite), rng)


def reproduce_defenders(
    population: Sequence[DefenderAlloc], scores: Scores, elite: int, rng: Optional[random.Random] = None
) -> List[DefenderAlloc]:
    return reproduce(population, scores.bottom(elite), rng)


__all__ = ["Scores", "reproduce", "reproduce_attackers", "reproduce_defenders"]
