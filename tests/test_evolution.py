import random

import pytest

from fleet_ai.evolution import Scores, reproduce, reproduce_attackers, reproduce_defenders
from fleet_ai.genome import AttackerAlloc, DefenderAlloc


class CalmRng:
    """Never mutates, always picks the first elite, blends evenly."""

    def random(self):
        return 0.5

    def randrange(self, n):
        return 0


def test_scores_sort_ascending_and_remember_origin():
    scores = Scores.rank([3.0, 1.0, 2.0, 5.0])
    assert list(scores.values) == [1.0, 2.0, 3.0, 5.0]
    assert list(scores.idx) == [1, 2, 0, 3]
    assert scores.top(2) == [0, 3]
    assert scores.bottom(2) == [1, 2]
    assert scores.best_high == 5.0
    assert scores.best_low == 1.0


def test_attackers_breed_from_highest_scores():
    population = [AttackerAlloc([i / 10, 0.0, 0.0, 1.0]) for i in range(5)]
    scores = Scores.rank([0.0, 0.0, 9.0, 0.0, 0.0])
    children = reproduce_attackers(population, scores, elite=1, rng=CalmRng())
    assert children == [population[2]] * 5
    assert all(isinstance(c, AttackerAlloc) for c in children)


def test_defenders_breed_from_lowest_scores():
    population = [DefenderAlloc([i / 10, 0.0, 0.0, 0.0, 1.0]) for i in range(5)]
    scores = Scores.rank([4.0, 3.0, 5.0, 0.5, 2.0])
    children = reproduce_defenders(population, scores, elite=1, rng=CalmRng())
    assert children == [population[3]] * 5
    assert all(isinstance(c, DefenderAlloc) for c in children)


def test_children_stay_between_elite_parents():
    population = [AttackerAlloc([0.2, 0.2, 0.2, 1.0]), AttackerAlloc([0.8, 0.8, 0.8, 1.0])]
    rng = random.Random(3)
    for child in reproduce(population, [0, 1], rng, size=200):
        for x in child[:3]:
            assert 0.2 - 1e-12 <= x <= 0.8 + 1e-12 or x in (0.001, 0.999)
        assert child[3] in (1.0, 0.001, 0.999)


def test_population_size_is_preserved():
    rng = random.Random(8)
    population = [AttackerAlloc.random(rng) for _ in range(30)]
    scores = Scores.rank([rng.random() for _ in range(30)])
    assert len(reproduce_attackers(population, scores, elite=6, rng=rng)) == 30


def test_empty_elite_pool_is_rejected():
    with pytest.raises(ValueError):
        reproduce([AttackerAlloc([0.1, 0.1, 0.1, 1.0])], [])
