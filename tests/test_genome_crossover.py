import random

import pytest

from fleet_ai.game_models import FleetInvariantError
from fleet_ai.genome import (
    AttackerAlloc,
    DefenderAlloc,
    STRONG_MUTATION_VALUE,
    WEAK_MUTATION_VALUE,
    blend,
    random_population,
)


class FixedRng:
    def __init__(self, values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)


def test_identical_parents_breed_true():
    rng = random.Random(4)
    for x in (0.0, 0.1, 0.333, 0.7, 1.0):
        # Rolls inside the mutation bands are excluded by construction.
        child = blend([x], [x], FixedRng([0.5, rng.random(), rng.random()]))
        assert child == [x]


def test_mutation_bands_force_extremes():
    assert blend([0.4], [0.6], FixedRng([0.0005])) == [WEAK_MUTATION_VALUE]
    assert blend([0.4], [0.6], FixedRng([0.9995])) == [STRONG_MUTATION_VALUE]


def test_blend_weight_is_mean_of_two_draws():
    child = blend([1.0], [0.0], FixedRng([0.5, 0.2, 0.6]))
    assert child == [pytest.approx(0.4)]


def test_fields_mutate_independently():
    child = blend([0.2, 0.2], [0.2, 0.2], FixedRng([0.0001, 0.5, 0.1, 0.9]))
    assert child == [WEAK_MUTATION_VALUE, 0.2]


def test_blend_rejects_unequal_parents():
    with pytest.raises(FleetInvariantError):
        blend([0.1, 0.2], [0.3])


def test_genome_length_is_validated_on_construction():
    assert len(AttackerAlloc([0.1, 0.2, 0.3, 1.0])) == 4
    assert len(DefenderAlloc([0.1, 0.2, 0.3, 0.4, 1.0])) == 5
    with pytest.raises(FleetInvariantError):
        AttackerAlloc([0.1, 0.2, 1.0])
    with pytest.raises(FleetInvariantError):
        DefenderAlloc([0.1, 0.2, 0.3, 1.0])


def test_random_genomes_pin_final_slot():
    pop = random_population(DefenderAlloc, 10, random.Random(2))
    assert len(pop) == 10
    for genome in pop:
        assert isinstance(genome, DefenderAlloc)
        assert genome[-1] == 1.0
        assert all(0.0 <= x < 1.0 for x in genome[:-1])
