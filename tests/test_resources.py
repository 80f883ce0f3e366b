import random

import pytest

from fleet_ai.game_models import FleetInvariantError, Resources


def test_total_uses_fixed_weights_and_rounds_down():
    assert Resources(1000, 0, 0).total() == 1000
    assert Resources(0, 1000, 0).total() == 1505
    assert Resources(0, 0, 1000).total() == 2666
    assert Resources(1, 1, 1).total() == 5


def test_add_combines_every_field():
    lost = Resources()
    lost.add(Resources(3000, 1000, 0))
    lost.add(Resources(20000, 7000, 2000))
    assert lost == Resources(23000, 8000, 2000)
    assert Resources(1, 2, 3) + Resources(4, 5, 6) == Resources(5, 7, 9)


def test_allocate_n_deducts_cost():
    budget = Resources(10000, 5000, 1000)
    budget.allocate_n(Resources(3000, 1000, 0), 3)
    assert budget == Resources(1000, 2000, 1000)


def test_over_allocation_is_a_defect_and_leaves_budget_untouched():
    budget = Resources(5000, 5000, 0)
    with pytest.raises(FleetInvariantError):
        budget.allocate_n(Resources(2000, 0, 1), 1)
    assert budget == Resources(5000, 5000, 0)


def test_max_allocation_ignores_zero_cost_fields():
    assert Resources(10000, 0, 0).max_allocation(Resources(2000, 0, 0)) == 5
    assert Resources(10000, 3000, 0).max_allocation(Resources(1500, 500, 0)) == 6


def test_max_allocation_rejects_free_units():
    with pytest.raises(FleetInvariantError):
        Resources(1, 1, 1).max_allocation(Resources(0, 0, 0))


def test_max_allocation_is_tight():
    rng = random.Random(11)
    for _ in range(300):
        budget = Resources(rng.randint(0, 10**6), rng.randint(0, 10**6), rng.randint(0, 10**6))
        cost = Resources(rng.randint(0, 5000), rng.randint(0, 5000), rng.randint(1, 5000))
        n = budget.max_allocation(cost)

        spent = budget.copy()
        spent.allocate_n(cost, n)
        assert min(spent.metal, spent.crystal, spent.deuterium) >= 0

        with pytest.raises(FleetInvariantError):
            budget.copy().allocate_n(cost, n + 1)
