"""Turn a resource budget and an allocation vector into a concrete fleet."""
from __future__ import annotations

import math
from typing import Dict, Optional, Sequence

from .data.catalog import DEFAULT_CATALOG, UnitCatalog
from .game_models import Fleet, FleetInvariantError, Resources, UnitType


def make_fleet_by_alloc(
    resources: Resources,
    composition: Sequence[UnitType],
    allocation: Sequence[float],
    catalog: Optional[UnitCatalog] = None,
) -> Fleet:
    """Spend ``resources`` over ``composition`` following ``allocation``.

    For each position, the fraction ``allocation[i]`` of the units still
    affordable from the *remaining* budget is bought (rounded down). The
    budget argument is consumed in place; pass a copy if the caller needs the
    original afterwards.
    """
    if len(allocation) != len(composition):
        raise FleetInvariantError(
            f"allocation has {len(allocation)} entries, composition has {len(composition)}"
        )
    catalog = catalog or DEFAULT_CATALOG
    fleet = Fleet()
    for unit_type, fraction in zip(composition, allocation):
        unit_cost = catalog.cost(unit_type)
        max_units = resources.max_allocation(unit_cost)
        num_units = int(math.floor(max_units * fraction))
        if num_units > 0:
            resources.allocate_n(unit_cost, num_units)
            fleet.units.extend(catalog.make_units(unit_type, num_units))
    return fleet


def summarize_fleet(fleet: Fleet) -> Dict[str, int]:
    return {str(unit_type): count for unit_type, count in fleet.summary().items()}


def format_fleet_summary(fleet: Fleet) -> str:
    return "\n".join(f"\t{name} = {count}" for name, count in summarize_fleet(fleet).items())


__all__ = ["format_fleet_summary", "make_fleet_by_alloc", "summarize_fleet"]
