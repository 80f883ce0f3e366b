"""Static unit statistics: build costs, hull, shields, weapons and rapid fire.

The tables here are the default catalog. Simulations never mutate them; a
:class:`UnitCatalog` wraps them in read-only mappings and is handed to the
fleet builder and combat resolver explicitly.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from ..game_models import Resources, Unit, UnitType

ATTACKER_COMPOSITION: Tuple[UnitType, ...] = (
    UnitType.LIGHT_FIGHTER,
    UnitType.HEAVY_FIGHTER,
    UnitType.CRUISER,
    UnitType.BATTLESHIP,
)

DEFENDER_COMPOSITION: Tuple[UnitType, ...] = (
    UnitType.ROCKET_LAUNCHER,
    UnitType.LIGHT_LASER,
    UnitType.HEAVY_LASER,
    UnitType.ION_CANNON,
    UnitType.GAUSS_CANNON,
)

UNIT_COSTS: Dict[UnitType, Tuple[int, int, int]] = {
    # Offensive
    UnitType.LIGHT_FIGHTER: (3000, 1000, 0),
    UnitType.HEAVY_FIGHTER: (6000, 4000, 0),
    UnitType.CRUISER: (20000, 7000, 2000),
    UnitType.BATTLESHIP: (45000, 15000, 0),
    # Defensive
    UnitType.ROCKET_LAUNCHER: (2000, 0, 0),
    UnitType.LIGHT_LASER: (1500, 500, 0),
    UnitType.HEAVY_LASER: (6000, 2000, 0),
    UnitType.GAUSS_CANNON: (20000, 15000, 2000),
    UnitType.ION_CANNON: (2000, 6000, 0),
}

INITIAL_HULL: Dict[UnitType, int] = {
    UnitType.LIGHT_FIGHTER: 800,
    UnitType.HEAVY_FIGHTER: 2000,
    UnitType.CRUISER: 5400,
    UnitType.BATTLESHIP: 12000,
    UnitType.ROCKET_LAUNCHER: 400,
    UnitType.LIGHT_LASER: 400,
    UnitType.HEAVY_LASER: 1600,
    UnitType.GAUSS_CANNON: 7000,
    UnitType.ION_CANNON: 1600,
}

SHIELDS: Dict[UnitType, int] = {
    UnitType.LIGHT_FIGHTER: 20,
    UnitType.HEAVY_FIGHTER: 50,
    UnitType.CRUISER: 100,
    UnitType.BATTLESHIP: 400,
    UnitType.ROCKET_LAUNCHER: 40,
    UnitType.LIGHT_LASER: 50,
    UnitType.HEAVY_LASER: 200,
    UnitType.GAUSS_CANNON: 400,
    UnitType.ION_CANNON: 1000,
}

WEAPONRY: Dict[UnitType, int] = {
    UnitType.LIGHT_FIGHTER: 100,
    UnitType.HEAVY_FIGHTER: 300,
    UnitType.CRUISER: 800,
    UnitType.BATTLESHIP: 2000,
    UnitType.ROCKET_LAUNCHER: 160,
    UnitType.LIGHT_LASER: 200,
    UnitType.HEAVY_LASER: 500,
    UnitType.GAUSS_CANNON: 2200,
    UnitType.ION_CANNON: 300,
}

# Probability that the shooter picks yet another target in the same round.
RAPID_FIRE: Dict[UnitType, Dict[UnitType, float]] = {
    UnitType.CRUISER: {
        UnitType.LIGHT_FIGHTER: 5 / 6,
        UnitType.ROCKET_LAUNCHER: 0.9,
    },
}


@dataclass(frozen=True)
class UnitStats:
    cost: Resources
    hull: int
    shield: int
    weapon: int


def _default_stats() -> Dict[UnitType, UnitStats]:
    return {
        unit_type: UnitStats(
            cost=Resources(*UNIT_COSTS[unit_type]),
            hull=INITIAL_HULL[unit_type],
            shield=SHIELDS[unit_type],
            weapon=WEAPONRY[unit_type],
        )
        for unit_type in UnitType
    }


def _freeze_rapid_fire(
    table: Mapping[UnitType, Mapping[UnitType, float]]
) -> Mapping[UnitType, Mapping[UnitType, float]]:
    return MappingProxyType({k: MappingProxyType(dict(v)) for k, v in table.items()})


@dataclass(frozen=True)
class UnitCatalog:
    """Read-only lookup of per-type stats and the sparse rapid-fire table."""

    stats: Mapping[UnitType, UnitStats] = field(
        default_factory=lambda: MappingProxyType(_default_stats())
    )
    rapid_fire_table: Mapping[UnitType, Mapping[UnitType, float]] = field(
        default_factory=lambda: _freeze_rapid_fire(RAPID_FIRE)
    )

    def cost(self, unit_type: UnitType) -> Resources:
        # Resources is mutable; hand out a copy so the table stays pristine.
        return self.stats[unit_type].cost.copy()

    def hull(self, unit_type: UnitType) -> int:
        return self.stats[unit_type].hull

    def shield(self, unit_type: UnitType) -> int:
        return self.stats[unit_type].shield

    def weapon(self, unit_type: UnitType) -> int:
        return self.stats[unit_type].weapon

    def rapid_fire(self, shooter: UnitType, target: UnitType) -> float:
        return self.rapid_fire_table.get(shooter, {}).get(target, 0.0)

    def make_unit(self, unit_type: UnitType) -> Unit:
        s = self.stats[unit_type]
        return Unit(type=unit_type, hull=s.hull, shield=s.shield, weapon=s.weapon)

    def make_units(self, unit_type: UnitType, count: int) -> list[Unit]:
        return [self.make_unit(unit_type) for _ in range(count)]

    def __reduce__(self):
        # MappingProxyType does not pickle; process workers receive plain dicts.
        return (
            _rebuild_catalog,
            (dict(self.stats), {k: dict(v) for k, v in self.rapid_fire_table.items()}),
        )

    def overrides_against(self, base: "UnitCatalog") -> Dict[str, Any]:
        """The ``catalog`` config section that turns ``base`` into this catalog."""
        units: Dict[str, Dict[str, Any]] = {}
        for unit_type, s in self.stats.items():
            b = base.stats.get(unit_type)
            changed: Dict[str, Any] = {}
            if b is None or s.cost != b.cost:
                changed["cost"] = s.cost.as_dict()
            for name in ("hull", "shield", "weapon"):
                if b is None or getattr(s, name) != getattr(b, name):
                    changed[name] = getattr(s, name)
            if changed:
                units[str(unit_type)] = changed
        rapid: Dict[str, Dict[str, float]] = {}
        for shooter, row in self.rapid_fire_table.items():
            for target, p in row.items():
                if base.rapid_fire(shooter, target) != p:
                    rapid.setdefault(str(shooter), {})[str(target)] = p
        out: Dict[str, Any] = {}
        if units:
            out["units"] = units
        if rapid:
            out["rapid_fire"] = rapid
        return out

    def with_overrides(self, overrides: Optional[Mapping[str, Any]]) -> "UnitCatalog":
        """Return a new catalog with per-unit fields replaced.

        ``overrides`` is shaped like the ``catalog`` config section::

            units:
              Cruiser: {weapon: 900, cost: [20000, 7000, 2000]}
            rapid_fire:
              Cruiser: {LightFighter: 0.8}
        """
        if not overrides:
            return self
        stats = dict(self.stats)
        for name, block in (overrides.get("units") or {}).items():
            unit_type = UnitType.parse(name)
            cur = stats[unit_type]
            block = dict(block or {})
            cost = cur.cost
            if "cost" in block:
                raw = block["cost"]
                if isinstance(raw, Mapping):
                    cost = Resources(
                        int(raw.get("metal", 0)),
                        int(raw.get("crystal", 0)),
                        int(raw.get("deuterium", 0)),
                    )
                else:
                    cost = Resources(*(int(v) for v in raw))
            stats[unit_type] = UnitStats(
                cost=cost,
                hull=int(block.get("hull", cur.hull)),
                shield=int(block.get("shield", cur.shield)),
                weapon=int(block.get("weapon", cur.weapon)),
            )
        rapid: Dict[UnitType, Dict[UnitType, float]] = {
            k: dict(v) for k, v in self.rapid_fire_table.items()
        }
        for shooter, row in (overrides.get("rapid_fire") or {}).items():
            dest = rapid.setdefault(UnitType.parse(shooter), {})
            for target, prob in (row or {}).items():
                p = float(prob)
                if not 0.0 <= p < 1.0:
                    raise ValueError(f"rapid fire probability must be in [0, 1): {shooter}->{target}={prob}")
                dest[UnitType.parse(target)] = p
        return UnitCatalog(stats=MappingProxyType(stats), rapid_fire_table=_freeze_rapid_fire(rapid))


def _rebuild_catalog(
    stats: Dict[UnitType, UnitStats], rapid: Dict[UnitType, Dict[UnitType, float]]
) -> UnitCatalog:
    return UnitCatalog(stats=MappingProxyType(stats), rapid_fire_table=_freeze_rapid_fire(rapid))


DEFAULT_CATALOG = UnitCatalog()


__all__ = [
    "ATTACKER_COMPOSITION",
    "DEFAULT_CATALOG",
    "DEFENDER_COMPOSITION",
    "INITIAL_HULL",
    "RAPID_FIRE",
    "SHIELDS",
    "UNIT_COSTS",
    "UnitCatalog",
    "UnitStats",
    "WEAPONRY",
]
