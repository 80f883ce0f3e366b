from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List

# Weights used to fold a resource bundle into one comparable value.
METAL_WEIGHT = 1.0
CRYSTAL_WEIGHT = 1.505520505
DEUTERIUM_WEIGHT = 2.666201117


class FleetInvariantError(RuntimeError):
    """An internal contract was broken (over-allocation, bad genome length, ...).

    This signals a programming defect rather than bad input. Callers are not
    expected to catch it; the current simulation is abandoned.
    """


class UnitType(str, Enum):
    # Attacker side
    LIGHT_FIGHTER = "LightFighter"
    HEAVY_FIGHTER = "HeavyFighter"
    CRUISER = "Cruiser"
    BATTLESHIP = "Battleship"
    # Defender side
    ROCKET_LAUNCHER = "RocketLauncher"
    LIGHT_LASER = "LightLaser"
    HEAVY_LASER = "HeavyLaser"
    GAUSS_CANNON = "GaussCannon"
    ION_CANNON = "IonCannon"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, name: str) -> "UnitType":
        """Accept either the catalog name (``"Cruiser"``) or the member name (``"CRUISER"``)."""
        try:
            return cls(name)
        except ValueError:
            pass
        try:
            return cls[name.upper()]
        except KeyError as exc:
            available = ", ".join(t.value for t in cls)
            raise KeyError(f"Unknown unit type '{name}'. Available: {available}") from exc


@dataclass
class Resources:
    metal: int = 0
    crystal: int = 0
    deuterium: int = 0

    def copy(self) -> "Resources":
        return Resources(self.metal, self.crystal, self.deuterium)

    def add(self, other: "Resources") -> None:
        self.metal += other.metal
        self.crystal += other.crystal
        self.deuterium += other.deuterium

    def __add__(self, other: "Resources") -> "Resources":
        return Resources(
            self.metal + other.metal,
            self.crystal + other.crystal,
            self.deuterium + other.deuterium,
        )

    def total(self) -> int:
        """Weighted scalar value of the bundle, rounded down."""
        return int(
            METAL_WEIGHT * self.metal
            + CRYSTAL_WEIGHT * self.crystal
            + DEUTERIUM_WEIGHT * self.deuterium
        )

    def allocate_n(self, cost: "Resources", n: int) -> None:
        """Spend ``n`` times ``cost`` from this bundle.

        Raises :class:`FleetInvariantError` if any field would go negative; the
        bundle is left untouched in that case.
        """
        if n < 0:
            raise FleetInvariantError(f"cannot allocate a negative count ({n})")
        metal = self.metal - n * cost.metal
        crystal = self.crystal - n * cost.crystal
        deuterium = self.deuterium - n * cost.deuterium
        if metal < 0 or crystal < 0 or deuterium < 0:
            raise FleetInvariantError(
                f"over allocated on resources: {n} x {cost} from {self}"
            )
        self.metal, self.crystal, self.deuterium = metal, crystal, deuterium

    def max_allocation(self, cost: "Resources") -> int:
        """Largest ``n`` such that ``allocate_n(cost, n)`` stays non-negative.

        A zero field in ``cost`` does not constrain the result.
        """
        limits = []
        for have, need in (
            (self.metal, cost.metal),
            (self.crystal, cost.crystal),
            (self.deuterium, cost.deuterium),
        ):
            if need < 0:
                raise FleetInvariantError(f"negative unit cost {cost}")
            if need > 0:
                limits.append(max(0, have // need))
        if not limits:
            raise FleetInvariantError("unit cost must be positive in at least one resource")
        return min(limits)

    def as_dict(self) -> Dict[str, int]:
        return {"metal": self.metal, "crystal": self.crystal, "deuterium": self.deuterium}


@dataclass
class Unit:
    """Runtime state of a single ship or defence structure."""

    type: UnitType
    hull: int
    shield: int
    weapon: int
    targets: List[int] = field(default_factory=list)

    def alive(self) -> bool:
        return self.hull > 0


@dataclass
class Fleet:
    units: List[Unit] = field(default_factory=list)
    lost: Resources = field(default_factory=Resources)

    def is_empty(self) -> bool:
        return not self.units

    def __len__(self) -> int:
        return len(self.units)

    def summary(self) -> Dict[UnitType, int]:
        """Unit count per type, in first-seen order."""
        return dict(Counter(u.type for u in self.units))


__all__ = [
    "CRYSTAL_WEIGHT",
    "DEUTERIUM_WEIGHT",
    "METAL_WEIGHT",
    "Fleet",
    "FleetInvariantError",
    "Resources",
    "Unit",
    "UnitType",
]
