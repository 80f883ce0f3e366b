"""Fleet AI: stochastic fleet combat and co-evolution of fleet compositions."""

from importlib import import_module
from typing import Any

__version__ = "0.1.0"
__all__ = [
    "Resources",
    "UnitType",
    "Unit",
    "Fleet",
    "FleetInvariantError",
    "UnitCatalog",
    "DEFAULT_CATALOG",
    "ATTACKER_COMPOSITION",
    "DEFENDER_COMPOSITION",
    "make_fleet_by_alloc",
    "CombatResolver",
    "CombatRules",
    "BattleOutcome",
    "simulate_combat",
    "simulate_fight",
    "AttackerAlloc",
    "DefenderAlloc",
    "blend",
    "FitnessEvaluator",
    "SimulationConfig",
    "run_coevolution",
    "run_showdown",
    "__version__",
]

_EXPORTS = {
    "Resources": ("game_models", "Resources"),
    "UnitType": ("game_models", "UnitType"),
    "Unit": ("game_models", "Unit"),
    "Fleet": ("game_models", "Fleet"),
    "FleetInvariantError": ("game_models", "FleetInvariantError"),
    "UnitCatalog": ("data.catalog", "UnitCatalog"),
    "DEFAULT_CATALOG": ("data.catalog", "DEFAULT_CATALOG"),
    "ATTACKER_COMPOSITION": ("data.catalog", "ATTACKER_COMPOSITION"),
    "DEFENDER_COMPOSITION": ("data.catalog", "DEFENDER_COMPOSITION"),
    "make_fleet_by_alloc": ("fleet_builder", "make_fleet_by_alloc"),
    "CombatResolver": ("simulators.combat", "CombatResolver"),
    "CombatRules": ("simulators.combat", "CombatRules"),
    "BattleOutcome": ("simulators.combat", "BattleOutcome"),
    "simulate_combat": ("simulators.combat", "simulate_combat"),
    "simulate_fight": ("simulators.combat", "simulate_fight"),
    "AttackerAlloc": ("genome", "AttackerAlloc"),
    "DefenderAlloc": ("genome", "DefenderAlloc"),
    "blend": ("genome", "blend"),
    "FitnessEvaluator": ("evaluator", "FitnessEvaluator"),
    "SimulationConfig": ("config", "SimulationConfig"),
    "run_coevolution": ("coevolution_runner", "run_coevolution"),
    "run_showdown": ("coevolution_runner", "run_showdown"),
}


def __getattr__(name: str) -> Any:
    if name in _EXPORTS:
        module_name, attr_name = _EXPORTS[name]
        module = import_module(f".{module_name}", __name__)
        attr = getattr(module, attr_name)
        globals()[name] = attr
        return attr
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> list[str]:
    return sorted(set(list(globals().keys()) + list(__all__)))
