import random

import pytest

from fleet_ai.data.catalog import DEFAULT_CATALOG, ATTACKER_COMPOSITION, DEFENDER_COMPOSITION
from fleet_ai.fleet_builder import make_fleet_by_alloc
from fleet_ai.game_models import Fleet, Resources, UnitType
from fleet_ai.simulators.combat import (
    BattleOutcome,
    CombatResolver,
    CombatRules,
    RapidFireReference,
    ZeroLossPolicy,
    fitness_ratio,
    simulate_combat,
)


class ScriptedRng:
    """Replays fixed rolls; fails loudly on an unexpected random() draw."""

    def __init__(self, rolls=(), picks=()):
        self.rolls = list(rolls)
        self.picks = list(picks)

    def random(self):
        assert self.rolls, "unexpected random() draw"
        return self.rolls.pop(0)

    def randrange(self, n):
        return self.picks.pop(0) if self.picks else 0


def fleet_of(*types, catalog=DEFAULT_CATALOG):
    return Fleet(units=[catalog.make_unit(t) for t in types])


def shoot(shooter_type, target_type, weapon=None, rolls=()):
    attacker = fleet_of(shooter_type)
    defender = fleet_of(target_type)
    if weapon is not None:
        attacker.units[0].weapon = weapon
    attacker.units[0].targets = [0]
    CombatResolver(attacker, defender, rng=ScriptedRng(rolls)).attack_targets(attacker, defender)
    return defender.units[0]


def test_shot_below_one_percent_of_shield_is_absorbed_entirely():
    target = shoot(UnitType.LIGHT_FIGHTER, UnitType.ION_CANNON, weapon=9)
    assert target.shield == 1000
    assert target.hull == 1600


def test_shot_weaker_than_shield_only_depletes_shield():
    target = shoot(UnitType.LIGHT_FIGHTER, UnitType.ION_CANNON, weapon=10)
    assert target.shield == 990
    assert target.hull == 1600


def test_penetrating_hit_above_threshold_never_rolls_for_explosion():
    target = shoot(UnitType.BATTLESHIP, UnitType.GAUSS_CANNON)
    assert target.hull == 7000 - (2000 - 400)
    assert target.shield == 0


def test_badly_damaged_target_survives_a_failed_explosion_roll():
    # 1600 - (800 - 200) leaves 62.5% hull: explosion chance 37.5%.
    target = shoot(UnitType.CRUISER, UnitType.HEAVY_LASER, rolls=[0.9])
    assert target.hull == 1000
    assert target.shield == 0


def test_badly_damaged_target_explodes_on_a_successful_roll():
    target = shoot(UnitType.CRUISER, UnitType.HEAVY_LASER, rolls=[0.1])
    assert target.hull == 0


def test_hull_is_clamped_at_zero():
    target = shoot(UnitType.BATTLESHIP, UnitType.ROCKET_LAUNCHER)
    assert target.hull == 0
    assert target.shield == 0


def test_wrecked_target_is_not_shot_again():
    attacker = fleet_of(UnitType.LIGHT_FIGHTER)
    defender = fleet_of(UnitType.HEAVY_LASER)
    defender.units[0].hull = 0
    attacker.units[0].targets = [0]
    CombatResolver(attacker, defender, rng=ScriptedRng()).attack_targets(attacker, defender)
    assert defender.units[0].shield == 200


def test_rapid_fire_checks_last_unit_of_opposing_fleet():
    cruiser = fleet_of(UnitType.CRUISER)
    # Last unit is a LightLaser: no rapid fire, so no roll at all.
    resolver = CombatResolver(cruiser, Fleet(), rng=ScriptedRng())
    resolver.pick_targets(cruiser, fleet_of(UnitType.ROCKET_LAUNCHER, UnitType.LIGHT_LASER))
    assert len(cruiser.units[0].targets) == 1

    resolver.rng = ScriptedRng(rolls=[0.5, 0.89, 0.95], picks=[1, 0, 1])
    resolver.pick_targets(cruiser, fleet_of(UnitType.LIGHT_LASER, UnitType.ROCKET_LAUNCHER))
    assert cruiser.units[0].targets == [1, 0, 1]


def test_rapid_fire_can_follow_the_chosen_target():
    cruiser = fleet_of(UnitType.CRUISER)
    rules = CombatRules(rapid_fire_reference=RapidFireReference.CHOSEN)
    resolver = CombatResolver(cruiser, Fleet(), rules=rules, rng=ScriptedRng(rolls=[0.5], picks=[0, 1]))
    resolver.pick_targets(cruiser, fleet_of(UnitType.ROCKET_LAUNCHER, UnitType.LIGHT_LASER))
    assert cruiser.units[0].targets == [0, 1]


def test_no_targets_against_an_empty_fleet():
    fighters = fleet_of(UnitType.LIGHT_FIGHTER, UnitType.LIGHT_FIGHTER)
    CombatResolver(fighters, Fleet(), rng=ScriptedRng()).pick_targets(fighters, Fleet())
    assert all(u.targets == [] for u in fighters.units)


def test_cleanup_books_losses_and_recharges_shields():
    fleet = fleet_of(UnitType.LIGHT_FIGHTER, UnitType.CRUISER, UnitType.BATTLESHIP)
    fleet.units[0].hull = 0
    fleet.units[1].shield = 0
    fleet.units[1].hull = 10
    removed = CombatResolver(fleet, Fleet()).remove_dead_units(fleet)
    assert removed == 1
    assert [u.type for u in fleet.units] == [UnitType.CRUISER, UnitType.BATTLESHIP]
    assert fleet.units[0].shield == 100
    assert fleet.units[0].hull == 10
    assert fleet.lost == Resources(3000, 1000, 0)


def test_survivors_are_healthy_after_every_round():
    attacker = make_fleet_by_alloc(Resources(600000, 300000, 60000), ATTACKER_COMPOSITION, [0.4, 0.4, 0.5, 1.0])
    defender = make_fleet_by_alloc(Resources(300000, 150000, 30000), DEFENDER_COMPOSITION, [0.3, 0.3, 0.3, 0.3, 1.0])
    resolver = CombatResolver(attacker, defender, rng=random.Random(5))
    for _ in range(6):
        resolver.play_round()
        for fleet in (attacker, defender):
            for unit in fleet.units:
                assert unit.hull > 0
                assert unit.shield == DEFAULT_CATALOG.shield(unit.type)


def test_overwhelming_attacker_wins_fitness_battle_in_one_round():
    attacker = fleet_of(*[UnitType.BATTLESHIP] * 10)
    defender = fleet_of(UnitType.ROCKET_LAUNCHER)
    resolver = CombatResolver(attacker, defender, rng=random.Random(1))
    score = resolver.fight()
    assert resolver.rounds_completed == 1
    assert defender.is_empty()
    assert len(attacker) == 10
    # The attacker lost nothing, so the ratio is capped.
    assert score == resolver.rules.fitness_cap


def _lethal_catalog():
    return DEFAULT_CATALOG.with_overrides(
        {"units": {"LightFighter": {"weapon": 100000}, "RocketLauncher": {"weapon": 100000}}}
    )


def test_simultaneous_wipeout_is_a_draw_in_that_round():
    catalog = _lethal_catalog()
    res = simulate_combat(
        fleet_of(UnitType.LIGHT_FIGHTER, catalog=catalog),
        fleet_of(UnitType.ROCKET_LAUNCHER, catalog=catalog),
        catalog=catalog,
        rng=random.Random(0),
    )
    assert res.outcome is BattleOutcome.DRAW_BOTH_ELIMINATED
    assert res.round_index == 0
    assert res.tag == "DRAW-BOTH-LOSE(0)"
    assert res.attacker.lost == Resources(3000, 1000, 0)
    assert res.defender.lost == Resources(2000, 0, 0)


def test_win_and_loss_report_round_index():
    catalog = _lethal_catalog()
    win = simulate_combat(
        fleet_of(UnitType.LIGHT_FIGHTER, catalog=catalog),
        fleet_of(UnitType.LIGHT_LASER, catalog=catalog),
        catalog=catalog,
        rng=random.Random(0),
    )
    assert win.tag == "WIN(0)"

    loss = simulate_combat(
        fleet_of(UnitType.HEAVY_FIGHTER, catalog=catalog),
        fleet_of(UnitType.ROCKET_LAUNCHER, catalog=catalog),
        catalog=catalog,
        rng=random.Random(0),
    )
    # The heavy fighter leaves the launcher at 35% hull, which may or may not
    # explode; either way the attacker is gone after round 0.
    assert loss.outcome in (BattleOutcome.LOSS, BattleOutcome.DRAW_BOTH_ELIMINATED)
    assert loss.round_index == 0


def test_stalemate_times_out_after_max_rounds():
    catalog = DEFAULT_CATALOG.with_overrides(
        {"units": {"LightFighter": {"weapon": 0}, "LightLaser": {"weapon": 0}}}
    )
    res = simulate_combat(
        fleet_of(UnitType.LIGHT_FIGHTER, catalog=catalog),
        fleet_of(UnitType.LIGHT_LASER, catalog=catalog),
        catalog=catalog,
        rng=random.Random(0),
    )
    assert res.outcome is BattleOutcome.DRAW_TIMEOUT
    assert res.tag == "DRAW-TIMEOUT"
    assert res.round_index is None
    assert res.rounds_completed == 6


def test_fitness_ratio_policies():
    assert fitness_ratio(1000, 3000) == pytest.approx(3.0)
    assert fitness_ratio(0, 0) == 0.0
    assert fitness_ratio(0, 500) == CombatRules().fitness_cap
    assert fitness_ratio(0, 10**9, CombatRules(fitness_cap=50.0)) == 50.0
    # The cap only stands in for a zero divisor.
    assert fitness_ratio(1, 10**9, CombatRules(fitness_cap=50.0)) == pytest.approx(10**9)

    skip = CombatRules(zero_loss_policy=ZeroLossPolicy.SKIP)
    assert fitness_ratio(0, 500, skip) is None
    assert fitness_ratio(10, 10**9, skip) == pytest.approx(10**8)
