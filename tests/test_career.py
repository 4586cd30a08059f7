import itertools
import random

import pytest

from derby_career.career import (
    CareerScheduler,
    CareerStateError,
    GamePhase,
    ScheduleError,
    achievements,
    build_schedule,
    legacy_bonuses_for,
)
from derby_career.config import DEFAULT_RACE_SCHEDULE, CareerConfig
from derby_career.engine.data_models import Career, InvalidRaceConfiguration, LegacyBonuses, RaceConfig, RaceType, Surface
from run_career import play_career


def _names():
    counter = itertools.count(1)
    return lambda: f"Rival {next(counter)}"


def _scheduler(seed: int = 1, **config) -> CareerScheduler:
    return CareerScheduler(CareerConfig(**config), rng=random.Random(seed), name_supplier=_names())


def _train_until_race(scheduler: CareerScheduler) -> None:
    while scheduler.phase is GamePhase.TRAINING:
        assert scheduler.perform_training("rest").success


def test_start_career_builds_player_and_roster():
    scheduler = _scheduler()
    horse = scheduler.start_career("  Autumn Comet  ")

    assert horse.name == "Autumn Comet"
    assert horse.horse_id.startswith("horse_") and len(horse.horse_id) == 15
    assert horse.condition.energy == 100
    assert horse.player.bond == 0
    assert scheduler.turn == 1
    assert scheduler.phase is GamePhase.TRAINING
    assert len(scheduler.roster) == 24


def test_race_turn_enters_pre_race_and_blocks_training():
    scheduler = _scheduler()
    scheduler.start_career("Autumn Comet")

    for _ in range(3):
        action = scheduler.perform_training("rest")
    assert action.race_ready
    assert scheduler.turn == 4
    assert scheduler.phase is GamePhase.PRE_RACE

    refused = scheduler.perform_training("speed")
    assert not refused.success
    assert scheduler.turn == 4


def test_rivals_train_every_player_turn():
    scheduler = _scheduler()
    scheduler.start_career("Autumn Comet")
    scheduler.perform_training("speed")
    scheduler.perform_training("stamina")

    for rival in scheduler.roster:
        assert set(rival.rival.history) == {1, 2}


def test_stat_training_counts_toward_total():
    scheduler = _scheduler()
    scheduler.start_career("Autumn Comet")
    scheduler.perform_training("speed")
    scheduler.perform_training("media")

    assert scheduler.player.player.career.total_training == 1


def test_insufficient_energy_does_not_use_the_turn():
    scheduler = _scheduler()
    horse = scheduler.start_career("Autumn Comet")
    horse.condition.energy = 5

    action = scheduler.perform_training("power")

    assert not action.success
    assert "energy" in action.message
    assert scheduler.turn == 1
    assert horse.condition.energy == 5


def test_run_race_resolves_field_and_advances():
    scheduler = _scheduler(seed=3)
    horse = scheduler.start_career("Autumn Comet")
    _train_until_race(scheduler)

    result = scheduler.run_race()

    assert result.field_size == 8
    assert sorted(e.rank for e in result.entries) == list(range(1, 9))
    assert result.entry_for(horse.horse_id) is not None
    assert horse.player.career.races_run == 1
    assert scheduler.turn == 5
    assert scheduler.phase is GamePhase.RACE_RESULTS
    assert scheduler.schedule[0].completed

    entered = [e.horse_id for e in result.entries if e.horse_id != horse.horse_id]
    for horse_id in entered:
        assert scheduler.roster.get(horse_id).rival.race_results[-1]["turn"] == 4

    assert scheduler.continue_career().success
    assert scheduler.phase is GamePhase.TRAINING


def test_completed_race_returns_stored_result():
    scheduler = _scheduler(seed=4)
    horse = scheduler.start_career("Autumn Comet")
    _train_until_race(scheduler)
    first = scheduler.run_race()
    energy = horse.condition.energy

    again = scheduler.run_race(scheduler.schedule[0].config)

    assert again is first
    assert horse.player.career.races_run == 1
    assert horse.condition.energy == energy


def test_invalid_race_is_rejected_before_mutation():
    scheduler = _scheduler()
    horse = scheduler.start_career("Autumn Comet")
    _train_until_race(scheduler)
    before = horse.stats.as_dict()

    with pytest.raises(InvalidRaceConfiguration):
        scheduler.run_race({"race_type": "INVALID", "surface": "DIRT", "turn": 4})
    with pytest.raises(InvalidRaceConfiguration):
        scheduler.run_race(strategy="SIDEWAYS")

    assert scheduler.phase is GamePhase.PRE_RACE
    assert scheduler.turn == 4
    assert horse.stats.as_dict() == before
    assert not scheduler.schedule[0].completed


def test_run_race_outside_race_turn_raises():
    scheduler = _scheduler()
    scheduler.start_career("Autumn Comet")

    with pytest.raises(CareerStateError):
        scheduler.run_race()


def test_full_career_reaches_completion():
    scheduler = _scheduler(seed=11)

    summary = play_career(scheduler, name="Long Haul")

    assert summary.horse_name == "Long Haul"
    assert summary.races_run == 4
    assert 0 <= summary.races_won <= 4
    assert all(race.completed for race in scheduler.schedule)
    assert scheduler.history.careers_completed == 1
    assert scheduler.player is None
    assert summary.legacy_bonuses.energy == min(10, summary.races_won * 2)
    assert summary.legacy_bonuses.speed == int(summary.final_stats["speed"] * 0.1)

    with pytest.raises(CareerStateError):
        scheduler.complete_career()


def test_complete_career_requires_final_turn():
    scheduler = _scheduler()
    scheduler.start_career("Autumn Comet")

    with pytest.raises(CareerStateError):
        scheduler.complete_career()


def test_legacy_bonuses_raise_starting_stats():
    plain = _scheduler(seed=21).start_career("Heir")
    boosted = _scheduler(seed=21).start_career("Heir", legacy_bonuses=LegacyBonuses(speed=5, stamina=4, power=3))

    assert boosted.stats.speed == plain.stats.speed + 5
    assert boosted.stats.stamina == plain.stats.stamina + 4
    assert boosted.stats.power == plain.stats.power + 3


def test_legacy_energy_bonus_boosts_rest():
    scheduler = _scheduler(seed=22)
    horse = scheduler.start_career("Heir", legacy_bonuses=LegacyBonuses(energy=6))
    horse.condition.energy = 20

    action = scheduler.perform_training("rest")

    assert action.outcome.energy_change == 36


def test_legacy_bonus_formula():
    horse = _scheduler().start_career("Autumn Comet")
    horse.stats.speed, horse.stats.stamina, horse.stats.power = 85, 49, 100
    horse.player.career = Career(races_won=7, races_run=9)

    bonuses = legacy_bonuses_for(horse)

    assert bonuses.as_dict() == {"speed": 8, "stamina": 4, "power": 10, "energy": 10}


def test_achievements():
    horse = _scheduler().start_career("Autumn Comet")
    horse.stats.speed, horse.stats.stamina, horse.stats.power = 92, 85, 81
    horse.player.career = Career(races_won=4, races_run=4, total_training=16)
    horse.player.bond = 95

    assert achievements(horse) == [
        "Elite Athlete",
        "Triple Threat",
        "Undefeated",
        "Champion",
        "Dedicated Trainer",
        "Best Friends",
    ]


def test_schedule_rules():
    build_schedule(DEFAULT_RACE_SCHEDULE, 24)

    with pytest.raises(ScheduleError):
        build_schedule(DEFAULT_RACE_SCHEDULE[:3], 24)

    duplicate = [dict(r) for r in DEFAULT_RACE_SCHEDULE]
    duplicate[1]["turn"] = duplicate[0]["turn"]
    with pytest.raises(ScheduleError):
        build_schedule(duplicate, 24)

    with pytest.raises(ScheduleError):
        build_schedule(list(reversed(DEFAULT_RACE_SCHEDULE)), 24)

    with pytest.raises(ScheduleError):
        build_schedule(DEFAULT_RACE_SCHEDULE, 20)

    same_type = [RaceConfig(RaceType.MILE, Surface.DIRT, turn=t) for t in (4, 9, 15, 24)]
    with pytest.raises(ScheduleError):
        build_schedule(same_type, 24)


def test_game_status_shape():
    scheduler = _scheduler()
    assert scheduler.get_game_status()["phase"] is None

    scheduler.start_career("Autumn Comet")
    status = scheduler.get_game_status()

    assert status["phase"] == "training"
    assert status["turn"] == 1
    assert status["next_race"]["turn"] == 4
    assert status["next_race"]["turns_until"] == 3
    assert [o["type"] for o in status["training_options"]] == ["speed", "stamina", "power", "rest", "media"]
    assert any(tip["type"] == "media" for tip in status["recommendations"])
    assert status["progress"]["turns_remaining"] == 24
    assert status["can_continue"]


def test_verbose_career_prints_progress(capsys):
    scheduler = _scheduler(verbose=True)
    scheduler.start_career("Autumn Comet")
    scheduler.perform_training("rest")

    out = capsys.readouterr().out
    assert "Career started for Autumn Comet" in out
    assert "Turn 1:" in out


def test_passed_race_must_match_scheduled_race():
    scheduler = _scheduler(seed=6)
    horse = scheduler.start_career("Autumn Comet")
    _train_until_race(scheduler)

    with pytest.raises(CareerStateError):
        scheduler.run_race({"race_type": "LONG", "surface": "TURF", "prize_pool": 999999})

    assert scheduler.turn == 4
    assert scheduler.phase is GamePhase.PRE_RACE
    assert not scheduler.schedule[0].completed
    assert horse.player.career.races_run == 0


def test_scheduled_prize_pool_is_what_runs():
    scheduler = _scheduler(seed=7)
    scheduler.start_career("Autumn Comet")
    _train_until_race(scheduler)

    result = scheduler.run_race({"race_type": "SPRINT", "surface": "DIRT", "turn": 4, "prize_pool": 999999})

    assert result.race == scheduler.schedule[0].config
    assert result.winner.prize == 5000
    assert scheduler.schedule[0].results is result


def test_training_options_unavailable_outside_training():
    scheduler = _scheduler()
    scheduler.start_career("Autumn Comet")
    _train_until_race(scheduler)

    options = scheduler.get_game_status()["training_options"]
    assert options and not any(o["available"] for o in options)

    scheduler.turn = scheduler.config.max_turns + 1
    scheduler.sync_phase()
    status = scheduler.get_game_status()

    assert status["phase"] == "career_complete"
    assert not any(o["available"] for o in status["training_options"])
    assert all("career_complete" in o["reason"] for o in status["training_options"])
