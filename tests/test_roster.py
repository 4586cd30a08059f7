import itertools
import random
from statistics import mean

import pytest

from derby_career.config import CareerConfig
from derby_career.engine.data_models import (
    GrowthGrade,
    Horse,
    PlayerProfile,
    RaceConfig,
    RaceType,
    RivalProfile,
    ScheduledRace,
    StatBlock,
    Strategy,
    Surface,
)
from derby_career.engine.horse import total_power
from derby_career.engine.roster import (
    DEFAULT_POWER_OFFSETS,
    RivalRoster,
    apply_rival_training,
    preferred_stat,
    racing_readiness,
    select_training,
)


class _FixedRng:
    def __init__(self, value: float):
        self.value = value

    def random(self) -> float:
        return self.value


def _names():
    counter = itertools.count(1)
    return lambda: f"Rival {next(counter)}"


def _player(total: int) -> Horse:
    each = total // 3
    return Horse(
        horse_id="horse_player",
        name="Player One",
        stats=StatBlock(speed=each, stamina=each, power=total - 2 * each),
        player=PlayerProfile(),
    )


def _roster(seed: int = 1, schedule=None, verbose=False) -> RivalRoster:
    return RivalRoster(CareerConfig(verbose=verbose), schedule, random.Random(seed), _names())


def _rival(pattern="balanced", strategy=Strategy.MID, energy=100, **growth) -> Horse:
    grades = {"speed": GrowthGrade.B, "stamina": GrowthGrade.B, "power": GrowthGrade.B}
    grades.update(growth)
    rival = Horse(
        horse_id="nph_001",
        name="Test Rival",
        stats=StatBlock(speed=50, stamina=50, power=50),
        growth_rates=grades,
        strategy=strategy,
        rival=RivalProfile(training_pattern=pattern),
    )
    rival.condition.energy = energy
    return rival


def _race(race_type: RaceType, turn: int) -> ScheduledRace:
    return ScheduledRace(RaceConfig(race_type, Surface.DIRT, turn=turn))


def test_generate_roster_size_and_ids():
    rivals = _roster().generate_roster(_player(150))

    assert len(rivals) == 24
    assert [r.horse_id for r in rivals][:3] == ["nph_001", "nph_002", "nph_003"]
    assert rivals[-1].horse_id == "nph_024"
    assert len({r.name for r in rivals}) == 24


def test_rival_power_tracks_target():
    rivals = _roster(seed=4).generate_roster(_player(150))
    for index, rival in enumerate(rivals):
        target = max(50, 150 + DEFAULT_POWER_OFFSETS[index % len(DEFAULT_POWER_OFFSETS)])
        assert 0 <= target - total_power(rival) <= 2


@pytest.mark.parametrize("seed", [1, 2, 3, 4, 5])
def test_roster_has_spread(seed):
    rivals = _roster(seed).generate_roster(_player(150), size=20)
    powers = [total_power(r) for r in rivals]

    assert max(powers) - min(powers) >= 10


def test_roster_scales_with_player_strength():
    strong = _roster(seed=7).generate_roster(_player(180))
    weak = _roster(seed=7).generate_roster(_player(90))

    assert mean(total_power(r) for r in strong) > mean(total_power(r) for r in weak)


def test_duplicate_names_are_made_unique():
    roster = RivalRoster(CareerConfig(), None, random.Random(2), lambda: "Same Name")
    rivals = roster.generate_roster(_player(120), size=5)

    assert len({r.name.lower() for r in rivals}) == 5


def test_rival_profiles_are_consistent_with_strategy():
    for rival in _roster(seed=9).generate_roster(_player(150)):
        profile = rival.rival
        assert 1 <= profile.personality.intensity <= 10
        assert sum(profile.training_priorities.values()) == pytest.approx(1.0)
        if rival.strategy is Strategy.LATE:
            assert profile.training_pattern in {"stamina_focus", "endurance_build", "late_surge"}
        if rival.strategy is Strategy.FRONT:
            assert profile.training_pattern in {"speed_focus", "power_focus", "balanced_aggressive"}


def test_stat_heavy_rivals_lean_front_or_late():
    roster = _roster(seed=11)
    speedy = [roster.assign_strategy({"speed": 70, "stamina": 40, "power": 40}) for _ in range(200)]
    stayers = [roster.assign_strategy({"speed": 40, "stamina": 70, "power": 40}) for _ in range(200)]
    even = roster.assign_strategy({"speed": 50, "stamina": 50, "power": 50})

    assert set(speedy) <= {Strategy.FRONT, Strategy.MID}
    assert speedy.count(Strategy.FRONT) > speedy.count(Strategy.MID)
    assert set(stayers) <= {Strategy.LATE, Strategy.MID}
    assert stayers.count(Strategy.LATE) > stayers.count(Strategy.MID)
    assert even is Strategy.MID


def test_stamina_focus_mostly_trains_stamina():
    rival = _rival(pattern="stamina_focus")
    rng = random.Random(3)
    picks = [select_training(rival, turn=5, upcoming_race=None, rng=rng) for _ in range(1000)]

    assert picks.count("stamina") >= 600


def test_imminent_race_rests_tired_rival():
    tired = _rival(energy=50)
    fresh = _rival(energy=90, stamina=GrowthGrade.S)

    assert select_training(tired, 3, _race(RaceType.MILE, 4), _FixedRng(0.1)) == "rest"
    assert select_training(fresh, 3, _race(RaceType.MILE, 4), _FixedRng(0.1)) == "stamina"


def test_race_two_turns_out_prepares_for_distance():
    front = _rival(strategy=Strategy.FRONT)
    mid = _rival(strategy=Strategy.MID)
    favours_power = _rival(power=GrowthGrade.A)

    assert select_training(front, 2, _race(RaceType.SPRINT, 4)) == "power"
    assert select_training(mid, 2, _race(RaceType.SPRINT, 4)) == "speed"
    assert select_training(mid, 2, _race(RaceType.LONG, 4)) == "stamina"
    assert select_training(favours_power, 2, _race(RaceType.MEDIUM, 4)) == "power"


def test_preferred_stat_ties_resolve_to_speed():
    assert preferred_stat(_rival()) == "speed"
    assert preferred_stat(_rival(stamina=GrowthGrade.A, power=GrowthGrade.A)) == "stamina"


def test_late_surge_builds_stamina_early():
    rival = _rival(pattern="late_surge")
    rng = random.Random(6)
    assert {select_training(rival, 4, None, rng) for _ in range(50)} == {"stamina"}
    assert {select_training(rival, 12, None, rng) for _ in range(200)} == {"speed", "stamina"}


def test_default_pattern_follows_priorities():
    rival = _rival(pattern="adaptable", strategy=Strategy.FRONT)
    rival.rival.training_priorities = {"speed": 0.5, "power": 0.3, "stamina": 0.2}

    assert select_training(rival, 5, None, _FixedRng(0.1)) == "speed"
    assert select_training(rival, 5, None, _FixedRng(0.7)) == "power"
    assert select_training(rival, 5, None, _FixedRng(0.95)) == "stamina"


def test_stat_training_applies_primary_and_side_gains():
    rival = _rival()
    entry = apply_rival_training(rival, "speed", turn=3, rng=_FixedRng(0.5))

    assert rival.stats.as_dict() == {"speed": 54, "stamina": 51, "power": 51}
    assert rival.condition.energy == 85
    assert entry["gain"] == 4
    assert rival.rival.history[3]["training"] == "speed"


def test_stamina_training_costs_less_energy():
    rival = _rival()
    apply_rival_training(rival, "stamina", turn=1, rng=_FixedRng(0.5))

    assert rival.condition.energy == 90


def test_rest_restores_energy_and_adds_stamina():
    rival = _rival(energy=40)
    entry = apply_rival_training(rival, "rest", turn=2, rng=_FixedRng(0.5))

    assert rival.condition.energy == 70
    assert rival.stats.stamina == 51
    assert rival.stats.speed == 50
    assert entry["gain"] == 0
    assert entry["energy_change"] == 30


def test_progress_rivals_records_history_for_everyone():
    schedule = [_race(RaceType.SPRINT, 4)]
    roster = _roster(seed=5, schedule=schedule)
    roster.generate_roster(_player(150))

    choices = roster.progress_rivals(1)

    assert len(choices) == 24
    assert all(1 in rival.rival.history for rival in roster)
    assert roster.current_turn == 2
    assert roster.upcoming_race(1) is schedule[0]
    assert roster.upcoming_race(4) is None


def test_race_field_includes_strongest_rivals():
    roster = _roster(seed=12)
    roster.generate_roster(_player(150))
    ranked = sorted(roster.rivals, key=lambda r: total_power(r) * racing_readiness(r), reverse=True)

    field = roster.race_field(7)

    assert len(field) == 7
    assert len({r.horse_id for r in field}) == 7
    assert field[:3] == ranked[:3]


def test_readiness_tracks_condition_and_clutch_trait():
    rival = _rival(energy=0)
    rival.condition.health = 0
    assert racing_readiness(rival) == pytest.approx(0.25)
    rival.condition.energy = 100
    rival.condition.health = 100
    rival.rival.personality.trait = "clutch"
    assert racing_readiness(rival) == pytest.approx(0.85)


def test_roster_stats_summary():
    roster = _roster(seed=13)
    roster.generate_roster(_player(150))
    stats = roster.roster_stats()

    assert stats["count"] == 24
    assert sum(stats["strategies"].values()) == 24
    assert stats["power_spread"] >= 10
    assert stats["average_position"] is None


def test_verbose_roster_reports_generation(capsys):
    _roster(verbose=True).generate_roster(_player(150))
    assert "Generated 24 rivals" in capsys.readouterr().out
