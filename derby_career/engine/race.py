"""Race outcome calculation: performance scoring, ranking, times and prizes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import get_config
from . import rng as rng_helpers
from .data_models import (
    STAT_NAMES,
    Horse,
    RaceConfig,
    RaceEntryResult,
    RaceResult,
    RaceType,
    Strategy,
    Surface,
    Weather,
)
from .horse import form_multiplier
from .rng import UniformSource


@dataclass(frozen=True)
class RaceTypeProfile:
    label: str
    distance: int
    duration: Tuple[float, float]
    stat_weights: Dict[str, float]
    strategy_modifiers: Dict[Strategy, float]
    description: str


@dataclass(frozen=True)
class SurfaceProfile:
    label: str
    stat_modifiers: Dict[str, float]
    strategy_modifiers: Dict[Strategy, float]
    description: str


RACE_TYPES: Dict[RaceType, RaceTypeProfile] = {
    RaceType.SPRINT: RaceTypeProfile(
        label="Sprint",
        distance=1200,
        duration=(70.0, 75.0),
        stat_weights={"speed": 0.50, "stamina": 0.15, "power": 0.35},
        strategy_modifiers={Strategy.FRONT: 1.15, Strategy.MID: 1.0, Strategy.LATE: 0.90},
        description="Short explosive race favoring speed and power",
    ),
    RaceType.MILE: RaceTypeProfile(
        label="Mile",
        distance=1600,
        duration=(95.0, 105.0),
        stat_weights={"speed": 0.35, "stamina": 0.35, "power": 0.30},
        strategy_modifiers={Strategy.FRONT: 1.05, Strategy.MID: 1.0, Strategy.LATE: 1.05},
        description="Classic balanced race requiring all-around ability",
    ),
    RaceType.MEDIUM: RaceTypeProfile(
        label="Medium",
        distance=2000,
        duration=(120.0, 135.0),
        stat_weights={"speed": 0.25, "stamina": 0.45, "power": 0.30},
        strategy_modifiers={Strategy.FRONT: 0.95, Strategy.MID: 1.05, Strategy.LATE: 1.10},
        description="Endurance test with tactical positioning important",
    ),
    RaceType.LONG: RaceTypeProfile(
        label="Long Distance",
        distance=2400,
        duration=(145.0, 165.0),
        stat_weights={"speed": 0.15, "stamina": 0.60, "power": 0.25},
        strategy_modifiers={Strategy.FRONT: 0.85, Strategy.MID: 1.0, Strategy.LATE: 1.20},
        description="Ultimate stamina test favoring patient tactics",
    ),
}

TRACK_SURFACES: Dict[Surface, SurfaceProfile] = {
    Surface.DIRT: SurfaceProfile(
        label="Dirt",
        stat_modifiers={"speed": 0.95, "stamina": 1.0, "power": 1.15},
        strategy_modifiers={Strategy.FRONT: 1.10, Strategy.MID: 1.0, Strategy.LATE: 0.95},
        description="Power-focused surface favoring early speed",
    ),
    Surface.TURF: SurfaceProfile(
        label="Turf",
        stat_modifiers={"speed": 1.10, "stamina": 1.05, "power": 1.0},
        strategy_modifiers={Strategy.FRONT: 1.0, Strategy.MID: 1.05, Strategy.LATE: 1.10},
        description="Finesse surface favoring speed and tactics",
    ),
}

WEATHER_MODIFIERS: Dict[Weather, Dict[str, float]] = {
    Weather.CLEAR: {"speed": 1.0, "stamina": 1.0, "power": 1.0},
    Weather.RAIN: {"speed": 0.95, "stamina": 1.05, "power": 1.10},
    Weather.FAST: {"speed": 1.10, "stamina": 0.95, "power": 1.0},
}

PERFORMANCE_VARIANCE = (0.88, 1.12)
MIN_ENERGY_FACTOR = 0.3
TIME_JITTER = (-1.0, 1.0)
TRAILING_JITTER = (0.0, 0.1)
DEFAULT_PRIZE_FRACTIONS = (1.0, 0.6, 0.3, 0.15, 0.10, 0.05, 0.02, 0.01)


def prize_fractions() -> Tuple[float, ...]:
    configured = get_config("race.prize_fractions", None)
    if not configured:
        return DEFAULT_PRIZE_FRACTIONS
    return tuple(float(x) for x in configured)


def validate_race_keys(
    race_type, surface, weather="CLEAR", strategy=None
) -> Tuple[RaceType, Surface, Weather, Optional[Strategy]]:
    """Parse race keys, raising InvalidRaceConfiguration on the first unknown one."""
    parsed_strategy = Strategy.from_str(strategy) if strategy is not None else None
    return RaceType.from_str(race_type), Surface.from_str(surface), Weather.from_str(weather), parsed_strategy


def strategy_multiplier(race_type: RaceType, surface: Surface, strategy: Strategy) -> float:
    return RACE_TYPES[race_type].strategy_modifiers[strategy] * TRACK_SURFACES[surface].strategy_modifiers[strategy]


def calculate_performance(
    horse: Horse,
    race_type,
    surface,
    strategy,
    weather="CLEAR",
    rng: Optional[UniformSource] = None,
) -> float:
    race_type, surface, weather, strategy = validate_race_keys(race_type, surface, weather, strategy)
    rng = rng_helpers.resolve(rng)

    race_profile = RACE_TYPES[race_type]
    surface_profile = TRACK_SURFACES[surface]
    weather_mods = WEATHER_MODIFIERS[weather]

    score = 0.0
    for name in STAT_NAMES:
        modified = horse.stats.get(name) * surface_profile.stat_modifiers[name] * weather_mods[name]
        score += modified * race_profile.stat_weights[name]

    score *= strategy_multiplier(race_type, surface, strategy)
    score *= max(MIN_ENERGY_FACTOR, horse.condition.energy / 100)
    score *= form_multiplier(horse.condition.form)
    score *= rng_helpers.uniform(rng, *PERFORMANCE_VARIANCE)
    return score


def estimate_winner_time(performance: float, race_type: RaceType, rng: UniformSource) -> float:
    low, high = RACE_TYPES[race_type].duration
    ratio = min(1.5, max(0.5, performance / 100))
    seconds = low + (high - low) * (1.5 - ratio) + rng_helpers.uniform(rng, *TIME_JITTER)
    return max(low * 0.9, seconds)


def estimate_times(performances: Sequence[float], race_type: RaceType, rng: UniformSource) -> List[float]:
    """Times for a field already sorted best-first, scaled off the winner."""
    if not performances:
        return []
    floor = RACE_TYPES[race_type].duration[0] * 0.9
    winner_perf = performances[0]
    winner_time = estimate_winner_time(winner_perf, race_type, rng)
    times = [winner_time]
    for perf in performances[1:]:
        scaled = winner_time * (winner_perf / perf) if perf > 0 else winner_time * 2
        scaled += rng_helpers.uniform(rng, *TRAILING_JITTER)
        times.append(max(floor, times[-1], scaled))
    return [round(t, 2) for t in times]


def format_race_time(seconds: float) -> str:
    minutes = int(seconds // 60)
    remainder = seconds - minutes * 60
    return f"{minutes}:{remainder:05.2f}"


def prize_for_rank(rank: int, prize_pool: int) -> int:
    fractions = prize_fractions()
    if 1 <= rank <= len(fractions):
        return int(round(prize_pool * fractions[rank - 1]))
    return 0


def resolve_race(
    entrants: Sequence[Tuple[Horse, object]],
    race: RaceConfig,
    rng: Optional[UniformSource] = None,
) -> RaceResult:
    """Score every entrant, rank them and attach times and prizes.

    ``entrants`` pairs each horse with the strategy it runs. Every key is
    validated before any score is drawn. Equal scores rank by horse id.
    """
    race_type, surface, weather, _ = validate_race_keys(race.race_type, race.surface, race.weather)
    strategies = [Strategy.from_str(strategy) for _, strategy in entrants]
    rng = rng_helpers.resolve(rng)

    scored = [
        (calculate_performance(horse, race_type, surface, strategy, weather, rng), horse, strategy)
        for (horse, _), strategy in zip(entrants, strategies)
    ]
    scored.sort(key=lambda item: (-item[0], item[1].horse_id))

    times = estimate_times([perf for perf, _, _ in scored], race_type, rng)
    entries = tuple(
        RaceEntryResult(
            horse_id=horse.horse_id,
            name=horse.name,
            rank=rank,
            performance=round(perf, 2),
            time=seconds,
            prize=prize_for_rank(rank, race.prize_pool),
            strategy=strategy,
        )
        for rank, ((perf, horse, strategy), seconds) in enumerate(zip(scored, times), start=1)
    )
    return RaceResult(race=race, entries=entries)


def training_recommendations(race_type, surface, turns_remaining: int) -> List[str]:
    race_type, surface, _, _ = validate_race_keys(race_type, surface)
    weights = RACE_TYPES[race_type].stat_weights
    tips = []
    if weights["speed"] >= 0.4:
        tips.append("Focus on Speed training - this race heavily favors speed")
    if weights["stamina"] >= 0.4:
        tips.append("Prioritize Stamina training - endurance is key")
    if weights["power"] >= 0.3:
        tips.append("Include Power training - acceleration matters")

    if surface is Surface.DIRT:
        tips.append("Dirt surface: Emphasize Power training for better grip and drive")
    else:
        tips.append("Turf surface: Balance Speed and Stamina for tactical racing")

    if turns_remaining <= 1:
        tips.append("Final preparation: consider a Rest day to race at full energy")
    elif turns_remaining <= 2:
        tips.append("Race prep: focus on your horse's strongest stats now")
    return tips
