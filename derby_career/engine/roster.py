"""AI rival roster: balanced generation around the player plus the per-turn training policy."""

from __future__ import annotations

from collections import Counter
from typing import Any, Callable, Dict, List, Optional, Sequence

import numpy as np

from ..config import CareerConfig, get_config
from . import rng as rng_helpers
from .data_models import (
    STAT_MAX,
    STAT_NAMES,
    GrowthGrade,
    Horse,
    Personality,
    RaceResult,
    RaceType,
    RivalProfile,
    ScheduledRace,
    StatBlock,
    Strategy,
    Surface,
)
from .horse import (
    add_stat_points,
    apply_race_effects,
    change_energy,
    growth_multiplier,
    increase_stat,
    total_power,
)
from .rng import UniformSource

DEFAULT_POWER_OFFSETS = (-20, -15, -10, -5, 0, 0, 5, 10, 15, 20)
MIN_TARGET_POWER = 50
MIN_RIVAL_STAT = 15

PERSONALITY_TRAITS = (
    "aggressive",
    "patient",
    "consistent",
    "unpredictable",
    "clutch",
    "steady",
    "explosive",
    "methodical",
)

GROWTH_GRADE_POOL = (
    GrowthGrade.S,
    GrowthGrade.A,
    GrowthGrade.B,
    GrowthGrade.B,
    GrowthGrade.C,
    GrowthGrade.C,
    GrowthGrade.D,
)

TRAINING_PATTERNS: Dict[Strategy, Sequence[str]] = {
    Strategy.FRONT: ("speed_focus", "power_focus", "balanced_aggressive"),
    Strategy.MID: ("balanced", "adaptable", "consistent"),
    Strategy.LATE: ("stamina_focus", "endurance_build", "late_surge"),
}

TRAINING_PRIORITIES: Dict[Strategy, Dict[str, float]] = {
    Strategy.FRONT: {"speed": 0.5, "power": 0.3, "stamina": 0.2},
    Strategy.MID: {"speed": 0.33, "stamina": 0.34, "power": 0.33},
    Strategy.LATE: {"stamina": 0.5, "speed": 0.25, "power": 0.25},
}

TRAINING_ENERGY_COST = {"speed": 15, "stamina": 10, "power": 15}
REST_ENERGY = 30
REST_THRESHOLD = 70
LATE_SURGE_SWITCH_TURN = 8


def preferred_stat(rival: Horse) -> str:
    """Stat with the highest growth multiplier; earlier stats win ties."""
    best = STAT_NAMES[0]
    for name in STAT_NAMES[1:]:
        if growth_multiplier(rival, name) > growth_multiplier(rival, best):
            best = name
    return best


def select_training(
    rival: Horse,
    turn: int,
    upcoming_race: Optional[ScheduledRace] = None,
    rng: Optional[UniformSource] = None,
) -> str:
    rng = rng_helpers.resolve(rng)
    profile = rival.rival
    favourite = preferred_stat(rival)

    if upcoming_race is not None:
        turns_until = upcoming_race.turn - turn
        if turns_until <= 1:
            return "rest" if rival.condition.energy < REST_THRESHOLD else favourite
        if turns_until <= 2:
            if upcoming_race.config.race_type is RaceType.SPRINT:
                return "power" if rival.strategy is Strategy.FRONT else "speed"
            if upcoming_race.config.race_type is RaceType.LONG:
                return "stamina"
            return favourite

    pattern = profile.training_pattern if profile else "balanced"
    roll = rng.random()
    if pattern == "speed_focus":
        return "speed" if roll < 0.7 else "power"
    if pattern == "stamina_focus":
        if roll < 0.7:
            return "stamina"
        return "rest" if rng_helpers.chance(rng, 0.5) else "stamina"
    if pattern == "power_focus":
        return "power" if roll < 0.7 else "speed"
    if pattern == "balanced":
        return rng_helpers.choice(rng, STAT_NAMES)
    if pattern == "endurance_build":
        return "stamina" if roll < 0.6 else "rest"
    if pattern == "late_surge":
        if turn < LATE_SURGE_SWITCH_TURN:
            return "stamina"
        return "speed" if roll < 0.5 else "stamina"

    priorities = (profile.training_priorities if profile else None) or TRAINING_PRIORITIES[rival.strategy]
    cumulative = 0.0
    for name, weight in priorities.items():
        cumulative += weight
        if roll <= cumulative:
            return name
    return favourite


def apply_rival_training(
    rival: Horse,
    training: str,
    turn: int,
    rng: Optional[UniformSource] = None,
    base_gain: int = 3,
) -> Dict[str, Any]:
    rng = rng_helpers.resolve(rng)
    energy_before = rival.condition.energy
    gains = {name: 0 for name in STAT_NAMES}

    if training == "rest":
        gains["stamina"] = add_stat_points(rival, "stamina", 1)
        change_energy(rival, REST_ENERGY)
        gain = 0
    elif training in STAT_NAMES:
        variation = rng_helpers.randint(rng, -1, 2)
        gain = increase_stat(rival, training, max(1, base_gain + variation), rng)
        gains[training] = gain
        for name in STAT_NAMES:
            if name != training:
                gains[name] = add_stat_points(rival, name, 1)
        change_energy(rival, -TRAINING_ENERGY_COST[training])
    else:
        print(f"Warning: Unknown training '{training}' for {rival.name}; turn skipped.")
        gain = 0

    entry = {
        "stats": rival.stats.as_dict(),
        "energy": rival.condition.energy,
        "training": training,
        "gain": gain,
        "gains": gains,
        "energy_change": rival.condition.energy - energy_before,
    }
    if rival.rival is not None:
        rival.rival.history[turn] = entry
    return entry


def racing_readiness(rival: Horse) -> float:
    readiness = 0.5
    readiness += (rival.condition.energy - 50) / 100 * 0.3
    readiness += (rival.condition.health - 50) / 100 * 0.2
    if rival.rival is not None and rival.rival.personality.trait == "clutch":
        readiness += 0.1
    return float(np.clip(readiness, 0.2, 1.0))


def predict_performance(rival: Horse, race_type, surface) -> float:
    race_type, surface = RaceType.from_str(race_type), Surface.from_str(surface)
    strategy_bonus = 1.0
    if race_type is RaceType.SPRINT and rival.strategy is Strategy.FRONT:
        strategy_bonus = 1.1
    if race_type is RaceType.LONG and rival.strategy is Strategy.LATE:
        strategy_bonus = 1.1
    surface_bonus = 1.0
    if surface is Surface.DIRT and rival.stats.power > rival.stats.speed:
        surface_bonus = 1.05
    if surface is Surface.TURF and rival.stats.speed > rival.stats.power:
        surface_bonus = 1.05
    return total_power(rival) * racing_readiness(rival) * strategy_bonus * surface_bonus


def average_position(rival: Horse) -> Optional[float]:
    if rival.rival is None or not rival.rival.race_results:
        return None
    positions = [r["position"] for r in rival.rival.race_results]
    return round(sum(positions) / len(positions), 1)


class RivalRoster:
    """The career's AI field. Rivals never read each other's state."""

    def __init__(
        self,
        config: Optional[CareerConfig] = None,
        schedule: Optional[Sequence[ScheduledRace]] = None,
        rng: Optional[UniformSource] = None,
        name_supplier: Optional[Callable[[], str]] = None,
    ):
        self.config = config or CareerConfig()
        self.schedule: Sequence[ScheduledRace] = schedule if schedule is not None else []
        self.rng = rng_helpers.resolve(rng)
        if name_supplier is None:
            from ..horse_name_generator import NameGenerator

            name_supplier = NameGenerator(rng=self.rng)
        self.name_supplier = name_supplier
        self.roster_id = f"roster_{rng_helpers.randint(self.rng, 0, 0xFFFFFF):06x}"
        self.player_name: str = ""
        self.current_turn = 1
        self.rivals: List[Horse] = []
        self._names: set = set()

    def __len__(self) -> int:
        return len(self.rivals)

    def __iter__(self):
        return iter(self.rivals)

    def get(self, horse_id: str) -> Optional[Horse]:
        for rival in self.rivals:
            if rival.horse_id == horse_id:
                return rival
        return None

    # Generation

    def generate_roster(self, player: Horse, size: Optional[int] = None) -> List[Horse]:
        size = self.config.roster_size if size is None else size
        offsets = get_config("roster.power_offsets", None) or DEFAULT_POWER_OFFSETS
        baseline = total_power(player)
        floor = int(get_config("roster.min_target_power", MIN_TARGET_POWER))
        self.player_name = player.name
        self._names = {player.name.lower()}
        self.rivals = []

        for index in range(size):
            target = max(floor, baseline + offsets[index % len(offsets)])
            self.rivals.append(self.generate_rival(index + 1, target))

        if self.config.verbose:
            powers = [total_power(r) for r in self.rivals]
            print(f"Generated {size} rivals around baseline {baseline} (power {min(powers)}-{max(powers)})")
        return self.rivals

    def generate_rival(self, number: int, target_power: int) -> Horse:
        stats = self.distribute_stats(target_power)
        strategy = self.assign_strategy(stats)
        growth = {name: rng_helpers.choice(self.rng, GROWTH_GRADE_POOL) for name in STAT_NAMES}
        profile = RivalProfile(
            training_pattern=rng_helpers.choice(self.rng, TRAINING_PATTERNS[strategy]),
            personality=Personality(
                trait=rng_helpers.choice(self.rng, PERSONALITY_TRAITS),
                intensity=rng_helpers.randint(self.rng, 1, 10),
            ),
            training_priorities=dict(TRAINING_PRIORITIES[strategy]),
        )
        return Horse(
            horse_id=f"nph_{number:03d}",
            name=self._unique_name(),
            stats=StatBlock(**stats),
            growth_rates=growth,
            strategy=strategy,
            rival=profile,
        )

    def reserve_names(self, names: Sequence[str]) -> None:
        self._names.update(name.lower() for name in names if name)

    def _unique_name(self) -> str:
        name = self.name_supplier()
        attempts = 0
        while name.lower() in self._names and attempts < 20:
            name = self.name_supplier()
            attempts += 1
        if name.lower() in self._names:
            name = f"{name} {len(self._names) + 1}"
        self._names.add(name.lower())
        return name

    def distribute_stats(self, target_power: int) -> Dict[str, int]:
        base = target_power // 3
        stats = {name: max(MIN_RIVAL_STAT, base + rng_helpers.randint(self.rng, -5, 10)) for name in STAT_NAMES}
        adjustment = (target_power - sum(stats.values())) // 3
        return {
            name: int(np.clip(value + adjustment, MIN_RIVAL_STAT, STAT_MAX)) for name, value in stats.items()
        }

    def assign_strategy(self, stats: Dict[str, int]) -> Strategy:
        total = sum(stats.values())
        ratios = {name: stats[name] / total for name in STAT_NAMES}
        if ratios["speed"] > 0.4 or ratios["power"] > 0.4:
            return Strategy.FRONT if rng_helpers.chance(self.rng, 0.7) else Strategy.MID
        if ratios["stamina"] > 0.4:
            return Strategy.LATE if rng_helpers.chance(self.rng, 0.7) else Strategy.MID
        return Strategy.MID

    # Turn progression

    def upcoming_race(self, turn: int) -> Optional[ScheduledRace]:
        pending = [race for race in self.schedule if not race.completed and race.turn > turn]
        return min(pending, key=lambda race: race.turn) if pending else None

    def progress_rivals(self, turn: int) -> Dict[str, str]:
        upcoming = self.upcoming_race(turn)
        choices = {}
        for rival in self.rivals:
            training = select_training(rival, turn, upcoming, self.rng)
            apply_rival_training(rival, training, turn, self.rng, self.config.rival_base_gain)
            choices[rival.horse_id] = training
        self.current_turn = turn + 1
        if self.config.verbose:
            counts = Counter(choices.values())
            print(f"Turn {turn}: rivals trained {dict(counts)}")
        return choices

    def race_field(self, field_size: int) -> List[Horse]:
        ranked = sorted(self.rivals, key=lambda r: total_power(r) * racing_readiness(r), reverse=True)
        field = ranked[: min(3, len(ranked))]
        remaining = ranked[3:]
        while len(field) < field_size and remaining:
            index = min(int(self.rng.random() * len(remaining)), len(remaining) - 1)
            field.append(remaining.pop(index))
        return field[:field_size]

    def record_race_results(self, result: RaceResult, turn: int) -> None:
        for entry in result.entries:
            rival = self.get(entry.horse_id)
            if rival is None:
                continue
            rival.rival.race_results.append(
                {
                    "turn": turn,
                    "race_type": result.race.race_type.value,
                    "position": entry.rank,
                    "time": entry.time,
                    "performance": entry.performance,
                }
            )
            apply_race_effects(rival, entry.rank, result.field_size, self.rng)

    def roster_stats(self) -> Optional[Dict[str, Any]]:
        if not self.rivals:
            return None
        powers = np.array([total_power(r) for r in self.rivals], dtype=float)
        positions = [p for p in (average_position(r) for r in self.rivals) if p is not None]
        return {
            "count": len(self.rivals),
            "average_power": int(round(float(powers.mean()))),
            "power_std": round(float(powers.std()), 2),
            "power_spread": int(powers.max() - powers.min()),
            "total_races": sum(len(r.rival.race_results) for r in self.rivals),
            "average_position": round(float(np.mean(positions)), 1) if positions else None,
            "strategies": dict(Counter(r.strategy.value for r in self.rivals)),
            "patterns": dict(Counter(r.rival.training_pattern for r in self.rivals)),
        }
