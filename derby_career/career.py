"""Career turn scheduler.

Drives one career: training turns, scheduled races, and the final legacy
hand-off. Phases move through ``training -> pre_race -> race_results`` until
the turn counter passes ``max_turns``, at which point the career is complete
and the player horse only accepts ``complete_career()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .config import CareerConfig, get_config
from .engine import rng as rng_helpers
from .engine.breeds import get_breed
from .engine.data_models import (
    STAT_MAX,
    STAT_MIN,
    STAT_NAMES,
    Career,
    Condition,
    Horse,
    LegacyBonuses,
    PlayerProfile,
    RaceConfig,
    RaceResult,
    RaceType,
    ScheduledRace,
    StatBlock,
    Strategy,
)
from .engine.horse import (
    apply_race_effects,
    change_bond,
    change_energy,
    clamp,
    set_form_at_least,
    validate_horse,
)
from .engine.race import format_race_time, resolve_race, training_recommendations, validate_race_keys
from .engine.roster import RivalRoster
from .engine.rng import UniformSource
from .engine.stat_generator import Customization, Pedigree, StatGenerator
from .training import TrainingOutcome, perform_training, recommendations, training_options

SCHEDULED_RACE_COUNT = 4
ID_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


class GamePhase(Enum):
    TRAINING = "training"
    PRE_RACE = "pre_race"
    RACE_RESULTS = "race_results"
    CAREER_COMPLETE = "career_complete"


class ScheduleError(ValueError):
    """Raised for a race calendar that breaks the career rules."""


class CareerStateError(RuntimeError):
    """Raised when an action is not allowed in the current phase."""


@dataclass
class ActionResult:
    success: bool
    message: str
    phase: Optional[GamePhase]
    turn: int
    outcome: Optional[TrainingOutcome] = None
    race_ready: bool = False


@dataclass
class GameHistory:
    sessions: int = 0
    total_wins: int = 0
    total_races: int = 0
    best_time: Optional[float] = None
    careers_completed: int = 0


@dataclass
class CareerSummary:
    horse_name: str
    final_stats: Dict[str, int]
    races_won: int
    races_run: int
    total_training: int
    bond: int
    legacy_bonuses: LegacyBonuses
    achievements: List[str] = field(default_factory=list)


def validate_schedule(schedule: Iterable[ScheduledRace], max_turns: int) -> None:
    races = list(schedule)
    if len(races) != SCHEDULED_RACE_COUNT:
        raise ScheduleError(f"Career schedule needs exactly {SCHEDULED_RACE_COUNT} races, got {len(races)}")
    turns = [race.turn for race in races]
    if len(set(turns)) != len(turns):
        raise ScheduleError(f"Only one race may be scheduled per turn: {turns}")
    if turns != sorted(turns):
        raise ScheduleError(f"Races must be in chronological order: {turns}")
    for turn in turns:
        if not 1 <= turn <= max_turns:
            raise ScheduleError(f"Race turn {turn} is outside the career (1-{max_turns})")
    missing = set(RaceType) - {race.config.race_type for race in races}
    if missing:
        raise ScheduleError(f"Schedule is missing race types: {sorted(t.value for t in missing)}")


def build_schedule(entries: Iterable[Union[Dict[str, Any], RaceConfig]], max_turns: int) -> List[ScheduledRace]:
    schedule = [
        ScheduledRace(config=entry if isinstance(entry, RaceConfig) else RaceConfig.from_dict(entry))
        for entry in entries
    ]
    validate_schedule(schedule, max_turns)
    return schedule


def legacy_bonuses_for(horse: Horse) -> LegacyBonuses:
    fraction = float(get_config("career.legacy.stat_fraction", 0.1))
    per_win = int(get_config("career.legacy.energy_per_win", 2))
    cap = int(get_config("career.legacy.energy_cap", 10))
    stats = horse.stats.as_dict()
    return LegacyBonuses(
        speed=int(stats["speed"] * fraction),
        stamina=int(stats["stamina"] * fraction),
        power=int(stats["power"] * fraction),
        energy=min(cap, horse.player.career.races_won * per_win),
    )


def achievements(horse: Horse) -> List[str]:
    stats = horse.stats.as_dict()
    career = horse.player.career
    earned = []
    if any(value >= 90 for value in stats.values()):
        earned.append("Elite Athlete")
    if all(value >= 80 for value in stats.values()):
        earned.append("Triple Threat")
    if career.races_run > 0 and career.races_won == career.races_run:
        earned.append("Undefeated")
    if career.races_won >= 3:
        earned.append("Champion")
    if career.total_training >= 15:
        earned.append("Dedicated Trainer")
    if horse.player.bond >= 90:
        earned.append("Best Friends")
    return earned


class CareerScheduler:
    def __init__(
        self,
        config: Optional[CareerConfig] = None,
        rng: Optional[UniformSource] = None,
        name_supplier: Optional[Callable[[], str]] = None,
    ):
        self.config = config or CareerConfig.from_balance_config()
        self.rng = rng_helpers.resolve(rng)
        self.name_supplier = name_supplier
        self.schedule: List[ScheduledRace] = build_schedule(self.config.race_schedule, self.config.max_turns)
        self.stat_generator = StatGenerator(self.rng)
        self.player: Optional[Horse] = None
        self.roster: Optional[RivalRoster] = None
        self.phase: Optional[GamePhase] = None
        self.history = GameHistory()
        self.last_result: Optional[RaceResult] = None
        self.last_summary: Optional[CareerSummary] = None

    # Career lifecycle

    def start_career(
        self,
        name: str,
        breed: str = "Thoroughbred",
        legacy_bonuses: Optional[LegacyBonuses] = None,
        customization: Optional[Customization] = None,
        pedigree: Optional[Pedigree] = None,
        strategy: Optional[Union[Strategy, str]] = None,
    ) -> Horse:
        breed_profile = get_breed(breed)
        generation_type = "customized" if customization else ("bred" if pedigree else "foundation")
        generated = self.stat_generator.generate(breed_profile.name, pedigree, customization, generation_type)

        legacy = legacy_bonuses or LegacyBonuses()
        stats = {
            stat: clamp(value + getattr(legacy, stat), STAT_MIN, STAT_MAX)
            for stat, value in generated.stats.items()
        }
        horse = Horse(
            horse_id=self._new_horse_id(),
            name=(name or "").strip(),
            stats=StatBlock(**stats),
            growth_rates=breed_profile.growth_grades(),
            condition=Condition(),
            strategy=Strategy.from_str(strategy) if strategy else generated.attributes["suggested_strategy"],
            breed=breed_profile.name,
            player=PlayerProfile(
                bond=0,
                career=Career(turn=1, max_turns=self.config.max_turns),
                legacy_bonuses=legacy,
            ),
        )
        errors = validate_horse(horse)
        if errors:
            raise ValueError(f"Invalid horse: {'; '.join(errors)}")

        self.schedule = build_schedule([race.config for race in self.schedule], self.config.max_turns)
        self.player = horse
        self.roster = RivalRoster(self.config, self.schedule, self.rng, self.name_supplier)
        self.roster.generate_roster(horse)
        self.history.sessions += 1
        self.last_result = None
        self.last_summary = None
        self.sync_phase()

        if self.config.verbose:
            print(f"Career started for {horse.name} ({horse.breed}, {horse.strategy.value}) stats={stats}")
        return horse

    def _new_horse_id(self) -> str:
        return "horse_" + "".join(rng_helpers.choice(self.rng, ID_ALPHABET) for _ in range(9))

    @property
    def turn(self) -> int:
        return self.player.player.career.turn if self.player else 0

    @turn.setter
    def turn(self, value: int) -> None:
        self.player.player.career.turn = value

    def sync_phase(self) -> None:
        if self.turn > self.config.max_turns:
            self.phase = GamePhase.CAREER_COMPLETE
            if self.config.verbose:
                print(f"Career complete for {self.player.name} after {self.config.max_turns} turns")
        elif self.race_for_turn(self.turn) is not None:
            self.phase = GamePhase.PRE_RACE
        else:
            self.phase = GamePhase.TRAINING

    def race_for_turn(self, turn: int) -> Optional[ScheduledRace]:
        for race in self.schedule:
            if race.turn == turn and not race.completed:
                return race
        return None

    def next_race(self) -> Optional[ScheduledRace]:
        pending = [race for race in self.schedule if not race.completed and race.turn >= self.turn]
        return min(pending, key=lambda race: race.turn) if pending else None

    # Actions

    def perform_training(self, kind: str) -> ActionResult:
        if self.phase is not GamePhase.TRAINING:
            phase = self.phase.value if self.phase else "no career"
            return ActionResult(False, f"Training is not available during {phase}", self.phase, self.turn)

        outcome = perform_training(self.player, kind, self.rng)
        if not outcome.success:
            return ActionResult(False, outcome.message, self.phase, self.turn, outcome)

        if kind in STAT_NAMES:
            self.player.player.career.total_training += 1
        self.roster.progress_rivals(self.turn)
        self.turn += 1
        self.sync_phase()

        if self.config.verbose:
            print(f"Turn {self.turn - 1}: {outcome.message} (energy {self.player.condition.energy})")
        return ActionResult(
            True, outcome.message, self.phase, self.turn, outcome, race_ready=self.phase is GamePhase.PRE_RACE
        )

    def run_race(
        self,
        race: Optional[Union[RaceConfig, Dict[str, Any]]] = None,
        strategy: Optional[Union[Strategy, str]] = None,
    ) -> RaceResult:
        """Resolve the race scheduled for the current turn.

        Configuration keys are checked before anything is touched. A passed
        config only identifies the scheduled race: it must match that race's
        type, surface and weather, and the scheduled config is what runs. A
        race that has already been resolved returns its stored result
        unchanged.
        """
        config = None
        if race is not None:
            config = race if isinstance(race, RaceConfig) else RaceConfig.from_dict(race)
            validate_race_keys(config.race_type, config.surface, config.weather)
        run_strategy = Strategy.from_str(strategy) if strategy is not None else None

        scheduled = None
        if config is not None:
            scheduled = next((r for r in self.schedule if r.turn == config.turn), None)
        if scheduled is None:
            scheduled = next((r for r in self.schedule if r.turn == self.turn), None)
        if config is not None and scheduled is not None:
            expected = (scheduled.config.race_type, scheduled.config.surface, scheduled.config.weather)
            if (config.race_type, config.surface, config.weather) != expected:
                raise CareerStateError(
                    f"Race on turn {scheduled.turn} is {'/'.join(k.value for k in expected)}; "
                    f"got {config.race_type.value}/{config.surface.value}/{config.weather.value}"
                )
        if scheduled is not None and scheduled.completed:
            if self.config.verbose:
                print(f"Race on turn {scheduled.turn} already resolved; returning stored result")
            return scheduled.results
        if self.phase is not GamePhase.PRE_RACE or scheduled is None or scheduled.turn != self.turn:
            raise CareerStateError(f"No race is ready on turn {self.turn}")

        config = scheduled.config
        player = self.player
        run_strategy = run_strategy or player.strategy
        rivals = self.roster.race_field(self.config.field_size - 1)
        entrants = [(player, run_strategy)] + [(rival, rival.strategy) for rival in rivals]
        result = resolve_race(entrants, config, self.rng)

        scheduled.completed = True
        scheduled.results = result
        scheduled.completed_at = self.turn
        self.last_result = result

        self._apply_player_result(result)
        self.roster.record_race_results(result, self.turn)

        self.turn += 1
        self.phase = GamePhase.RACE_RESULTS
        if self.config.verbose:
            entry = result.entry_for(player.horse_id)
            print(
                f"{config.name or config.race_type.value}: {player.name} finished {entry.rank}/{result.field_size} "
                f"in {format_race_time(entry.time)}"
            )
        return result

    def _apply_player_result(self, result: RaceResult) -> None:
        player = self.player
        entry = result.entry_for(player.horse_id)
        position = entry.rank

        apply_race_effects(player, position, result.field_size, self.rng)
        if position == 1:
            set_form_at_least(player, "Good Form")
            change_bond(player, 5)
        elif position <= 3:
            set_form_at_least(player, "Steady")
            change_bond(player, 3)
        elif position <= 6:
            change_bond(player, 1)
        else:
            change_energy(player, -5)

        career = player.player.career
        career.races_run += 1
        self.history.total_races += 1
        if position == 1:
            career.races_won += 1
            self.history.total_wins += 1
        if self.history.best_time is None or entry.time < self.history.best_time:
            self.history.best_time = entry.time

    def continue_career(self) -> ActionResult:
        if self.phase is not GamePhase.RACE_RESULTS:
            phase = self.phase.value if self.phase else "no career"
            return ActionResult(False, f"Nothing to continue from during {phase}", self.phase, self.turn)
        self.sync_phase()
        return ActionResult(True, "Back to training", self.phase, self.turn, race_ready=self.phase is GamePhase.PRE_RACE)

    def complete_career(self) -> CareerSummary:
        if self.phase is not GamePhase.CAREER_COMPLETE or self.player is None:
            raise CareerStateError("Career is not complete yet")

        horse = self.player
        career = horse.player.career
        summary = CareerSummary(
            horse_name=horse.name,
            final_stats=horse.stats.as_dict(),
            races_won=career.races_won,
            races_run=career.races_run,
            total_training=career.total_training,
            bond=horse.player.bond,
            legacy_bonuses=legacy_bonuses_for(horse),
            achievements=achievements(horse),
        )
        self.history.careers_completed += 1
        self.player = None
        self.roster = None
        self.phase = None
        self.last_summary = summary

        if self.config.verbose:
            print(f"Legacy for {summary.horse_name}: {summary.legacy_bonuses.as_dict()} {summary.achievements}")
        return summary

    # Read-only views

    def progress_summary(self) -> Dict[str, Any]:
        horse = self.player
        career = horse.player.career
        total = horse.stats.total()
        return {
            "turn": career.turn,
            "max_turns": career.max_turns,
            "turns_remaining": max(0, career.max_turns - career.turn + 1),
            "total_stats": total,
            "stat_progress": round(total / (3 * STAT_MAX) * 100, 1),
            "races_won": career.races_won,
            "races_run": career.races_run,
            "win_rate": round(career.races_won / career.races_run * 100, 1) if career.races_run else 0.0,
            "total_training": career.total_training,
        }

    def character_summary(self) -> Dict[str, Any]:
        horse = self.player
        return {
            "id": horse.horse_id,
            "name": horse.name,
            "breed": horse.breed,
            "strategy": horse.strategy.value,
            "stats": horse.stats.as_dict(),
            "growth_rates": {stat: grade.value for stat, grade in horse.growth_rates.items()},
            "energy": horse.condition.energy,
            "health": horse.condition.health,
            "form": horse.condition.form,
            "bond": horse.player.bond,
        }

    def get_game_status(self) -> Dict[str, Any]:
        if self.player is None:
            return {"phase": None, "turn": 0, "max_turns": self.config.max_turns, "character": None}

        options = training_options(self.player)
        if self.phase is not GamePhase.TRAINING:
            for option in options:
                option["available"] = False
                option["reason"] = f"Training is not available during {self.phase.value}"

        upcoming = self.next_race()
        next_race = None
        tips: List[Any] = list(recommendations(self.player))
        if upcoming is not None:
            turns_until = upcoming.turn - self.turn
            next_race = dict(upcoming.config.to_dict(), turns_until=turns_until, is_next=turns_until <= 1)
            tips.extend(
                {"type": "race", "reason": tip, "priority": "info"}
                for tip in training_recommendations(upcoming.config.race_type, upcoming.config.surface, turns_until)
            )

        return {
            "phase": self.phase.value if self.phase else None,
            "turn": self.turn,
            "max_turns": self.config.max_turns,
            "character": self.character_summary(),
            "next_race": next_race,
            "training_options": options,
            "recommendations": tips,
            "can_continue": self.phase is not GamePhase.CAREER_COMPLETE,
            "progress": self.progress_summary(),
        }
