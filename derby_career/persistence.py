"""Career save document.

The document uses camelCase keys so saves stay readable by older builds.
Older saves without a rival roster are upgraded on load by regenerating the
roster and replaying rival training up to the saved turn.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .career import (
    CareerScheduler,
    CareerStateError,
    GameHistory,
    GamePhase,
    ScheduleError,
    build_schedule,
)
from .config import CareerConfig
from .engine.data_models import (
    STAT_NAMES,
    Career,
    Condition,
    GrowthGrade,
    Horse,
    InvalidRaceConfiguration,
    LegacyBonuses,
    Personality,
    PlayerProfile,
    RaceConfig,
    RaceEntryResult,
    RaceResult,
    RivalProfile,
    ScheduledRace,
    StatBlock,
    Strategy,
)
from .engine.horse import normalize_form, validate_horse
from .engine.roster import RivalRoster
from .engine.rng import UniformSource

SAVE_VERSION = "2.0"


@dataclass
class LoadResult:
    success: bool
    message: str
    scheduler: Optional[CareerScheduler] = None
    upgraded: bool = False


class SaveFormatError(ValueError):
    """Raised internally when a document cannot be turned back into a career."""


def _mapping(value: Any, what: str) -> Dict[str, Any]:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise SaveFormatError(f"{what} must be an object, got {type(value).__name__}")
    return value


# Horses

def _growth_from_dict(data: Dict[str, Any]) -> Dict[str, GrowthGrade]:
    growth = {}
    for stat in STAT_NAMES:
        try:
            growth[stat] = GrowthGrade.from_str(data.get(stat, "B"))
        except ValueError:
            print(f"Warning: Unknown growth grade {data.get(stat)!r} for {stat}; using B")
            growth[stat] = GrowthGrade.B
    return growth


def _condition_from_dict(data: Dict[str, Any]) -> Condition:
    form = data.get("form", data.get("mood"))
    return Condition(
        energy=int(data.get("energy", 100)),
        form=normalize_form(form),
        health=int(data.get("health", 100)),
    )


def _horse_base_to_dict(horse: Horse) -> Dict[str, Any]:
    return {
        "id": horse.horse_id,
        "name": horse.name,
        "breed": horse.breed,
        "strategy": horse.strategy.value,
        "stats": horse.stats.as_dict(),
        "condition": {
            "energy": horse.condition.energy,
            "form": horse.condition.form,
            "health": horse.condition.health,
        },
        "growthRates": {stat: grade.value for stat, grade in horse.growth_rates.items()},
    }


def _horse_base_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    stats = data.get("stats")
    if not isinstance(stats, dict) or any(stat not in stats for stat in STAT_NAMES):
        raise SaveFormatError("Horse record is missing stats")
    return {
        "horse_id": str(data["id"]),
        "name": str(data["name"]),
        "stats": StatBlock(**{stat: int(stats[stat]) for stat in STAT_NAMES}),
        "growth_rates": _growth_from_dict(data.get("growthRates") or {}),
        "condition": _condition_from_dict(_mapping(data.get("condition"), "condition")),
        "strategy": Strategy.from_str(data.get("strategy", "MID")),
        "breed": str(data.get("breed", "Thoroughbred")),
    }


def character_to_dict(horse: Horse) -> Dict[str, Any]:
    career = horse.player.career
    data = _horse_base_to_dict(horse)
    data.update(
        {
            "bond": horse.player.bond,
            "career": {
                "turn": career.turn,
                "maxTurns": career.max_turns,
                "racesWon": career.races_won,
                "racesRun": career.races_run,
                "totalTraining": career.total_training,
            },
            "legacyBonuses": {
                "speedBonus": horse.player.legacy_bonuses.speed,
                "staminaBonus": horse.player.legacy_bonuses.stamina,
                "powerBonus": horse.player.legacy_bonuses.power,
                "energyBonus": horse.player.legacy_bonuses.energy,
            },
        }
    )
    return data


def character_from_dict(data: Dict[str, Any]) -> Horse:
    career = data.get("career") or {}
    legacy = data.get("legacyBonuses") or {}
    horse = Horse(
        **_horse_base_from_dict(data),
        player=PlayerProfile(
            bond=int(data.get("bond", data.get("friendship", 0))),
            career=Career(
                turn=int(career.get("turn", 1)),
                max_turns=int(career.get("maxTurns", 24)),
                races_won=int(career.get("racesWon", 0)),
                races_run=int(career.get("racesRun", 0)),
                total_training=int(career.get("totalTraining", 0)),
            ),
            legacy_bonuses=LegacyBonuses(
                speed=int(legacy.get("speedBonus", 0)),
                stamina=int(legacy.get("staminaBonus", 0)),
                power=int(legacy.get("powerBonus", 0)),
                energy=int(legacy.get("energyBonus", 0)),
            ),
        ),
    )
    errors = validate_horse(horse)
    if errors:
        raise SaveFormatError(f"Invalid character: {'; '.join(errors)}")
    return horse


def rival_to_dict(horse: Horse) -> Dict[str, Any]:
    profile = horse.rival
    data = _horse_base_to_dict(horse)
    data.update(
        {
            "trainingPattern": profile.training_pattern,
            "personality": {"trait": profile.personality.trait, "intensity": profile.personality.intensity},
            "trainingPriorities": dict(profile.training_priorities),
            "trainingHistory": {f"turn{turn}": dict(entry) for turn, entry in profile.history.items()},
            "raceResults": [dict(result) for result in profile.race_results],
        }
    )
    return data


def rival_from_dict(data: Dict[str, Any]) -> Horse:
    data = _mapping(data, "rival record")
    personality = _mapping(data.get("personality"), "personality")
    history = {}
    for key, entry in (data.get("trainingHistory") or {}).items():
        turn = str(key)[4:] if str(key).startswith("turn") else str(key)
        history[int(turn)] = dict(entry)
    return Horse(
        **_horse_base_from_dict(data),
        rival=RivalProfile(
            training_pattern=str(data.get("trainingPattern", "balanced")),
            personality=Personality(
                trait=str(personality.get("trait", personality.get("primary", "steady"))),
                intensity=int(personality.get("intensity", 5)),
            ),
            training_priorities={k: float(v) for k, v in (data.get("trainingPriorities") or {}).items()},
            history=history,
            race_results=[dict(r) for r in data.get("raceResults") or []],
        ),
    )


# Roster and schedule

def roster_to_dict(roster: RivalRoster) -> Dict[str, Any]:
    return {
        "rosterId": roster.roster_id,
        "playerHorseName": roster.player_name,
        "currentTurn": roster.current_turn,
        "nphs": [rival_to_dict(rival) for rival in roster.rivals],
    }


def roster_from_dict(
    data: Dict[str, Any],
    config: CareerConfig,
    schedule: List[ScheduledRace],
    rng: Optional[UniformSource],
    name_supplier: Optional[Callable[[], str]],
) -> RivalRoster:
    roster = RivalRoster(config, schedule, rng, name_supplier)
    roster.roster_id = str(data.get("rosterId", roster.roster_id))
    roster.player_name = str(data.get("playerHorseName", ""))
    roster.current_turn = int(data.get("currentTurn", 1))
    roster.rivals = [rival_from_dict(entry) for entry in data.get("nphs") or []]
    roster.reserve_names([roster.player_name] + [rival.name for rival in roster.rivals])
    return roster


def _result_to_dict(result: RaceResult) -> List[Dict[str, Any]]:
    return [
        {
            "horseId": e.horse_id,
            "name": e.name,
            "position": e.rank,
            "performance": e.performance,
            "time": e.time,
            "prize": e.prize,
            "strategy": e.strategy.value,
        }
        for e in result.entries
    ]


def _result_from_dict(config: RaceConfig, entries: List[Dict[str, Any]]) -> RaceResult:
    return RaceResult(
        race=config,
        entries=tuple(
            RaceEntryResult(
                horse_id=str(e["horseId"]),
                name=str(e.get("name", "")),
                rank=int(e["position"]),
                performance=float(e.get("performance", 0.0)),
                time=float(e.get("time", 0.0)),
                prize=int(e.get("prize", 0)),
                strategy=Strategy.from_str(e.get("strategy", "MID")),
            )
            for e in sorted(entries, key=lambda item: int(item["position"]))
        ),
    )


def schedule_to_list(schedule: List[ScheduledRace]) -> List[Dict[str, Any]]:
    races = []
    for race in schedule:
        data = race.config.to_dict()
        if race.completed:
            data["completed"] = True
            data["completedAt"] = race.completed_at
            data["results"] = _result_to_dict(race.results) if race.results else []
        races.append(data)
    return races


def schedule_from_list(entries: List[Dict[str, Any]], max_turns: int) -> List[ScheduledRace]:
    entries = [_mapping(entry, "race entry") for entry in entries]
    schedule = build_schedule(entries, max_turns)
    for race, data in zip(schedule, entries):
        if data.get("completed"):
            race.completed = True
            race.completed_at = data.get("completedAt")
            race.results = _result_from_dict(race.config, data.get("results") or [])
    return schedule


# Documents

def build_save_document(scheduler: CareerScheduler) -> Dict[str, Any]:
    if scheduler.player is None:
        raise CareerStateError("No career in progress to save")
    history = scheduler.history
    return {
        "version": SAVE_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "character": character_to_dict(scheduler.player),
        "nphRoster": roster_to_dict(scheduler.roster),
        "raceSchedule": schedule_to_list(scheduler.schedule),
        "gameState": scheduler.phase.value if scheduler.phase else None,
        "gameHistory": {
            "sessions": history.sessions,
            "totalWins": history.total_wins,
            "totalRaces": history.total_races,
            "bestTime": history.best_time,
            "careersCompleted": history.careers_completed,
        },
    }


def load_career_document(
    document: Any,
    config: Optional[CareerConfig] = None,
    rng: Optional[UniformSource] = None,
    name_supplier: Optional[Callable[[], str]] = None,
) -> LoadResult:
    """Rebuild a scheduler from a save document.

    Never raises: corrupted documents produce a failed ``LoadResult``.
    """
    if not isinstance(document, dict):
        return LoadResult(False, "Save data is not a document")
    if not isinstance(document.get("character"), dict):
        return LoadResult(False, "Save data has no character")

    try:
        # the caller's config is never modified
        settings = replace(config) if config is not None else None
        scheduler = CareerScheduler(settings, rng, name_supplier)
        player = character_from_dict(document["character"])
        max_turns = player.player.career.max_turns
        if document.get("raceSchedule"):
            scheduler.schedule = schedule_from_list(document["raceSchedule"], max_turns)
        scheduler.config.max_turns = max_turns
        scheduler.player = player

        upgraded = False
        roster_data = document.get("nphRoster")
        if isinstance(roster_data, dict) and roster_data.get("nphs"):
            scheduler.roster = roster_from_dict(
                roster_data, scheduler.config, scheduler.schedule, scheduler.rng, name_supplier
            )
        else:
            scheduler.roster = _regenerate_roster(scheduler)
            upgraded = True

        history = _mapping(document.get("gameHistory"), "gameHistory")
        scheduler.history = GameHistory(
            sessions=int(history.get("sessions", 1)),
            total_wins=int(history.get("totalWins", 0)),
            total_races=int(history.get("totalRaces", 0)),
            best_time=history.get("bestTime"),
            careers_completed=int(history.get("careersCompleted", 0)),
        )
        scheduler.phase = _phase_from_document(document.get("gameState"), scheduler)
    except (AttributeError, KeyError, TypeError, ValueError, SaveFormatError, ScheduleError, InvalidRaceConfiguration) as e:
        return LoadResult(False, f"Save data is corrupted: {e}")

    message = "Legacy save upgraded with a regenerated rival roster" if upgraded else "Career loaded"
    if scheduler.config.verbose:
        print(f"{message} for {scheduler.player.name} (turn {scheduler.turn})")
    return LoadResult(True, message, scheduler, upgraded)


def _regenerate_roster(scheduler: CareerScheduler) -> RivalRoster:
    roster = RivalRoster(scheduler.config, scheduler.schedule, scheduler.rng, scheduler.name_supplier)
    roster.generate_roster(scheduler.player)
    for turn in range(1, scheduler.turn):
        roster.progress_rivals(turn)
    return roster


def _phase_from_document(state: Optional[str], scheduler: CareerScheduler) -> GamePhase:
    try:
        phase = GamePhase(state) if state else None
    except ValueError:
        phase = None
    if phase is GamePhase.RACE_RESULTS:
        return phase
    scheduler.sync_phase()
    return scheduler.phase


def save_career(path: Path, scheduler: CareerScheduler) -> Dict[str, Any]:
    document = build_save_document(scheduler)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    return document


def load_career(
    path: Path,
    config: Optional[CareerConfig] = None,
    rng: Optional[UniformSource] = None,
    name_supplier: Optional[Callable[[], str]] = None,
) -> LoadResult:
    path = Path(path)
    if not path.exists():
        return LoadResult(False, f"No save file at {path}")
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        print(f"Error: Could not read save file {path}: {e}")
        return LoadResult(False, f"Save file is unreadable: {e}")
    return load_career_document(document, config, rng, name_supplier)
