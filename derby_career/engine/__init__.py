"""
Simulation engine for the career game.

The package is split into the shared horse model, starting-stat generation,
the AI rival roster, and the race outcome calculator. The career scheduler
composes these pieces turn by turn.
"""

from .data_models import (  # noqa: F401
    Condition,
    GrowthGrade,
    Horse,
    InvalidRaceConfiguration,
    PlayerProfile,
    RaceConfig,
    RaceResult,
    RaceType,
    RivalProfile,
    ScheduledRace,
    StatBlock,
    Strategy,
    Surface,
    Weather,
)
from .horse import change_bond, change_energy, form_multiplier, increase_stat  # noqa: F401
from .race import calculate_performance, format_race_time, resolve_race  # noqa: F401
from .roster import RivalRoster, apply_rival_training, select_training  # noqa: F401
from .stat_generator import Customization, Pedigree, StatGenerator  # noqa: F401

__all__ = [
    "Condition",
    "GrowthGrade",
    "Horse",
    "InvalidRaceConfiguration",
    "PlayerProfile",
    "RaceConfig",
    "RaceResult",
    "RaceType",
    "RivalProfile",
    "ScheduledRace",
    "StatBlock",
    "Strategy",
    "Surface",
    "Weather",
    "change_bond",
    "change_energy",
    "form_multiplier",
    "increase_stat",
    "calculate_performance",
    "format_race_time",
    "resolve_race",
    "RivalRoster",
    "apply_rival_training",
    "select_training",
    "Customization",
    "Pedigree",
    "StatGenerator",
]
