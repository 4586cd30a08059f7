from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

load_dotenv()

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_CONFIG_PATH = REPO_ROOT / "configs" / "game_balance.json"
NAMES_CONFIG_PATH = REPO_ROOT / "configs" / "horse_names.json"


def _config_path() -> Path:
    override = os.getenv("DERBY_BALANCE_CONFIG")
    return Path(override) if override else DEFAULT_CONFIG_PATH


def load_config(path: Optional[Path] = None):
    """
    Loads the game balance config file.
    """
    config_path = path or _config_path()
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        print(f"Error: Could not find config file at {config_path}")
        return None
    except Exception as e:
        print(f"Error: Could not parse config file {config_path}: {e}")
        return None


# Loaded once on first import
BALANCE_CONFIG = load_config()


def get_config(key_path, default=None):
    """
    Safely gets a value from the loaded config using a 'dot.path'.
    Example: get_config('career.max_turns')
    """
    if not BALANCE_CONFIG:
        return default

    try:
        value = BALANCE_CONFIG
        for key in key_path.split("."):
            value = value[key]
        return value
    except (KeyError, TypeError):
        print(f"Warning: Could not find config key: {key_path}")
        return default


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        print(f"Warning: Ignoring non-integer {name}={value!r}")
        return default


DEFAULT_RACE_SCHEDULE: List[Dict[str, Any]] = [
    {"turn": 4, "name": "Maiden Sprint", "race_type": "SPRINT", "surface": "DIRT", "weather": "CLEAR", "prize_pool": 5000},
    {"turn": 9, "name": "Mile Championship", "race_type": "MILE", "surface": "TURF", "weather": "CLEAR", "prize_pool": 10000},
    {"turn": 15, "name": "Dirt Stakes", "race_type": "MEDIUM", "surface": "DIRT", "weather": "RAIN", "prize_pool": 20000},
    {"turn": 24, "name": "Turf Cup Final", "race_type": "LONG", "surface": "TURF", "weather": "FAST", "prize_pool": 50000},
]


@dataclass
class CareerConfig:
    """Runtime settings handed to the roster and the career scheduler."""

    max_turns: int = 24
    roster_size: int = 24
    field_size: int = 8
    rival_base_gain: int = 3
    verbose: bool = False
    race_schedule: List[Dict[str, Any]] = field(default_factory=lambda: [dict(r) for r in DEFAULT_RACE_SCHEDULE])

    @classmethod
    def from_balance_config(cls) -> "CareerConfig":
        schedule = get_config("career.race_schedule", None) or DEFAULT_RACE_SCHEDULE
        return cls(
            max_turns=_env_int("DERBY_MAX_TURNS", int(get_config("career.max_turns", 24))),
            roster_size=int(get_config("roster.size", 24)),
            field_size=int(get_config("race.field_size", 8)),
            rival_base_gain=int(get_config("roster.base_gain", 3)),
            verbose=_env_flag("DERBY_VERBOSE", bool(get_config("logging.verbose", False))),
            race_schedule=[dict(r) for r in schedule],
        )
