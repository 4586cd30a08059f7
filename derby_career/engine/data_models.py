from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

STAT_NAMES: Tuple[str, ...] = ("speed", "stamina", "power")
STAT_MIN = 1
STAT_MAX = 100


class InvalidRaceConfiguration(ValueError):
    """Raised when a race type, surface, weather or strategy key is unknown."""


class Strategy(Enum):
    """Race running style."""

    FRONT = "FRONT"
    MID = "MID"
    LATE = "LATE"

    @classmethod
    def from_str(cls, value: str) -> "Strategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise InvalidRaceConfiguration(f"Unknown strategy: {value}") from exc


class GrowthGrade(Enum):
    """Per-stat growth aptitude."""

    S = "S"
    A = "A"
    B = "B"
    C = "C"
    D = "D"

    @property
    def multiplier(self) -> float:
        return GROWTH_MULTIPLIERS[self]

    @classmethod
    def from_str(cls, value: str) -> "GrowthGrade":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise ValueError(f"Unknown growth grade: {value}") from exc


GROWTH_MULTIPLIERS: Dict[GrowthGrade, float] = {
    GrowthGrade.S: 1.5,
    GrowthGrade.A: 1.2,
    GrowthGrade.B: 1.0,
    GrowthGrade.C: 0.8,
    GrowthGrade.D: 0.6,
}


class RaceType(Enum):
    SPRINT = "SPRINT"
    MILE = "MILE"
    MEDIUM = "MEDIUM"
    LONG = "LONG"

    @classmethod
    def from_str(cls, value: str) -> "RaceType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise InvalidRaceConfiguration(f"Unknown race type: {value}") from exc


class Surface(Enum):
    DIRT = "DIRT"
    TURF = "TURF"

    @classmethod
    def from_str(cls, value: str) -> "Surface":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise InvalidRaceConfiguration(f"Unknown surface: {value}") from exc


class Weather(Enum):
    CLEAR = "CLEAR"
    RAIN = "RAIN"
    FAST = "FAST"

    @classmethod
    def from_str(cls, value: str) -> "Weather":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError as exc:
            raise InvalidRaceConfiguration(f"Unknown weather: {value}") from exc


# Worst to best.
FORM_TIERS: Tuple[str, ...] = (
    "Poor Form",
    "Off Form",
    "Average",
    "Steady",
    "Good Form",
    "Peak Form",
)
DEFAULT_FORM = "Average"


@dataclass
class StatBlock:
    speed: int = 20
    stamina: int = 20
    power: int = 20

    def get(self, name: str) -> int:
        return getattr(self, name)

    def total(self) -> int:
        return self.speed + self.stamina + self.power

    def as_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in STAT_NAMES}


@dataclass
class Condition:
    energy: int = 100
    form: str = DEFAULT_FORM
    health: int = 100


@dataclass
class Career:
    turn: int = 1
    max_turns: int = 24
    races_won: int = 0
    races_run: int = 0
    total_training: int = 0


@dataclass
class LegacyBonuses:
    speed: int = 0
    stamina: int = 0
    power: int = 0
    energy: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {"speed": self.speed, "stamina": self.stamina, "power": self.power, "energy": self.energy}


@dataclass
class PlayerProfile:
    """Fields only the player-controlled horse carries."""

    bond: int = 0
    career: Career = field(default_factory=Career)
    legacy_bonuses: LegacyBonuses = field(default_factory=LegacyBonuses)


@dataclass
class Personality:
    trait: str = "steady"
    intensity: int = 5


@dataclass
class RivalProfile:
    """Fields only AI-controlled rivals carry."""

    training_pattern: str = "balanced"
    personality: Personality = field(default_factory=Personality)
    training_priorities: Dict[str, float] = field(default_factory=dict)
    history: Dict[int, Dict[str, Any]] = field(default_factory=dict)
    race_results: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class Horse:
    horse_id: str
    name: str
    stats: StatBlock = field(default_factory=StatBlock)
    growth_rates: Dict[str, GrowthGrade] = field(
        default_factory=lambda: {name: GrowthGrade.B for name in STAT_NAMES}
    )
    condition: Condition = field(default_factory=Condition)
    strategy: Strategy = Strategy.MID
    breed: str = "Thoroughbred"
    player: Optional[PlayerProfile] = None
    rival: Optional[RivalProfile] = None

    @property
    def is_player(self) -> bool:
        return self.player is not None

    @property
    def is_rival(self) -> bool:
        return self.rival is not None


@dataclass(frozen=True)
class RaceConfig:
    race_type: RaceType
    surface: Surface
    weather: Weather = Weather.CLEAR
    turn: int = 0
    prize_pool: int = 0
    name: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RaceConfig":
        return cls(
            race_type=RaceType.from_str(data.get("race_type", data.get("type"))),
            surface=Surface.from_str(data.get("surface")),
            weather=Weather.from_str(data.get("weather", "CLEAR")),
            turn=int(data.get("turn", 0)),
            prize_pool=int(data.get("prize_pool", data.get("prizePool", 0))),
            name=str(data.get("name", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "turn": self.turn,
            "name": self.name,
            "type": self.race_type.value,
            "surface": self.surface.value,
            "weather": self.weather.value,
            "prizePool": self.prize_pool,
        }


@dataclass(frozen=True)
class RaceEntryResult:
    horse_id: str
    name: str
    rank: int
    performance: float
    time: float
    prize: int
    strategy: Strategy


@dataclass(frozen=True)
class RaceResult:
    race: RaceConfig
    entries: Tuple[RaceEntryResult, ...]

    @property
    def winner(self) -> RaceEntryResult:
        return self.entries[0]

    @property
    def field_size(self) -> int:
        return len(self.entries)

    def entry_for(self, horse_id: str) -> Optional[RaceEntryResult]:
        for entry in self.entries:
            if entry.horse_id == horse_id:
                return entry
        return None


@dataclass
class ScheduledRace:
    """A race config on the career calendar plus its resolution state."""

    config: RaceConfig
    completed: bool = False
    results: Optional[RaceResult] = None
    completed_at: Optional[int] = None

    @property
    def turn(self) -> int:
        return self.config.turn
