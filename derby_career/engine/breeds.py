from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple

from .data_models import STAT_NAMES, GrowthGrade

DEFAULT_STAT_WINDOW: Tuple[int, int] = (25, 55)


@dataclass(frozen=True)
class Breed:
    """Static breed profile: stat ceilings, growth tendencies and surface fit."""

    name: str
    stat_caps: Dict[str, int]
    growth_rates: Dict[str, float]
    surface_preferences: Dict[str, float]
    description: str = ""
    stat_windows: Dict[str, Tuple[int, int]] = field(default_factory=dict)

    def stat_cap(self, stat: str) -> int:
        return self.stat_caps.get(stat, 100)

    def growth_rate(self, stat: str) -> float:
        return self.growth_rates.get(stat, 1.0)

    def surface_preference(self, surface: str) -> float:
        return self.surface_preferences.get(surface.lower(), 1.0)

    def stat_window(self, stat: str) -> Tuple[int, int]:
        return self.stat_windows.get(stat, DEFAULT_STAT_WINDOW)

    def enforce_caps(self, stats: Dict[str, int]) -> Dict[str, int]:
        return {name: min(value, self.stat_cap(name)) for name, value in stats.items()}

    def growth_grades(self) -> Dict[str, GrowthGrade]:
        return {name: grade_for_rate(self.growth_rate(name)) for name in STAT_NAMES}


BREEDS: Dict[str, Breed] = {
    "Thoroughbred": Breed(
        name="Thoroughbred",
        stat_caps={"speed": 100, "stamina": 100, "power": 100},
        growth_rates={"speed": 1.0, "stamina": 1.0, "power": 1.0},
        surface_preferences={"turf": 1.0, "dirt": 1.0},
        description="The classic racing breed. Balanced, with no major weaknesses.",
    ),
    "Arabian": Breed(
        name="Arabian",
        stat_caps={"speed": 95, "stamina": 110, "power": 95},
        growth_rates={"speed": 0.95, "stamina": 1.25, "power": 0.95},
        surface_preferences={"turf": 1.08, "dirt": 0.96},
        description="Desert-bred endurance specialists suited to long turf races.",
    ),
    "QuarterHorse": Breed(
        name="QuarterHorse",
        stat_caps={"speed": 110, "stamina": 90, "power": 105},
        growth_rates={"speed": 1.25, "stamina": 0.85, "power": 1.15},
        surface_preferences={"turf": 0.95, "dirt": 1.08},
        description="Sprint specialists with explosive speed and power on dirt.",
    ),
}

DEFAULT_BREED = "Thoroughbred"


def get_breed(name: str) -> Breed:
    if not name:
        return BREEDS[DEFAULT_BREED]
    for key, breed in BREEDS.items():
        if key.lower() == name.replace(" ", "").lower():
            return breed
    raise ValueError(f"Unknown breed: {name}")


def grade_for_rate(rate: float) -> GrowthGrade:
    if rate >= 1.4:
        return GrowthGrade.S
    if rate >= 1.15:
        return GrowthGrade.A
    if rate >= 0.95:
        return GrowthGrade.B
    if rate >= 0.8:
        return GrowthGrade.C
    return GrowthGrade.D
