"""Starting stat generation with breed, heritage and customization influence.

Influences are applied in a fixed order, each rounding to whole points:

1. breed tilt (small bonus/penalty where the breed is strong/weak)
2. heritage pull from sire and dam
3. hybrid vigor when the parents come from different lineages
4. inbreeding depression
5. owner customization (track, distance, running style)
6. breed stat caps, then the global [1, 100] range
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np

from . import rng as rng_helpers
from .breeds import Breed, get_breed
from .data_models import STAT_MAX, STAT_MIN, STAT_NAMES, Strategy
from .rng import UniformSource

VARIANCE_SETTINGS: Dict[str, float] = {
    "foundation": 1.0,
    "bred": 0.8,
    "customized": 0.9,
}

HERITAGE_STRENGTH: Dict[str, float] = {
    "strong": 0.15,
    "moderate": 0.10,
    "weak": 0.05,
}
POPULATION_AVERAGE = 40
PARENT_WEIGHT = 0.5

GRADE_STRENGTH: Dict[str, str] = {
    "S": "strong",
    "A": "strong",
    "B": "moderate",
    "C": "moderate",
    "D": "weak",
    "F": "weak",
}

TRACK_BIAS: Dict[str, Dict[str, int]] = {
    "turf": {"stamina": 6, "power": -2},
    "dirt": {"power": 4, "speed": 4},
}
DISTANCE_BIAS: Dict[str, Dict[str, int]] = {
    "sprint": {"speed": 12, "power": 8, "stamina": -6},
    "mile": {"speed": 6, "stamina": 6},
    "medium": {"stamina": 10, "speed": 2, "power": -2},
    "long": {"stamina": 12, "speed": -4, "power": -4},
}
STRATEGY_BIAS: Dict[str, Dict[str, int]] = {
    "front": {"speed": 5, "power": 3, "stamina": 1},
    "pace": {"speed": 2, "stamina": 2, "power": 1},
    "late": {"stamina": 5, "speed": 2, "power": 2},
}

QUALITY_TIERS = ((180, "Elite"), (150, "Superior"), (120, "Good"), (90, "Average"))

RACING_STYLE_STRATEGY = {
    "Front Runner": Strategy.FRONT,
    "Stalker": Strategy.MID,
    "Closer": Strategy.LATE,
}


@dataclass(frozen=True)
class ParentRecord:
    stats: Dict[str, int]
    career_grade: str = "C"
    lineage: str = ""

    @property
    def strength(self) -> str:
        return GRADE_STRENGTH.get(str(self.career_grade).upper(), "weak")


@dataclass(frozen=True)
class Pedigree:
    sire: Optional[ParentRecord] = None
    dam: Optional[ParentRecord] = None
    inbreeding_coefficient: float = 0.0
    pedigree_strength: float = 0.0

    @property
    def lineage(self) -> str:
        names = [p.lineage for p in (self.sire, self.dam) if p is not None and p.lineage]
        return " x ".join(names) if names else "Unknown"

    @property
    def cross_bred(self) -> bool:
        if self.sire is None or self.dam is None:
            return False
        return bool(self.sire.lineage and self.dam.lineage and self.sire.lineage != self.dam.lineage)


@dataclass(frozen=True)
class Customization:
    track_type: Optional[str] = None
    distance: Optional[str] = None
    strategy: Optional[str] = None

    def describe(self) -> str:
        preferences = []
        if self.track_type:
            preferences.append(f"{self.track_type} track")
        if self.distance:
            preferences.append(f"{self.distance} distance")
        if self.strategy:
            preferences.append(f"{self.strategy} running")
        return f"Customized for {', '.join(preferences)}" if preferences else "None"


@dataclass
class GeneratedStats:
    stats: Dict[str, int]
    attributes: Dict[str, Any]
    report: Dict[str, Any] = field(default_factory=dict)


class StatGenerator:
    def __init__(self, rng: Optional[UniformSource] = None):
        self.rng = rng_helpers.resolve(rng)

    def generate(
        self,
        breed: str = "Thoroughbred",
        pedigree: Optional[Pedigree] = None,
        customization: Optional[Customization] = None,
        generation_type: str = "foundation",
    ) -> GeneratedStats:
        breed_profile = get_breed(breed)

        base = self.base_stats(breed_profile, generation_type)
        breed_stats = self.apply_breed_tilt(base, breed_profile)
        heritage_stats = self.apply_heritage(breed_stats, pedigree)
        vigor_stats = self.apply_hybrid_vigor(heritage_stats, pedigree)
        inbred_stats = self.apply_inbreeding(vigor_stats, pedigree)
        custom_stats = self.apply_customization(inbred_stats, customization)
        final = {
            name: int(np.clip(value, STAT_MIN, STAT_MAX))
            for name, value in breed_profile.enforce_caps(custom_stats).items()
        }

        return GeneratedStats(
            stats=final,
            attributes=self.secondary_attributes(final, breed_profile, pedigree),
            report=self.report(base, final, breed_profile, pedigree, customization, generation_type),
        )

    def base_stats(self, breed: Breed, generation_type: str) -> Dict[str, int]:
        variance = VARIANCE_SETTINGS.get(generation_type, 1.0)
        stats = {}
        for name in STAT_NAMES:
            low, high = breed.stat_window(name)
            span = high - low
            narrowed = span * variance
            adjusted_low = low + (span - narrowed) / 2
            stats[name] = round(rng_helpers.uniform(self.rng, adjusted_low, adjusted_low + narrowed))
        return stats

    @staticmethod
    def apply_breed_tilt(stats: Dict[str, int], breed: Breed) -> Dict[str, int]:
        tilted = dict(stats)
        for name, value in stats.items():
            rate = breed.growth_rate(name)
            if rate > 1.1:
                tilted[name] = round(value * 1.05)
            elif rate < 0.9:
                tilted[name] = round(value * 0.95)
        return tilted

    @staticmethod
    def apply_heritage(stats: Dict[str, int], pedigree: Optional[Pedigree]) -> Dict[str, int]:
        if pedigree is None or (pedigree.sire is None and pedigree.dam is None):
            return dict(stats)
        influenced = {}
        for name, value in stats.items():
            bonus = 0.0
            for parent in (pedigree.sire, pedigree.dam):
                if parent is None:
                    continue
                parent_stat = parent.stats.get(name, POPULATION_AVERAGE)
                bonus += (parent_stat - POPULATION_AVERAGE) * HERITAGE_STRENGTH[parent.strength] * PARENT_WEIGHT
            influenced[name] = round(value + bonus)
        return influenced

    @staticmethod
    def hybrid_vigor(stats: Dict[str, int]) -> int:
        average = sum(stats.values()) / len(stats)
        percentage = 0.02 + (average / 100) * 0.03
        return round(average * percentage / 3)

    def apply_hybrid_vigor(self, stats: Dict[str, int], pedigree: Optional[Pedigree]) -> Dict[str, int]:
        if pedigree is None or not pedigree.cross_bred:
            return dict(stats)
        bonus = self.hybrid_vigor(stats)
        return {name: round(value + bonus) for name, value in stats.items()}

    @staticmethod
    def apply_inbreeding(stats: Dict[str, int], pedigree: Optional[Pedigree]) -> Dict[str, int]:
        if pedigree is None or pedigree.inbreeding_coefficient <= 0:
            return dict(stats)
        depression = pedigree.inbreeding_coefficient * 0.5
        return {name: round(value * (1 - depression)) for name, value in stats.items()}

    @staticmethod
    def apply_customization(stats: Dict[str, int], customization: Optional[Customization]) -> Dict[str, int]:
        biased = dict(stats)
        if customization is None:
            return biased
        selections = (
            (TRACK_BIAS, customization.track_type),
            (DISTANCE_BIAS, customization.distance),
            (STRATEGY_BIAS, customization.strategy),
        )
        for table, key in selections:
            if not key:
                continue
            deltas = table.get(key.lower())
            if deltas is None:
                print(f"Warning: Unknown customization option '{key}' ignored.")
                continue
            for name, delta in deltas.items():
                biased[name] += delta
        return biased

    def secondary_attributes(
        self, stats: Dict[str, int], breed: Breed, pedigree: Optional[Pedigree]
    ) -> Dict[str, Any]:
        total = sum(stats.values())
        values = np.array([stats[name] for name in STAT_NAMES], dtype=float)
        average = float(values.mean())
        balance = max(0.0, 1 - float(values.std()) / average) if average else 0.0

        turf, dirt = breed.surface_preference("turf"), breed.surface_preference("dirt")
        if abs(turf - dirt) < 0.02:
            track_preference = "balanced"
        else:
            track_preference = "turf" if turf > dirt else "dirt"

        if stats["speed"] / total > 0.4:
            distance_aptitude = "sprint"
        elif stats["stamina"] / total > 0.4:
            distance_aptitude = "distance"
        else:
            distance_aptitude = "mile"

        if stats["speed"] > max(stats["stamina"], stats["power"]):
            racing_style = "Front Runner"
        elif stats["stamina"] > max(stats["speed"], stats["power"]):
            racing_style = "Closer"
        else:
            racing_style = "Stalker"

        return {
            "track_preference": track_preference,
            "distance_aptitude": distance_aptitude,
            "racing_style": racing_style,
            "suggested_strategy": RACING_STYLE_STRATEGY[racing_style],
            "growth_potential": round(
                sum((breed.stat_cap(name) - stats[name]) * breed.growth_rate(name) for name in STAT_NAMES)
            ),
            "training_efficiency": {
                name: breed.growth_rate(name) * (1 - stats[name] / breed.stat_cap(name)) for name in STAT_NAMES
            },
            "dominant_trait": max(STAT_NAMES, key=lambda name: stats[name]),
            "balance_score": balance,
            "heritage_strength": pedigree.pedigree_strength if pedigree else 0,
            "genetic_diversity": max(0.0, 1 - pedigree.inbreeding_coefficient) if pedigree else 1.0,
        }

    @staticmethod
    def quality_tier(stats: Dict[str, int]) -> str:
        total = sum(stats.values())
        for threshold, tier in QUALITY_TIERS:
            if total >= threshold:
                return tier
        return "Below Average"

    def report(
        self,
        base: Dict[str, int],
        final: Dict[str, int],
        breed: Breed,
        pedigree: Optional[Pedigree],
        customization: Optional[Customization],
        generation_type: str,
    ) -> Dict[str, Any]:
        strengths: List[str] = [name.capitalize() for name in STAT_NAMES if final[name] >= 50]
        weaknesses: List[str] = [name.capitalize() for name in STAT_NAMES if final[name] <= 30]
        return {
            "type": generation_type,
            "breed": breed.name,
            "progression": {
                "base": dict(base),
                "final": dict(final),
                "total_gain": {name: final[name] - base[name] for name in STAT_NAMES},
            },
            "influences": {
                "breed": f"{breed.name} breed characteristics applied",
                "heritage": f"{pedigree.lineage} bloodline influence" if pedigree else "None - Foundation horse",
                "customization": customization.describe() if customization else "None - Random generation",
            },
            "quality": {
                "total_stats": sum(final.values()),
                "tier": self.quality_tier(final),
                "strengths": strengths,
                "weaknesses": weaknesses,
            },
        }
