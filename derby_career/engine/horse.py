"""Stat, condition and bond mutation rules shared by player and rival horses."""

from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np

from . import rng as rng_helpers
from .data_models import (
    DEFAULT_FORM,
    FORM_TIERS,
    GROWTH_MULTIPLIERS,
    STAT_MAX,
    STAT_MIN,
    STAT_NAMES,
    GrowthGrade,
    Horse,
)
from .rng import UniformSource

FORM_MULTIPLIERS: Dict[str, float] = {
    "Peak Form": 1.15,
    "Good Form": 1.10,
    "Steady": 1.05,
    "Average": 1.0,
    "Off Form": 0.90,
    "Poor Form": 0.80,
}

# Older saves stored a six-name mood instead of a form tier.
LEGACY_MOOD_ALIASES: Dict[str, str] = {
    "Excellent": "Peak Form",
    "Great": "Good Form",
    "Good": "Steady",
    "Normal": "Average",
    "Tired": "Off Form",
    "Bad": "Poor Form",
}

# The oldest saves used a four-tier lowercase mood.
LEGACY_MOOD_MULTIPLIERS: Dict[str, float] = {
    "great": 1.2,
    "good": 1.0,
    "normal": 0.9,
    "bad": 0.7,
}

BOND_TIERS = ((80, 1.5), (60, 1.2), (40, 1.1))

TRAINING_VARIANCE = (0.8, 1.2)


def clamp(value: float, low: int, high: int) -> int:
    return int(np.clip(round(value), low, high))


def growth_multiplier(horse: Horse, stat: str) -> float:
    grade = horse.growth_rates.get(stat)
    if isinstance(grade, GrowthGrade):
        return GROWTH_MULTIPLIERS[grade]
    return 1.0


def form_multiplier(form: Optional[str]) -> float:
    if not form:
        return 1.0
    if form in FORM_MULTIPLIERS:
        return FORM_MULTIPLIERS[form]
    if form in LEGACY_MOOD_ALIASES:
        return FORM_MULTIPLIERS[LEGACY_MOOD_ALIASES[form]]
    return LEGACY_MOOD_MULTIPLIERS.get(str(form).lower(), 1.0)


def normalize_form(form: Optional[str]) -> str:
    """Map any known form or legacy mood name onto the six-tier scale."""
    if form in FORM_MULTIPLIERS:
        return form
    if form in LEGACY_MOOD_ALIASES:
        return LEGACY_MOOD_ALIASES[form]
    legacy = LEGACY_MOOD_MULTIPLIERS.get(str(form).lower()) if form else None
    if legacy is None:
        return DEFAULT_FORM
    # nearest tier by multiplier
    return min(FORM_TIERS, key=lambda tier: abs(FORM_MULTIPLIERS[tier] - legacy))


def bond_multiplier(horse: Horse) -> float:
    if horse.player is None:
        return 1.0
    for threshold, multiplier in BOND_TIERS:
        if horse.player.bond >= threshold:
            return multiplier
    return 1.0


def total_power(horse: Horse) -> int:
    return horse.stats.total()


def training_multiplier(horse: Horse, stat: str) -> float:
    return growth_multiplier(horse, stat) * form_multiplier(horse.condition.form) * bond_multiplier(horse)


def increase_stat(
    horse: Horse,
    name: str,
    base_gain: float,
    rng: Optional[UniformSource] = None,
) -> int:
    """Apply a training gain to one stat and return the points actually added.

    Unknown stat names are reported and ignored so a training session always
    completes.
    """
    if name not in STAT_NAMES:
        print(f"Warning: Unknown stat '{name}' for {horse.name}; gain ignored.")
        return 0

    rng = rng_helpers.resolve(rng)
    scaled = round(base_gain * training_multiplier(horse, name))
    variance = rng_helpers.uniform(rng, *TRAINING_VARIANCE)
    gain = max(1, round(scaled * variance))

    before = horse.stats.get(name)
    setattr(horse.stats, name, clamp(before + gain, STAT_MIN, STAT_MAX))
    return horse.stats.get(name) - before


def add_stat_points(horse: Horse, name: str, points: int) -> int:
    if name not in STAT_NAMES:
        print(f"Warning: Unknown stat '{name}' for {horse.name}; points ignored.")
        return 0
    before = horse.stats.get(name)
    setattr(horse.stats, name, clamp(before + points, STAT_MIN, STAT_MAX))
    return horse.stats.get(name) - before


def change_energy(horse: Horse, delta: float) -> int:
    """Clamp energy to [0, 100]. Form is left untouched."""
    before = horse.condition.energy
    horse.condition.energy = clamp(before + delta, 0, 100)
    return horse.condition.energy - before


def change_health(horse: Horse, delta: float) -> int:
    before = horse.condition.health
    horse.condition.health = clamp(before + delta, 0, 100)
    return horse.condition.health - before


def change_bond(horse: Horse, delta: float) -> int:
    if horse.player is None:
        return 0
    before = horse.player.bond
    horse.player.bond = clamp(before + delta, 0, 100)
    return horse.player.bond - before


def shift_form(horse: Horse, steps: int) -> str:
    current = normalize_form(horse.condition.form)
    index = FORM_TIERS.index(current) + steps
    horse.condition.form = FORM_TIERS[int(np.clip(index, 0, len(FORM_TIERS) - 1))]
    return horse.condition.form


def set_form_at_least(horse: Horse, form: str) -> str:
    current = normalize_form(horse.condition.form)
    if FORM_TIERS.index(current) < FORM_TIERS.index(form):
        horse.condition.form = form
    else:
        horse.condition.form = current
    return horse.condition.form


def apply_race_effects(
    horse: Horse,
    position: int,
    field_size: int,
    rng: Optional[UniformSource] = None,
) -> None:
    """Post-race fatigue plus a chance of improved form for a top-third finish."""
    rng = rng_helpers.resolve(rng)
    change_energy(horse, -(15 + rng.random() * 10))
    # racing wear never drops health below 80 on its own
    if horse.condition.health > 80:
        horse.condition.health = max(80, horse.condition.health - 2)
    if position <= max(1, field_size // 3) and rng_helpers.chance(rng, 0.5):
        shift_form(horse, 1)


def can_race(horse: Horse) -> bool:
    return horse.condition.health > 20 and horse.condition.energy > 10


def validate_horse(horse: Horse) -> List[str]:
    errors = []
    if not horse.name or not horse.name.strip():
        errors.append("Horse name is required")
    for name in STAT_NAMES:
        value = horse.stats.get(name)
        if not STAT_MIN <= value <= STAT_MAX:
            errors.append(f"{name} must be between {STAT_MIN} and {STAT_MAX}")
    if not 0 <= horse.condition.energy <= 100:
        errors.append("energy must be between 0 and 100")
    if not 0 <= horse.condition.health <= 100:
        errors.append("health must be between 0 and 100")
    if horse.player is not None:
        if not 0 <= horse.player.bond <= 100:
            errors.append("bond must be between 0 and 100")
        career = horse.player.career
        if career.races_won > career.races_run:
            errors.append("races won cannot exceed races run")
    return errors
