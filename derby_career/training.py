from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import get_config
from .engine import rng as rng_helpers
from .engine.data_models import STAT_NAMES, Horse
from .engine.horse import (
    add_stat_points,
    change_bond,
    change_energy,
    change_health,
    increase_stat,
    shift_form,
    training_multiplier,
)
from .engine.rng import UniformSource


@dataclass(frozen=True)
class TrainingType:
    key: str
    label: str
    energy_cost: int
    base_gain: int = 0
    stat: Optional[str] = None
    description: str = ""


def training_types() -> Dict[str, TrainingType]:
    return {
        "speed": TrainingType(
            key="speed",
            label="Speed Training",
            energy_cost=int(get_config("training.speed.energy_cost", 15)),
            base_gain=int(get_config("training.speed.base_gain", 8)),
            stat="speed",
            description="Sprint drills to improve top speed",
        ),
        "stamina": TrainingType(
            key="stamina",
            label="Stamina Training",
            energy_cost=int(get_config("training.stamina.energy_cost", 10)),
            base_gain=int(get_config("training.stamina.base_gain", 10)),
            stat="stamina",
            description="Long gallops to build endurance",
        ),
        "power": TrainingType(
            key="power",
            label="Power Training",
            energy_cost=int(get_config("training.power.energy_cost", 15)),
            base_gain=int(get_config("training.power.base_gain", 8)),
            stat="power",
            description="Hill work for acceleration",
        ),
        "rest": TrainingType(
            key="rest",
            label="Rest Day",
            energy_cost=0,
            description="Recover energy and maybe lift form",
        ),
        "media": TrainingType(
            key="media",
            label="Media Day",
            energy_cost=0,
            description="Light public work that strengthens your bond",
        ),
    }


@dataclass
class TrainingOutcome:
    success: bool
    training: str
    message: str = ""
    gains: Dict[str, int] = field(default_factory=dict)
    energy_change: int = 0
    bond_change: int = 0
    health_change: int = 0
    form: str = ""


def can_train(horse: Horse, kind: str) -> Optional[str]:
    """Return a refusal reason, or None when the session may go ahead."""
    types = training_types()
    if kind not in types:
        return f"Unknown training type: {kind}"
    cost = types[kind].energy_cost
    if horse.condition.energy < cost:
        return f"Not enough energy (need {cost}, have {horse.condition.energy})"
    return None


def perform_training(horse: Horse, kind: str, rng: Optional[UniformSource] = None) -> TrainingOutcome:
    rng = rng_helpers.resolve(rng)
    reason = can_train(horse, kind)
    if reason:
        return TrainingOutcome(success=False, training=kind, message=reason, form=horse.condition.form)

    option = training_types()[kind]
    outcome = TrainingOutcome(success=True, training=kind, gains={name: 0 for name in STAT_NAMES})
    energy_before = horse.condition.energy
    bond_before = horse.player.bond if horse.player else 0

    if kind == "rest":
        legacy_energy = horse.player.legacy_bonuses.energy if horse.player else 0
        change_energy(horse, int(get_config("training.rest.energy_gain", 30)) + legacy_energy)
        if rng_helpers.chance(rng, float(get_config("training.rest.health_chance", 0.3))):
            outcome.health_change = change_health(horse, int(get_config("training.rest.health_gain", 5)))
        if rng_helpers.chance(rng, float(get_config("training.rest.form_chance", 0.5))):
            shift_form(horse, 1)
        outcome.message = "Rested and recovered"
    elif kind == "media":
        change_energy(horse, int(get_config("training.media.energy_gain", 15)))
        change_bond(horse, int(get_config("training.media.bond_gain", 5)))
        outcome.message = "Media day strengthened your bond"
    else:
        change_energy(horse, -option.energy_cost)
        outcome.gains[option.stat] = increase_stat(horse, option.stat, option.base_gain, rng)
        if rng_helpers.chance(rng, float(get_config("training.secondary_chance", 0.25))):
            others = [name for name in STAT_NAMES if name != option.stat]
            secondary = rng_helpers.choice(rng, others)
            outcome.gains[secondary] += add_stat_points(horse, secondary, int(get_config("training.secondary_gain", 2)))
        change_bond(horse, int(get_config("training.bond_per_session", 1)))
        if horse.condition.energy < int(get_config("training.fatigue_threshold", 30)):
            shift_form(horse, -1)
        outcome.message = f"{option.label} complete: +{outcome.gains[option.stat]} {option.stat}"

    outcome.energy_change = horse.condition.energy - energy_before
    outcome.bond_change = (horse.player.bond if horse.player else 0) - bond_before
    outcome.form = horse.condition.form
    return outcome


def effectiveness(horse: Horse, kind: str) -> int:
    option = training_types().get(kind)
    if option is None or option.stat is None:
        return 100
    return round(training_multiplier(horse, option.stat) * 100)


def training_options(horse: Horse) -> List[Dict[str, object]]:
    options = []
    for kind, option in training_types().items():
        reason = can_train(horse, kind)
        options.append(
            {
                "type": kind,
                "label": option.label,
                "energy_cost": option.energy_cost,
                "available": reason is None,
                "reason": reason,
                "effectiveness": effectiveness(horse, kind),
                "description": option.description,
            }
        )
    return options


def recommendations(horse: Horse) -> List[Dict[str, str]]:
    tips = []
    if horse.condition.energy < 30:
        tips.append({"type": "rest", "reason": "Low energy - rest is highly recommended", "priority": "high"})

    stats = horse.stats.as_dict()
    weakest = min(STAT_NAMES, key=lambda name: stats[name])
    if stats[weakest] < 50:
        tips.append({"type": weakest, "reason": f"{weakest} is your weakest stat", "priority": "medium"})

    if horse.player is not None and horse.player.bond < 60:
        tips.append({"type": "media", "reason": "A stronger bond boosts training gains", "priority": "low"})
    return tips
