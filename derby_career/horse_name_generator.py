# horse_name_generator.py
# Rival display names built from the JSON lexicon in configs/horse_names.json.

from __future__ import annotations

import json
import re
from typing import Any, Dict, List, Optional, Set

from .config import NAMES_CONFIG_PATH
from .engine import rng as rng_helpers
from .engine.rng import UniformSource

TOKEN_RE = re.compile(r"\[([A-Za-z]+)\]")
ROMAN_SUFFIXES = ("II", "III", "IV", "V", "VI", "VII", "VIII", "IX", "X")
MAX_ATTEMPTS = 25


def _weighted_tier(tiers: Dict[str, Any], rng: UniformSource) -> str:
    weighted = [(label, float(spec.get("weight", 0.0)) if isinstance(spec, dict) else 0.0) for label, spec in tiers.items()]
    return rng_helpers.weighted_choice(rng, weighted)


def _fill_pattern(pattern: str, lex: Dict[str, List[str]], rng: UniformSource) -> str:
    def repl(m: re.Match) -> str:
        pool = lex.get(m.group(1)) or []
        return rng_helpers.choice(rng, pool) if pool else m.group(1)
    return TOKEN_RE.sub(repl, pattern)


def _normalize(s: str) -> str:
    return re.sub(r"\s+", " ", s.strip()).lower()


class NameGenerator:
    """Produces display names for rivals; ``generate_unique`` never repeats within one instance."""

    def __init__(
        self,
        config_path: Optional[str] = None,
        *,
        config: Optional[Dict[str, Any]] = None,
        rng: Optional[UniformSource] = None,
    ):
        self.rng = rng_helpers.resolve(rng)
        if config is None:
            path = config_path or NAMES_CONFIG_PATH
            try:
                with open(path, "r", encoding="utf-8") as f:
                    config = json.load(f)
            except (OSError, ValueError) as e:
                print(f"Warning: Could not load horse names from {path}: {e}")
                config = {}
        self.cfg = config
        self.lex = self.cfg.get("lexicons", {})
        self.tiers = self.cfg.get("tiers", {})
        self.max_length = self.cfg.get("rules", {}).get("max_length", 32)
        self.reserved = {_normalize(x) for x in self.cfg.get("reserved_names", [])}
        self.used: Set[str] = set()

    def _fits(self, name: str) -> bool:
        return bool(name) and len(name) <= self.max_length and _normalize(name) not in self.reserved

    def generate(self) -> str:
        for _ in range(12):
            if not self.tiers:
                break
            patterns = self.tiers.get(_weighted_tier(self.tiers, self.rng), {}).get("patterns", [])
            if not patterns:
                continue
            candidate = _fill_pattern(rng_helpers.choice(self.rng, patterns), self.lex, self.rng)
            if self._fits(candidate):
                return candidate
        adjectives, nouns = self.lex.get("Adjective") or [], self.lex.get("Noun") or []
        if adjectives and nouns:
            return f"{rng_helpers.choice(self.rng, adjectives)} {rng_helpers.choice(self.rng, nouns)}"
        return "Generic Horse"

    def reserve(self, name: str) -> None:
        self.used.add(_normalize(name))

    def generate_unique(self) -> str:
        name = self.generate()
        for _ in range(MAX_ATTEMPTS):
            if _normalize(name) not in self.used:
                break
            name = self.generate()
        base = name
        for suffix in ROMAN_SUFFIXES:
            if _normalize(name) not in self.used:
                break
            name = f"{base} {suffix}"
        counter = 2
        while _normalize(name) in self.used:
            name = f"{base} {counter}"
            counter += 1
        self.reserve(name)
        return name

    __call__ = generate_unique
