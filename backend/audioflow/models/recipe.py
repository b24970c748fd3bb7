"""Recipe model for AudioFlow: the validated parameter set behind one track."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any, Mapping


class Category(str, Enum):
    CALM_LOOP = "CALM_LOOP"
    DOCUMENTARY = "DOCUMENTARY"
    UPBEAT_SHORTS = "UPBEAT_SHORTS"

    @classmethod
    def parse(cls, value: Any) -> Category:
        """Case-insensitive lookup; anything unknown becomes CALM_LOOP."""
        if isinstance(value, Category):
            return value
        name = str(value or "").strip().upper()
        try:
            return cls(name)
        except ValueError:
            return cls.CALM_LOOP


# Closed intervals, lo <= value <= hi.
RECIPE_BOUNDS: dict[str, tuple[float, float]] = {
    "noise_cutoff_hz": (900.0, 3200.0),
    "sub_hz": (35.0, 70.0),
    "pulse_density": (0.06, 0.20),
    "intro_sec": (1.0, 3.0),
    "outro_sec": (2.0, 4.0),
    "target_db": (-18.0, -14.0),
}

CATEGORY_DEFAULTS: dict[Category, dict[str, float]] = {
    Category.CALM_LOOP: {
        "noise_cutoff_hz": 1800.0,
        "sub_hz": 45.0,
        "pulse_density": 0.10,
        "intro_sec": 2.0,
        "outro_sec": 3.0,
        "target_db": -16.0,
    },
    Category.DOCUMENTARY: {
        "noise_cutoff_hz": 1400.0,
        "sub_hz": 40.0,
        "pulse_density": 0.08,
        "intro_sec": 2.5,
        "outro_sec": 3.5,
        "target_db": -17.0,
    },
    Category.UPBEAT_SHORTS: {
        "noise_cutoff_hz": 2600.0,
        "sub_hz": 55.0,
        "pulse_density": 0.18,
        "intro_sec": 1.0,
        "outro_sec": 2.0,
        "target_db": -14.5,
    },
}


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def coerce_number(value: Any, default: float) -> float:
    """Best-effort float conversion; bools, NaN and infinities count as invalid."""
    if isinstance(value, bool) or value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(number):
        return default
    return number


@dataclass(frozen=True)
class Recipe:
    """Synthesis parameters. Build through ``Recipe.validate`` to get clamping."""

    preset_name: str = Category.CALM_LOOP.value
    noise_cutoff_hz: float = 1800.0   # 900 - 3200
    sub_hz: float = 45.0              # 35 - 70
    pulse_density: float = 0.10       # 0.06 - 0.20 hits/sec
    intro_sec: float = 2.0            # 1 - 3
    outro_sec: float = 3.0            # 2 - 4
    target_db: float = -16.0          # -18 - -14 dBFS RMS

    @classmethod
    def validate(cls, data: Recipe | Mapping[str, Any] | None, category: Any = None) -> Recipe:
        """
        Coerce an untrusted field set into a Recipe.

        Never raises. Missing or malformed numbers take the category default,
        everything is clamped into ``RECIPE_BOUNDS`` and a blank preset name
        becomes the category label.
        """
        if isinstance(data, Recipe):
            data = data.to_dict()
        if not isinstance(data, Mapping):
            data = {}

        cat = Category.parse(category if category is not None else data.get("preset_name"))
        defaults = CATEGORY_DEFAULTS[cat]

        values: dict[str, Any] = {}
        for name, (lo, hi) in RECIPE_BOUNDS.items():
            values[name] = _clamp(coerce_number(data.get(name), defaults[name]), lo, hi)

        preset_name = data.get("preset_name")
        if not isinstance(preset_name, str) or not preset_name.strip():
            preset_name = cat.value
        values["preset_name"] = preset_name

        return cls(**values)

    @classmethod
    def for_category(cls, category: Any) -> Recipe:
        return cls.validate({}, category)

    def is_within_bounds(self) -> bool:
        for name, (lo, hi) in RECIPE_BOUNDS.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return False
            if not lo <= value <= hi:
                return False
        return isinstance(self.preset_name, str) and bool(self.preset_name.strip())

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}
