"""
Recipe providers for AudioFlow.

A provider turns (topic, category, duration) into an untrusted plan dict.
``DefaultProvider`` answers from static tables; ``ExternalProvider`` asks a
text-completion backend for JSON. Either way the plan is sanitized by
``TrackPlan.from_raw`` and its recipe re-validated before synthesis.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol

from ..models.recipe import CATEGORY_DEFAULTS, RECIPE_BOUNDS, Category, Recipe, coerce_number

logger = logging.getLogger(__name__)

MAX_TITLE = 120
MAX_TOPIC = 200
MAX_MOOD = 80
MAX_PRESET_NAME = 80
MAX_TEMPO_BPM = 240
MAX_LIST_ITEMS = 8
MAX_NOTES = 6

DO_NOT = [
    "no artist imitation",
    "no recognizable melodies",
    "no lyrics",
    "no harsh distortion",
]

CATEGORY_PLANS = {
    Category.CALM_LOOP: {
        "mood": "calm, steady, unobtrusive",
        "tempo_bpm": 80,
        "instruments": ["warm pad", "air texture", "sub drone"],
    },
    Category.DOCUMENTARY: {
        "mood": "reflective, spacious, neutral",
        "tempo_bpm": 90,
        "instruments": ["dark pad", "low drone", "soft noise bed"],
    },
    Category.UPBEAT_SHORTS: {
        "mood": "energetic, light, positive",
        "tempo_bpm": 110,
        "instruments": ["bright noise texture", "light pulses", "bass pad"],
    },
}

SYSTEM_PROMPT = " ".join(
    [
        "You are an audio-for-video background track planning engine.",
        "Return ONLY JSON. No markdown, no code fences.",
        "Goal: a safe, generic, non-infringing ambient bed for monetizable videos.",
        "Do NOT imitate any artist or existing song. Avoid distinctive melodies.",
        "Keep it unobtrusive; prioritize watch-time and focus.",
    ]
)


class RecipeProviderError(RuntimeError):
    """The provider could not produce a usable plan."""


class RecipeProvider(Protocol):
    name: str

    def plan(self, topic: str, category: Category, duration_sec: float) -> dict[str, Any]:
        ...


def default_title(topic: str) -> str:
    return f"AudioFlow BGM: {topic or 'Untitled'}"


def extract_json_object(text: Any) -> dict | None:
    """Parse the outermost ``{...}`` in ``text``; None when there is none."""
    if not isinstance(text, str):
        return None
    first = text.find("{")
    last = text.rfind("}")
    if first == -1 or last <= first:
        return None
    try:
        parsed = json.loads(text[first:last + 1])
    except (ValueError, RecursionError):
        return None
    return parsed if isinstance(parsed, dict) else None


def _str_list(value: Any, limit: int) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value[:limit]]


@dataclass(frozen=True)
class TrackPlan:
    title: str
    category: Category
    topic: str
    recipe: Recipe
    loopable: bool = True
    mood: str = ""
    tempo_bpm: int = 80
    instruments: list[str] = field(default_factory=list)
    do_not: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @classmethod
    def from_raw(cls, raw: Any, topic: str, category: Category, extra_notes: list[str] | None = None) -> TrackPlan:
        """Sanitize an untrusted plan; never raises."""
        if not isinstance(raw, dict):
            raw = {}
        prompt = raw.get("prompt") if isinstance(raw.get("prompt"), dict) else {}
        recipe_fields = dict(raw.get("recipe") if isinstance(raw.get("recipe"), dict) else raw)
        if isinstance(recipe_fields.get("preset_name"), str):
            recipe_fields["preset_name"] = recipe_fields["preset_name"].strip()[:MAX_PRESET_NAME]

        default_tempo = CATEGORY_PLANS[category]["tempo_bpm"]
        tempo = coerce_number(raw.get("tempo_bpm", prompt.get("tempo_bpm")), default_tempo)
        if not 0 < tempo <= MAX_TEMPO_BPM:
            tempo = default_tempo

        notes = _str_list(raw.get("notes"), MAX_NOTES)
        if extra_notes:
            notes = (notes + list(extra_notes))[-MAX_NOTES:]

        return cls(
            title=str(raw.get("title") or default_title(topic))[:MAX_TITLE],
            category=category,
            topic=topic,
            recipe=Recipe.validate(recipe_fields, category),
            loopable=category != Category.UPBEAT_SHORTS,
            mood=str(raw.get("mood") or prompt.get("mood") or "")[:MAX_MOOD],
            tempo_bpm=int(round(tempo)),
            instruments=_str_list(raw.get("instruments", prompt.get("instruments")), MAX_LIST_ITEMS),
            do_not=_str_list(raw.get("do_not", prompt.get("do_not")), MAX_LIST_ITEMS),
            notes=notes,
        )


class DefaultProvider:
    """Static plan per category. Always succeeds."""

    name = "default"

    def plan(self, topic: str, category: Category, duration_sec: float) -> dict[str, Any]:
        table = CATEGORY_PLANS[category]
        return {
            "title": default_title(topic),
            "preset_name": category.value,
            "duration_sec": duration_sec,
            "mood": table["mood"],
            "tempo_bpm": table["tempo_bpm"],
            "instruments": list(table["instruments"]),
            "do_not": list(DO_NOT),
            **CATEGORY_DEFAULTS[category],
        }


class ExternalProvider:
    """
    Plan from a text-completion backend.

    ``complete(system_prompt, user_message) -> str`` is injected by the
    caller (an LLM client, a test double...). Transport errors and replies
    without a JSON object surface as ``RecipeProviderError``.
    """

    name = "external"

    def __init__(self, complete: Callable[[str, str], str]):
        self.complete = complete

    def build_request(self, topic: str, category: Category, duration_sec: float) -> str:
        bounds = {name: [lo, hi] for name, (lo, hi) in RECIPE_BOUNDS.items()}
        return json.dumps(
            {
                "topic": topic,
                "preset": category.value,
                "duration_sec": duration_sec,
                "required_keys": [
                    "title",
                    "preset_name",
                    "mood",
                    "tempo_bpm",
                    "instruments[]",
                    "do_not[]",
                    "notes[]",
                    *bounds.keys(),
                ],
                "recipe_bounds": bounds,
            }
        )

    def plan(self, topic: str, category: Category, duration_sec: float) -> dict[str, Any]:
        try:
            reply = self.complete(SYSTEM_PROMPT, self.build_request(topic, category, duration_sec))
        except Exception as exc:
            raise RecipeProviderError(f"completion failed: {exc}") from exc
        parsed = extract_json_object(reply)
        if parsed is None:
            raise RecipeProviderError("completion returned no JSON object")
        return parsed


def resolve_plan(
    topic: Any,
    category: Any,
    duration_sec: float,
    provider: RecipeProvider | None = None,
) -> TrackPlan:
    """
    Ask ``provider`` for a plan, falling back to ``DefaultProvider`` on any failure.

    The fallback is recorded in the plan notes.
    """
    topic = str(topic or "")[:MAX_TOPIC]
    cat = Category.parse(category)
    provider = provider or DefaultProvider()
    name = getattr(provider, "name", type(provider).__name__)
    try:
        raw = provider.plan(topic, cat, duration_sec)
        return TrackPlan.from_raw(raw, topic, cat)
    except Exception as exc:
        logger.warning("provider %s failed, using default plan: %s", name, exc)
        raw = DefaultProvider().plan(topic, cat, duration_sec)
        note = f"{name} provider failed -> fallback plan. ({str(exc)[:80]})"
        return TrackPlan.from_raw(raw, topic, cat, extra_notes=[note])
