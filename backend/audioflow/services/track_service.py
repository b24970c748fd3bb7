"""Service layer: plan -> render -> fixed-schema result, plus file delivery."""

from __future__ import annotations

import json
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config import EngineSettings
from ..models.artifact import Proof, SynthesisRequest, WavArtifact
from ..models.recipe import coerce_number
from .engine import render, resolve_duration
from .recipe_provider import RecipeProvider, TrackPlan, resolve_plan

logger = logging.getLogger(__name__)

BITRATE_KBPS = 1411


@dataclass(frozen=True)
class TrackResult:
    plan: TrackPlan
    artifact: WavArtifact
    proof: Proof
    file_name: str

    def to_dict(self) -> dict:
        return {
            "title": self.plan.title,
            "preset": self.plan.category.value,
            "duration_sec": self.proof.duration_sec,
            "loopable": self.plan.loopable,
            "prompt": {
                "topic": self.plan.topic,
                "mood": self.plan.mood,
                "tempo_bpm": self.plan.tempo_bpm,
                "instruments": list(self.plan.instruments),
                "do_not": list(self.plan.do_not),
            },
            "audio": {
                "format": "wav",
                "sample_rate": self.artifact.sample_rate,
                "bitrate_kbps": BITRATE_KBPS,
                "file_name": self.file_name,
                "byte_length": len(self.artifact),
            },
            "notes": list(self.plan.notes),
            "proof": self.proof.to_dict(),
        }


def artifact_file_name(now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%S")
    return f"audioflow_{stamp}_{secrets.token_hex(3)}.wav"


def requested_duration(value: Any, settings: EngineSettings) -> float:
    """Missing, non-numeric, non-finite or non-positive durations take the configured default."""
    duration = coerce_number(value, settings.default_duration_sec)
    return duration if duration > 0 else settings.default_duration_sec


def make_track(
    topic: Any = "",
    category: Any = None,
    duration_sec: Any = None,
    provider: RecipeProvider | None = None,
    settings: EngineSettings | None = None,
    seed: int | None = None,
) -> TrackResult:
    settings = settings or EngineSettings()
    duration = resolve_duration(requested_duration(duration_sec, settings), max_sec=settings.max_duration_sec)

    plan = resolve_plan(topic, category, duration, provider)
    artifact, proof = render(SynthesisRequest(duration_sec=duration, recipe=plan.recipe), seed=seed)
    logger.info(
        "made track preset=%s duration=%.1fs bytes=%d sha256=%s",
        plan.category.value,
        duration,
        len(artifact),
        proof.short_hash,
    )
    return TrackResult(plan=plan, artifact=artifact, proof=proof, file_name=artifact_file_name())


def save_track(result: TrackResult, output_dir: str | Path) -> Path:
    """Write the WAV and a sibling ``.proof.json``; returns the WAV path."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    wav_path = output_dir / Path(result.file_name).name
    wav_path.write_bytes(result.artifact.data)

    proof_path = wav_path.with_suffix(".proof.json")
    with open(proof_path, "w", encoding="utf-8") as f:
        json.dump(result.to_dict(), f, indent=2)

    logger.info("saved %s", wav_path)
    return wav_path
