"""
AudioFlow render engine.

Recipe -> synthesize (call-scoped noise + low-pass) -> normalize -> WAV -> proof.
Everything mutable is created inside ``render`` so concurrent calls need no
locking.
"""

from __future__ import annotations

import logging
import math
from typing import Any

import numpy as np

from ..models.artifact import SAMPLE_RATE, Proof, SynthesisRequest, WavArtifact
from ..models.recipe import Recipe
from .filters import OnePoleLowPass
from .noise import NoiseSource
from .proof import build_proof
from .synthesizer import normalize_loudness, synthesize
from .wav_encoder import encode_wav

logger = logging.getLogger(__name__)

MIN_DURATION_SEC = 1.0


def resolve_duration(value: Any, max_sec: float | None = None) -> float:
    """
    Turn any duration into a usable positive one.

    Non-numeric, non-finite, non-positive, or too short to hold a single
    sample all become ``MIN_DURATION_SEC``. ``max_sec`` caps the result.
    """
    try:
        duration = float(value)
    except (TypeError, ValueError, OverflowError):
        duration = math.nan
    if not math.isfinite(duration) or round(duration * SAMPLE_RATE) < 1:
        logger.debug("duration %r replaced with %.1fs", value, MIN_DURATION_SEC)
        duration = MIN_DURATION_SEC
    if max_sec is not None and duration > max_sec:
        duration = float(max_sec)
    return duration


def make_request(duration_sec: Any, recipe: Recipe | dict | None, category: Any = None) -> SynthesisRequest:
    return SynthesisRequest(
        duration_sec=resolve_duration(duration_sec),
        recipe=Recipe.validate(recipe, category),
    )


def _checked(request: SynthesisRequest) -> SynthesisRequest:
    if request.n_samples < 1 or not request.recipe.is_within_bounds():
        return make_request(request.duration_sec, request.recipe)
    return request


def render_samples(request: SynthesisRequest, seed: int | None = None) -> np.ndarray:
    """Final float buffer (clipped and normalized) for ``request``."""
    request = _checked(request)
    noise = NoiseSource(seed)
    lowpass = OnePoleLowPass(request.recipe.noise_cutoff_hz, SAMPLE_RATE)
    bed = synthesize(request, noise, lowpass, SAMPLE_RATE)
    out = normalize_loudness(bed, request.recipe.target_db)
    logger.debug(
        "rendered %d samples (%.2fs) preset=%s peak=%.4f",
        len(out),
        request.duration_sec,
        request.recipe.preset_name,
        float(np.max(np.abs(out))) if len(out) else 0.0,
    )
    return out


def render(request: SynthesisRequest, seed: int | None = None) -> tuple[WavArtifact, Proof]:
    """Render, encode and fingerprint one request."""
    request = _checked(request)
    samples = render_samples(request, seed=seed)
    artifact = encode_wav(samples, SAMPLE_RATE)
    proof = build_proof(artifact, request.recipe, request.duration_sec)
    logger.debug("encoded %d bytes sha256=%s", len(artifact), proof.short_hash)
    return artifact, proof
