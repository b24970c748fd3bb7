"""Request, WAV artifact and proof records for AudioFlow."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .recipe import Recipe

SAMPLE_RATE = 44100
WAV_HEADER_BYTES = 44
BYTES_PER_SAMPLE = 2


@dataclass(frozen=True)
class SynthesisRequest:
    """One synthesis invocation. Duration is expected to be already resolved."""

    duration_sec: float
    recipe: Recipe = field(default_factory=Recipe)

    @property
    def n_samples(self) -> int:
        if not math.isfinite(self.duration_sec):
            return 0
        return max(0, int(round(self.duration_sec * SAMPLE_RATE)))


@dataclass(frozen=True)
class WavArtifact:
    data: bytes
    sample_rate: int = SAMPLE_RATE

    @property
    def n_samples(self) -> int:
        return (len(self.data) - WAV_HEADER_BYTES) // BYTES_PER_SAMPLE

    @property
    def header(self) -> bytes:
        return self.data[:WAV_HEADER_BYTES]

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Proof:
    """Provenance record derived from the encoded bytes and the recipe."""

    engine_id: str
    recipe: Recipe
    duration_sec: float
    sample_rate: int
    content_hash: str
    created_at: str
    policy: tuple[str, ...] = ()

    @property
    def short_hash(self) -> str:
        return self.content_hash[:16]

    def to_dict(self) -> dict:
        return {
            "engine_id": self.engine_id,
            "recipe": self.recipe.to_dict(),
            "duration_sec": round(self.duration_sec, 3),
            "sample_rate": self.sample_rate,
            "content_hash": self.content_hash,
            "content_hash_short": self.short_hash,
            "created_at": self.created_at,
            "policy": list(self.policy),
        }
