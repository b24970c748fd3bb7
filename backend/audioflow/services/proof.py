from __future__ import annotations

import hashlib
from datetime import datetime, timezone

from ..models.artifact import Proof, WavArtifact
from ..models.recipe import Recipe

ENGINE_ID = "audioflow-engine-v1"
POLICY = (
    "procedurally synthesized, royalty-free background audio",
    "no recognizable melodies",
    "no artist imitation",
    "no lyrics",
    "intended for background use under speech or video",
)


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def build_proof(
    artifact: WavArtifact,
    recipe: Recipe,
    duration_sec: float,
    created_at: datetime | None = None,
) -> Proof:
    """Fingerprint the encoded bytes and attach the recipe they were made from."""
    stamp = created_at or datetime.now(timezone.utc)
    return Proof(
        engine_id=ENGINE_ID,
        recipe=recipe,
        duration_sec=float(duration_sec),
        sample_rate=artifact.sample_rate,
        content_hash=content_hash(artifact.data),
        created_at=stamp.isoformat(timespec="seconds"),
        policy=POLICY,
    )
