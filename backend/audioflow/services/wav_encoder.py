"""Mono PCM16 WAV encoding for AudioFlow renders."""

from __future__ import annotations

import io

import numpy as np
from scipy.io import wavfile

from ..models.artifact import SAMPLE_RATE, WavArtifact

PCM16_SCALE = 32767


def to_pcm16(signal: np.ndarray) -> np.ndarray:
    """Clamp to [-1, 1], scale by 32767, round, little-endian int16 on any host."""
    scaled = np.clip(np.asarray(signal, dtype=np.float64), -1.0, 1.0) * PCM16_SCALE
    return np.round(scaled).astype("<i2")


def encode_wav(signal: np.ndarray, sample_rate: int = SAMPLE_RATE) -> WavArtifact:
    """
    44-byte RIFF/WAVE header (PCM, mono, 16-bit) followed by little-endian samples.

    scipy writes the plain 16-byte ``fmt `` chunk for integer data, so the
    layout is the canonical one with no extra chunks.
    """
    buf = io.BytesIO()
    wavfile.write(buf, sample_rate, to_pcm16(signal))
    return WavArtifact(data=buf.getvalue(), sample_rate=sample_rate)


def decode_wav(data: bytes | WavArtifact) -> tuple[int, np.ndarray]:
    """Read an artifact back as (sample_rate, float64 samples in [-1, 1])."""
    if isinstance(data, WavArtifact):
        data = data.data
    sr, pcm = wavfile.read(io.BytesIO(data))
    if pcm.ndim > 1:
        pcm = pcm.mean(axis=1)
    return sr, pcm.astype(np.float64) / PCM16_SCALE
