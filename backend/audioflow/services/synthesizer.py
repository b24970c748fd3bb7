"""
AudioFlow ambient synthesizer.

Builds a background bed from three layers:
- low-passed noise texture
- sub drone whose pitch drifts slowly (never settles into a melody)
- sparse random pulses, roughly ``pulse_density`` hits per second
Two slow modulators keep long renders from sounding static, then the bed is
faded in/out, soft clipped and RMS normalized.
"""

from __future__ import annotations

import numpy as np

from ..models.artifact import SAMPLE_RATE, SynthesisRequest
from .filters import OnePoleLowPass
from .noise import NoiseSource

NOISE_GAIN = 0.18
SUB_GAIN = 0.10
PULSE_GAIN = 0.06
DRIFT_HZ = 0.03
AMP_LFO_HZ = 0.015
MACRO_LFO_HZ = 0.007
ENVELOPE_CURVE = 1.6

CLIP_DRIVE = 1.3
# tanh(x*d)/tanh(d) passes 1.0 once |x| > 1; inputs are held just inside.
CLIP_INPUT_LIMIT = 1.0 - 1e-9

RMS_EPS = 1e-12
MAX_GAIN = 6.0
PEAK_CEILING = 0.99


def soft_clip(signal: np.ndarray | float, drive: float = CLIP_DRIVE) -> np.ndarray:
    """
    tanh(x*drive)/tanh(drive), odd and zero at zero.

    Output stays strictly inside (-1, 1) for the fixed drive of 1.3 and other
    drives up to about 5. For much larger drives tanh saturates in float64 and
    the input limit no longer keeps the result below 1.0.
    """
    if drive <= 0:
        raise ValueError(f"drive must be positive, got {drive!r}")
    x = np.clip(np.asarray(signal, dtype=np.float64), -CLIP_INPUT_LIMIT, CLIP_INPUT_LIMIT)
    return np.tanh(x * drive) / np.tanh(drive)


def envelope(n_samples: int, intro_samples: float, outro_samples: float) -> np.ndarray:
    """Curved fade-in over the first intro samples, fade-out over the last outro samples."""
    env = np.ones(n_samples)
    idx = np.arange(n_samples, dtype=np.float64)

    if intro_samples > 0:
        head = idx < intro_samples
        env[head] *= (idx[head] / intro_samples) ** ENVELOPE_CURVE

    if outro_samples > 0:
        tail = idx >= n_samples - outro_samples
        env[tail] *= ((n_samples - idx[tail]) / outro_samples) ** ENVELOPE_CURVE

    return env


def pulse_train(trials: np.ndarray, density: float, sample_rate: int = SAMPLE_RATE) -> np.ndarray:
    """One Bernoulli trial per sample, approximating a Poisson hit process at ``density`` hits/sec."""
    return np.where(trials < density / sample_rate, PULSE_GAIN, 0.0)


def synthesize(
    request: SynthesisRequest,
    noise: NoiseSource,
    lowpass: OnePoleLowPass,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """
    Render the soft-clipped (not yet normalized) bed for ``request``.

    ``noise`` and ``lowpass`` belong to this call only. Two draws are taken
    per sample, texture first and pulse trial second.
    """
    recipe = request.recipe
    n = request.n_samples
    t = np.arange(n, dtype=np.float64) / sample_rate

    draws = noise.block(n, 2)
    texture = lowpass.process(draws[:, 0] * 2.0 - 1.0) * NOISE_GAIN

    drift = 0.8 + 0.4 * np.sin(2 * np.pi * DRIFT_HZ * t)
    sub = np.sin(2 * np.pi * recipe.sub_hz * drift * t) * SUB_GAIN

    pulse = pulse_train(draws[:, 1], recipe.pulse_density, sample_rate)

    amp = 0.65 + 0.35 * np.sin(2 * np.pi * AMP_LFO_HZ * t)
    macro = 0.9 + 0.1 * np.sin(2 * np.pi * MACRO_LFO_HZ * t)

    raw = (texture + sub + pulse) * amp * macro
    raw *= envelope(n, recipe.intro_sec * sample_rate, recipe.outro_sec * sample_rate)
    return soft_clip(raw)


def rms(signal: np.ndarray) -> float:
    return float(np.sqrt(np.mean(signal * signal) + RMS_EPS))


def normalize_loudness(signal: np.ndarray, target_db: float) -> np.ndarray:
    """RMS gain toward ``target_db`` (capped at 6x), then a peak guard at 0.99."""
    if len(signal) == 0:
        return signal
    target = 10 ** (target_db / 20.0)
    gain = min(target / (rms(signal) + RMS_EPS), MAX_GAIN)
    out = signal * gain

    peak = float(np.max(np.abs(out)))
    if peak > PEAK_CEILING:
        out = out * (PEAK_CEILING / peak)
    return out
