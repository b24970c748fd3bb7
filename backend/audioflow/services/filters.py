from __future__ import annotations

import math

import numpy as np
from scipy.signal import lfilter

from ..models.artifact import SAMPLE_RATE


def one_pole_coefficient(cutoff_hz: float, sample_rate: int = SAMPLE_RATE) -> float:
    """a = exp(-2*pi*fc/fs), inside (0, 1) for any positive cutoff."""
    if not math.isfinite(cutoff_hz) or cutoff_hz <= 0:
        raise ValueError(f"cutoff must be a positive frequency, got {cutoff_hz!r}")
    return math.exp(-2.0 * math.pi * cutoff_hz / sample_rate)


class OnePoleLowPass:
    """Single-pole IIR low-pass, y = a*y + (1 - a)*x, starting from y = 0."""

    def __init__(self, cutoff_hz: float, sample_rate: int = SAMPLE_RATE):
        self.cutoff_hz = float(cutoff_hz)
        self.sample_rate = sample_rate
        self.a = one_pole_coefficient(self.cutoff_hz, sample_rate)
        self.y = 0.0

    def step(self, x: float) -> float:
        self.y = self.a * self.y + (1.0 - self.a) * x
        return self.y

    def process(self, signal: np.ndarray) -> np.ndarray:
        """Filter a whole block, continuing from (and updating) the current state."""
        signal = np.asarray(signal, dtype=np.float64)
        if signal.size == 0:
            return signal.copy()
        b = [1.0 - self.a]
        a = [1.0, -self.a]
        out, zf = lfilter(b, a, signal, zi=[self.a * self.y])
        self.y = float(out[-1])
        return out
