"""Call-scoped pseudo-random source for synthesis runs."""

from __future__ import annotations

import secrets

import numpy as np

SEED_BITS = 128


class NoiseSource:
    """
    Uniform [0, 1) draws from a private PCG64 stream.

    PCG64 has period 2**128 and no zero-state lockup. Each synthesis run owns
    its own instance; when no seed is given one is taken from ``secrets`` so
    two runs never share a stream.
    """

    def __init__(self, seed: int | None = None):
        if seed is None:
            seed = secrets.randbits(64)
        self.seed = int(seed) % (1 << SEED_BITS)
        self._rng = np.random.Generator(np.random.PCG64(self.seed))

    def next(self) -> float:
        return float(self._rng.random())

    def block(self, n: int, width: int = 1) -> np.ndarray:
        """
        ``n`` rows of ``width`` draws, consumed row by row.

        Row ``i`` holds the draws a per-sample loop would take at sample ``i``.
        """
        if width == 1:
            return self._rng.random(n)
        return self._rng.random((n, width))
