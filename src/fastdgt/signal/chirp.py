"""Periodic discrete chirps used as lattice shears."""

from __future__ import annotations

import numpy as np


def pchirp(L: int, n: int) -> np.ndarray:
    """Return the periodic chirp ``exp(i*pi*n*l^2*(L+1)/L)``, ``l < L``.

    The chirp revolves ``n`` times around the time-frequency plane and is
    ``L``-periodic. The quadratic phase is reduced modulo ``2L`` in integer
    arithmetic before exponentiation, so the result stays accurate for long
    signals.
    """
    L = int(L)
    if L <= 0:
        raise ValueError(f"L must be positive, got {L}")
    mod = 2 * L
    factor = (int(n) * (L + 1)) % mod
    l = np.arange(L, dtype=np.int64)
    phase = ((l * l) % mod) * factor % mod
    return np.exp(1j * np.pi * phase / L)
