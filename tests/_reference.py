"""Direct (slow) transforms used to validate the fast kernels."""

from __future__ import annotations

import numpy as np
from scipy.signal import windows


def crand(rng: np.random.Generator, *shape: int) -> np.ndarray:
    return rng.standard_normal(shape) + 1j * rng.standard_normal(shape)


def atoms(g: np.ndarray, a: int, M: int, n: int, lt: tuple[int, int] = (0, 1)) -> np.ndarray:
    """Return the ``(M, L)`` atoms ``g[l - a*n] * exp(2*pi*i*(m + w(n))*l/M)``."""
    L = g.shape[0]
    w = ((n * lt[0]) % lt[1]) / lt[1]
    l = np.arange(L)
    m = np.arange(M)[:, None]
    return np.roll(g, a * n)[None, :] * np.exp(2j * np.pi * (m + w) * l[None, :] / M)


def ref_dgt(f, g, a, M, lt=(0, 1)):
    """Definition-based DGT returning ``(M, N, W[, R])``."""
    f = f[:, None] if f.ndim == 1 else f
    g = g[:, None] if g.ndim == 1 else g
    L, W = f.shape
    R = g.shape[1]
    N = L // a
    c = np.zeros((M, N, W, R), dtype=complex)
    for r in range(R):
        for n in range(N):
            c[:, n, :, r] = np.conj(atoms(g[:, r], a, M, n, lt)) @ f
    return c[..., 0] if R == 1 else c


def ref_idgt(c, g, a, M, lt=(0, 1)):
    """Definition-based inverse DGT returning ``(L, W)``."""
    g = g[:, None] if g.ndim == 1 else g
    L, R = g.shape
    N = L // a
    c = c[..., None] if c.ndim == 3 else c
    f = np.zeros((L, c.shape[2]), dtype=complex)
    for r in range(R):
        for n in range(N):
            f += atoms(g[:, r], a, M, n, lt).T @ c[:, n, :, r]
    return f


def frame_operator(g, a, M, lt=(0, 1)):
    """Return ``S = sum_{m,n} g_{m,n} g_{m,n}^H`` for one or more windows."""
    g = g[:, None] if g.ndim == 1 else g
    L, R = g.shape
    S = np.zeros((L, L), dtype=complex)
    for r in range(R):
        for n in range(L // a):
            T = atoms(g[:, r], a, M, n, lt).T
            S += T @ np.conj(T).T
    return S


def canonical_dual(g, a, M, lt=(0, 1)):
    """Canonical dual window(s) ``S^{-1} g``."""
    return np.linalg.solve(frame_operator(g, a, M, lt), g)


def periodic_gaussian(L: int, std: float) -> np.ndarray:
    """Gaussian of length ``L`` centred at sample 0 of the periodic domain."""
    return np.roll(windows.gaussian(L, std, sym=False), -(L // 2))


RECTANGULAR = [
    (24, 4, 6),
    (16, 4, 8),
    (144, 9, 16),
    (108, 9, 12),
    (144, 12, 24),
    (24, 6, 8),
    (135, 9, 9),
    (35, 5, 7),
    (77, 7, 11),
    (20, 1, 20),
]

# (a, M, (lt1, lt2)); tested at ten times the minimal length.
NONSEPARABLE = [
    (4, 6, (1, 2)),
    (3, 5, (1, 2)),
    (4, 6, (2, 3)),
    (4, 6, (1, 3)),
    (4, 6, (1, 4)),
]
