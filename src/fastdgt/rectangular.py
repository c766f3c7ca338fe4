"""Fast DGT/IDGT on rectangular lattices.

Definition (frequency-invariant phase):

$$
   c_{m,n,w} = \\sum_{l=0}^{L-1} f_{l,w}\\, \\overline{g_{l-an}}\\,
   e^{-2\\pi i m l / M},
   \\qquad
   f_{l,w} = \\sum_{n=0}^{N-1}\\sum_{m=0}^{M-1} c_{m,n,w}\\, g_{l-an}\\,
   e^{2\\pi i m l / M}
$$

Procedure
---------
```text

   factor f and g with the (c, d, p, q) decomposition of (L, a, M)
   for each residue r < c and DFT bin k < d:
       Q[j, n'] = sum_k' F[j + q k'] conj(G[j + q k' - p n'])   (q x q, p terms)
   inverse length-d DFT over k gives the Walnut products P[j, n]
   length-M DFT over j gives c[:, n]
```

The synthesis runs the same steps backwards with the window blocks
un-conjugated and finishes with :func:`fastdgt.factorization.defactorize`.
"""

from __future__ import annotations

from functools import lru_cache

import numpy as np
from scipy import fft as sp_fft

from .errors import ShapeMismatchError
from .factorization import defactorize, factorize, split_factored
from .lattice import LatticeParameters
from .utils import as_columns, is_hermitian


@lru_cache(maxsize=64)
def _block_indices(p: int, q: int, d: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Index tables pairing signal blocks with shifted window blocks.

    Returns ``(x, y, phase)`` where ``x[j, k] = j + q*k`` addresses the
    signal blocks, ``y[j, k, n] = (x - p*n) mod p*q`` the window blocks, and
    ``phase`` compensates the block wrap ``floor((x - p*n) / (p*q))`` in the
    DFT domain.
    """
    pq = p * q
    j = np.arange(q)[:, None, None]
    k = np.arange(p)[None, :, None]
    n = np.arange(q)[None, None, :]
    x_full = j + q * k
    shifted = x_full - p * n
    y = shifted % pq
    wrap = (shifted - y) // pq
    freq = np.arange(d)
    phase = np.exp(2j * np.pi * wrap[..., None, None] * freq / d)
    x = x_full[:, :, 0]
    for arr in (x, y, phase):
        arr.setflags(write=False)
    return x, y, phase


def _window_blocks(gf: np.ndarray, lat: LatticeParameters) -> np.ndarray:
    """Gather window blocks as ``(R, q, p, q, c, d)``."""
    _, y, phase = _block_indices(lat.p, lat.q, lat.d)
    return gf[:, y] * phase


def _channel_fft(walnut: np.ndarray, real: bool) -> np.ndarray:
    """Length-M DFT along axis 2 of ``(R, W, M, N)`` Walnut products."""
    if not real:
        return sp_fft.fft(walnut, axis=2)
    M = walnut.shape[2]
    half = sp_fft.rfft(walnut.real, axis=2)
    out = np.empty(walnut.shape, dtype=half.dtype)
    n_half = half.shape[2]
    out[:, :, :n_half] = half
    out[:, :, n_half:] = np.conj(half[:, :, 1 : M - n_half + 1][:, :, ::-1])
    return out


def _coefficient_blocks(coefficients, lat: LatticeParameters, R: int) -> np.ndarray:
    """Return coefficients as ``(R, W, M, N)`` after validating the layout."""
    coef = np.asarray(coefficients)
    expected = (lat.M, lat.N)
    if coef.ndim < 2 or coef.shape[:2] != expected:
        raise ShapeMismatchError(
            f"coefficients must start with (M, N) = {expected}, got {coef.shape}"
        )
    if coef.ndim == 2:
        coef = coef[:, :, None]
    if coef.ndim == 3:
        if R != 1:
            raise ShapeMismatchError(
                f"coefficients for {R} windows need layout (M, N, W, R), "
                f"got {coef.shape}"
            )
        coef = coef[..., None]
    if coef.ndim != 4 or coef.shape[3] != R:
        raise ShapeMismatchError(
            f"coefficients must have layout (M, N, W, R) with R={R}, got {coef.shape}"
        )
    return coef.transpose(3, 2, 0, 1)


def analyze(signal: np.ndarray, factored_window: np.ndarray, a: int, M: int) -> np.ndarray:
    """Compute the DGT of ``signal`` on the rectangular lattice ``(a, M)``.

    Parameters
    ----------
    signal : ndarray of shape (L,) or (L, W)
        Input signal.
    factored_window : ndarray of shape (p*q*R, c*d)
        Output of :func:`fastdgt.factorization.factorize` for the same
        ``(L, a, M)``.
    a : int
        Time hop.
    M : int
        Number of channels.

    Returns
    -------
    ndarray of shape (M, N, W), or (M, N, W, R) when ``R > 1``
    """
    f = as_columns(signal, "signal")
    L, W = f.shape
    lat = LatticeParameters(L, a, M)
    gf = split_factored(factored_window, lat)
    R = gf.shape[0]
    x, _, _ = _block_indices(lat.p, lat.q, lat.d)

    ff = split_factored(factorize(f, a, M), lat)
    blocks = np.einsum(
        "wjkrz,ujknrz->uwjnrz",
        ff[:, x],
        np.conj(_window_blocks(gf, lat)),
    )
    walnut = sp_fft.ifft(blocks, axis=-1, norm="forward")
    walnut = walnut.transpose(0, 1, 2, 4, 5, 3).reshape(R, W, lat.M, lat.N)

    real = np.isrealobj(f) and is_hermitian(gf, axis=-1)
    coef = _channel_fft(walnut, real).transpose(2, 3, 1, 0)
    if R == 1:
        return coef[..., 0]
    return coef


def synthesize(
    coefficients: np.ndarray,
    factored_window: np.ndarray,
    L: int,
    a: int,
    M: int,
) -> np.ndarray:
    """Invert :func:`analyze` with a (dual) factored window.

    Parameters
    ----------
    coefficients : ndarray of shape (M, N), (M, N, W) or (M, N, W, R)
        Coefficients in canonical layout. The window axis is required when
        the factored window holds ``R > 1`` windows; the windows' syntheses
        are summed.
    factored_window : ndarray of shape (p*q*R, c*d)
        Factored synthesis window(s).
    L, a, M : int
        Transform length, hop and number of channels.

    Returns
    -------
    ndarray of shape (L, W)
    """
    lat = LatticeParameters(L, a, M)
    gf = split_factored(factored_window, lat)
    R = gf.shape[0]
    coef = _coefficient_blocks(coefficients, lat, R)
    W = coef.shape[1]
    p, q, c, d = lat.p, lat.q, lat.c, lat.d
    x, _, _ = _block_indices(p, q, d)

    walnut = sp_fft.ifft(coef, axis=2, norm="forward")
    blocks = sp_fft.fft(walnut.reshape(R, W, q, c, d, q), axis=4)
    blocks = blocks.transpose(0, 1, 2, 5, 3, 4)
    products = np.einsum("uwjnrz,ujknrz->wjkrz", blocks, _window_blocks(gf, lat))

    ff = np.empty((W, p * q, c, d), dtype=products.dtype)
    ff[:, x] = products
    return defactorize(ff.reshape(W * p * q, c * d), L, a, M)


def dgt(signal: np.ndarray, window: np.ndarray, a: int, M: int) -> np.ndarray:
    """Factor ``window`` and run :func:`analyze`."""
    f = as_columns(signal, "signal")
    g = as_columns(window, "window")
    if g.shape[0] != f.shape[0]:
        raise ShapeMismatchError(
            f"window length {g.shape[0]} does not match signal length {f.shape[0]}"
        )
    return analyze(f, factorize(g, a, M), a, M)


def idgt(coefficients: np.ndarray, window: np.ndarray, a: int, M: int) -> np.ndarray:
    """Factor ``window`` and run :func:`synthesize` at ``L = len(window)``."""
    g = as_columns(window, "window")
    L = g.shape[0]
    return synthesize(coefficients, factorize(g, a, M), L, a, M)
