"""Walnut/Zak factorization of windows and signals.

For ``L = c*d*p*q`` every sample index is written as
``l = r + c*x + c*p*q*s`` with ``r < c``, ``x < p*q`` and ``s < d``. Shifts by
``a = p*c`` and ``M = q*c`` never change the residue ``r``, and shifts by
``p*q`` blocks along ``s`` are diagonalized by a length-``d`` DFT. The factored
array stores that DFT for every ``(x, r)`` pair:

```text

   factored[w*p*q + x, r*d + k] = DFT_d{ g[r + c*x + c*p*q*s, w] }[k] / sqrt(d)
```
"""

from __future__ import annotations

import numpy as np
from scipy import fft as sp_fft

from .errors import ShapeMismatchError
from .lattice import LatticeParameters
from .utils import as_columns


def factorize(window: np.ndarray, a: int, M: int) -> np.ndarray:
    """Factor a window (or a signal) for the rectangular kernel.

    Parameters
    ----------
    window : ndarray of shape (L,) or (L, R)
        Window(s) of full length ``L``.
    a : int
        Time hop.
    M : int
        Number of channels.

    Returns
    -------
    ndarray of shape (p*q*R, c*d)
        Complex factored window.
    """
    g = as_columns(window, "window")
    L, R = g.shape
    lat = LatticeParameters(L, a, M)
    pq = lat.p * lat.q
    blocks = g.reshape(lat.d, pq, lat.c, R)
    spec = sp_fft.fft(blocks, axis=0, norm="ortho")
    return spec.transpose(3, 1, 2, 0).reshape(R * pq, lat.c * lat.d)


def defactorize(factored: np.ndarray, L: int, a: int, M: int) -> np.ndarray:
    """Rebuild the time-domain window(s) from a factored array.

    Returns
    -------
    ndarray of shape (L, R)
    """
    lat = LatticeParameters(L, a, M)
    gf = split_factored(factored, lat)
    spec = gf.transpose(3, 1, 2, 0)
    return sp_fft.ifft(spec, axis=0, norm="ortho").reshape(L, gf.shape[0])


def split_factored(factored: np.ndarray, lat: LatticeParameters) -> np.ndarray:
    """View a factored array as ``(R, p*q, c, d)``."""
    gf = np.asarray(factored)
    pq = lat.p * lat.q
    if gf.ndim != 2 or gf.shape[1] != lat.c * lat.d or gf.shape[0] % pq != 0:
        raise ShapeMismatchError(
            f"factored array must have shape (p*q*R, c*d) = ({pq}*R, "
            f"{lat.c * lat.d}) for L={lat.L}, a={lat.a}, M={lat.M}; "
            f"got {gf.shape}"
        )
    return gf.reshape(gf.shape[0] // pq, pq, lat.c, lat.d)
