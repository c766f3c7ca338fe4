"""Placement of FIR windows on a periodic transform length."""

from __future__ import annotations

import numpy as np

from ..errors import ShapeMismatchError
from ..utils import as_columns


def fir_to_long(window: np.ndarray, L: int) -> np.ndarray:
    """Zero-extend a centered FIR window to length ``L``.

    The first ``ceil(gl/2)`` taps (centre and right half) are kept at the
    start and the remaining taps are wrapped to the end, so the window stays
    centred at sample 0 of the periodic domain.
    """
    g = as_columns(window, "window")
    gl, R = g.shape
    if gl > L:
        raise ShapeMismatchError(f"FIR window of length {gl} does not fit in L={L}")
    head = (gl + 1) // 2
    out = np.zeros((L, R), dtype=g.dtype)
    out[:head] = g[:head]
    out[L - (gl - head) :] = g[head:]
    if np.ndim(window) == 1:
        return out[:, 0]
    return out

