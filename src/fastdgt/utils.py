"""Array helpers shared by the transform kernels."""

from __future__ import annotations

import numpy as np

from .errors import ShapeMismatchError


def as_columns(x: np.ndarray, name: str = "input") -> np.ndarray:
    """Return ``x`` as a 2-D array with samples along the first axis.

    Parameters
    ----------
    x : array_like of shape (L,) or (L, W)
        Signal or window.
    name : str, default="input"
        Name used in error messages.

    Returns
    -------
    ndarray of shape (L, W)
    """
    arr = np.asarray(x)
    if arr.ndim == 1:
        return arr[:, None]
    if arr.ndim != 2:
        raise ShapeMismatchError(
            f"{name} must be 1-D or 2-D (samples x channels), got ndim={arr.ndim}"
        )
    if arr.shape[0] == 0:
        raise ShapeMismatchError(f"{name} must contain at least one sample")
    return arr


def is_hermitian(spec: np.ndarray, axis: int = -1) -> bool:
    """Check whether ``spec`` is the DFT of a real sequence along ``axis``.

    The comparison is relative to the largest magnitude in ``spec``, so the
    rounding error of a forward FFT of real data passes.
    """
    n = spec.shape[axis]
    mirrored = np.conj(np.take(spec, (-np.arange(n)) % n, axis=axis))
    scale = float(np.max(np.abs(spec))) if spec.size else 0.0
    return bool(np.allclose(spec, mirrored, rtol=0.0, atol=1e-12 * max(scale, 1e-300)))


def relative_error(estimate: np.ndarray, reference: np.ndarray) -> float:
    """Return ``||estimate - reference|| / ||reference||``."""
    est = np.asarray(estimate)
    ref = np.asarray(reference)
    denom = np.linalg.norm(ref.ravel())
    diff = np.linalg.norm((est - ref).ravel())
    if denom == 0.0:
        return float(diff)
    return float(diff / denom)
