"""Non-separable DGT through lattice shearing.

A non-separable lattice is generated by ``(a, s)`` and ``(0, b)`` in
``Z_L x Z_L`` with ``s = b*lt1/lt2``. Multiplying signal and window by the
chirp ``pchirp(L, s1)`` shears the time-frequency plane by
``(x, o) -> (x, o + s1*x)``; multiplying their spectra by ``pchirp(L, -s0)``
shears it by ``(x, o) -> (x + s0*o, o)``. For a suitable pair ``(s0, s1)``
the sheared lattice is the rectangular lattice ``ar Z x X Z`` and the
rectangular kernel applies:

```text

   f, g <- pchirp(L, s1) * f, pchirp(L, s1) * g                    (s1 != 0)
   f, g <- IFFT(pchirp(L, -s0) * FFT(f)), ...                      (s0 != 0)
   c_rect <- DGT(f, g, ar, L/X)
   c_rect[i, j] *= exp(i*pi*phi(ar*j, X*i)/L)
   c[m, n] <- c_rect[i, j] along the inverse shear of (ar*j, X*i)
```
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterator

import numpy as np
from scipy import fft as sp_fft

from .errors import (
    IncompatibleLatticeError,
    LatticeIndexingError,
    NoShearFoundError,
    ShapeMismatchError,
)
from .lattice import LatticeParameters
from .rectangular import dgt, idgt
from .signal import pchirp
from .utils import as_columns


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ShearParameters:
    """Shear ``(s0, s1)`` and rectangular frequency step ``X`` for ``(L, a, M)``.

    The sheared lattice is rectangular with hop ``ar = a*b/X`` and
    ``Mr = L/X`` channels. Unpacking yields ``(s0, s1, X)``.
    """

    s0: int
    s1: int
    X: int
    L: int
    a: int
    M: int

    def __post_init__(self) -> None:
        if self.X <= 0 or self.L % self.M != 0:
            raise IncompatibleLatticeError(
                f"invalid shear target X={self.X} for L={self.L}, M={self.M}"
            )
        ab = self.a * (self.L // self.M)
        if ab % self.X != 0 or self.L % (ab // self.X) != 0 or self.L % self.X != 0:
            raise IncompatibleLatticeError(
                f"X={self.X} does not give an integer rectangular lattice for "
                f"L={self.L}, a={self.a}, M={self.M}"
            )

    def __iter__(self) -> Iterator[int]:
        return iter((self.s0, self.s1, self.X))

    @property
    def b(self) -> int:
        return self.L // self.M

    @property
    def ar(self) -> int:
        """Time hop of the rectangular lattice."""
        return self.a * self.b // self.X

    @property
    def br(self) -> int:
        """Frequency step of the rectangular lattice."""
        return self.X

    @property
    def Mr(self) -> int:
        return self.L // self.X

    @property
    def Nr(self) -> int:
        return self.L // self.ar


def _divisors(n: int) -> list[int]:
    small = [k for k in range(1, int(n**0.5) + 1) if n % k == 0]
    return sorted(set(small + [n // k for k in small]))


@lru_cache(maxsize=128)
def _solve_shear(L: int, a: int, M: int, lt1: int, lt2: int) -> ShearParameters:
    b = L // M
    if lt1 == 0:
        return ShearParameters(0, 0, b, L, a, M)
    s = b * lt1 // lt2
    for X in _divisors(b):
        ar = a * b // X
        if L % ar != 0:
            continue
        s1 = np.arange(np.lcm(ar, X), dtype=np.int64)
        time_ok = (s1 * a + s) % X == 0
        for s0 in range(ar):
            if (s0 * b) % ar != 0:
                continue
            ok = time_ok & (((1 + s0 * s1) * a + s0 * s) % ar == 0)
            hits = np.flatnonzero(ok)
            if hits.size:
                found = ShearParameters(s0, int(s1[hits[0]]), X, L, a, M)
                LOGGER.debug(
                    "shear for L=%d a=%d M=%d lt=(%d, %d): s0=%d s1=%d X=%d",
                    L, a, M, lt1, lt2, found.s0, found.s1, found.X,
                )
                return found
    raise NoShearFoundError(
        f"no integer shear maps the lattice a={a}, M={M}, lt=({lt1}, {lt2}) "
        f"onto a rectangular lattice at L={L}"
    )


def find_shear(L: int, a: int, M: int, lt1: int = 0, lt2: int = 1) -> ShearParameters:
    """Find ``(s0, s1, X)`` turning the lattice into a rectangular one.

    Candidates ``X`` are the divisors of ``b = L/M`` in increasing order; for
    each, ``s0 < ar`` and ``s1 < lcm(ar, X)`` are scanned and the first pair
    for which the sheared generators ``(a, s)`` and ``(0, b)`` land on
    ``ar Z x X Z`` is returned. Separable lattices give ``(0, 0, b)``.

    Raises
    ------
    IncompatibleLatticeError
        If ``L`` is not admissible for the lattice.
    NoShearFoundError
        If no integer solution exists.
    """
    lat = LatticeParameters(L, a, M, lt1, lt2)
    return _solve_shear(lat.L, lat.a, lat.M, lat.lt1, lat.lt2)


@dataclass(frozen=True)
class ShearIndexMap:
    """Placement of rectangular coefficients in the non-separable layout.

    ``rows[i, j]`` and ``cols[i, j]`` give the ``(m, n)`` position of the
    rectangular coefficient ``(i, j)``; ``phase[i, j]`` is its residual
    quadratic phase. ``offset`` is the frequency offset ``b*w(1)`` in
    samples implied by the shear.
    """

    rows: np.ndarray
    cols: np.ndarray
    phase: np.ndarray
    offset: int

    def lattice_type(self, b: int) -> tuple[int, int]:
        """Return the reduced ``(lt1, lt2)`` of the mapped lattice."""
        common = np.gcd(self.offset, b)
        return int(self.offset // common), int(b // common)


@lru_cache(maxsize=32)
def shear_index_map(L: int, a: int, M: int, s0: int, s1: int, X: int) -> ShearIndexMap:
    """Compute (and cache) the coefficient map of the shear ``(s0, s1, X)``.

    Raises
    ------
    LatticeIndexingError
        If the inverse shear does not send the rectangular lattice onto a
        non-separable lattice with hop ``a`` and ``M`` channels.
    """
    shear = ShearParameters(s0, s1, X, L, a, M)
    b, N = L // M, L // a
    mod = 2 * L

    freq, time = np.meshgrid(
        shear.br * np.arange(shear.Mr, dtype=np.int64),
        shear.ar * np.arange(shear.Nr, dtype=np.int64),
        indexing="ij",
    )

    unsheared = np.mod(time - s0 * freq, mod)
    quad = (
        (s1 % mod) * (unsheared * unsheared % mod) % mod
        + (s0 % mod) * (freq * freq % mod) % mod
    ) % mod
    phi = quad * ((L + 1) % mod) % mod
    phase = np.exp(1j * np.pi * phi / L)

    x = np.mod(unsheared, L)
    o = np.mod(freq - s1 * x, L)
    if np.any(x % a):
        raise LatticeIndexingError(
            f"shear (s0={s0}, s1={s1}, X={X}) maps coefficients off the time "
            f"grid of a={a} at L={L}"
        )
    cols = x // a
    rows = o // b
    residual = o - rows * b

    first = np.flatnonzero(cols.ravel() == 1)
    offset = int(residual.ravel()[first[0]]) if first.size else 0
    if np.any(residual != (cols * offset) % b):
        raise LatticeIndexingError(
            f"shear (s0={s0}, s1={s1}, X={X}) does not produce a lattice with "
            f"constant frequency offset at L={L}, a={a}, M={M}"
        )
    flat = rows * N + cols
    if np.unique(flat).size != flat.size:
        raise LatticeIndexingError(
            f"shear (s0={s0}, s1={s1}, X={X}) is not a bijection onto the "
            f"{M}x{N} coefficient grid"
        )
    LOGGER.debug(
        "built shear index map L=%d a=%d M=%d (s0=%d, s1=%d, X=%d)",
        L, a, M, s0, s1, X,
    )
    for arr in (rows, cols, phase):
        arr.setflags(write=False)
    return ShearIndexMap(rows=rows, cols=cols, phase=phase, offset=offset)


def _check_lattice_type(imap: ShearIndexMap, lat: LatticeParameters) -> None:
    if imap.lattice_type(lat.b) != lat.lattice_type:
        raise LatticeIndexingError(
            f"shear lattice type {imap.lattice_type(lat.b)} differs from the "
            f"requested lt={lat.lattice_type}"
        )


def _shear_signal(x: np.ndarray, s0: int, s1: int) -> np.ndarray:
    L = x.shape[0]
    if s1 != 0:
        x = x * pchirp(L, s1)[:, None]
    if s0 != 0:
        x = sp_fft.ifft(pchirp(L, -s0)[:, None] * sp_fft.fft(x, axis=0), axis=0)
    return x


def _unshear_signal(x: np.ndarray, s0: int, s1: int) -> np.ndarray:
    L = x.shape[0]
    if s0 != 0:
        x = sp_fft.ifft(
            np.conj(pchirp(L, -s0))[:, None] * sp_fft.fft(x, axis=0), axis=0
        )
    if s1 != 0:
        x = x * np.conj(pchirp(L, s1))[:, None]
    return x


def _broadcast_phase(phase: np.ndarray, ndim: int) -> np.ndarray:
    return phase.reshape(phase.shape + (1,) * (ndim - 2))


def _resolve(
    L: int, a: int, M: int, s0: int, s1: int, X: int, lt: tuple[int, int] | None
) -> tuple[ShearParameters, ShearIndexMap]:
    shear = ShearParameters(int(s0), int(s1), int(X), L, a, M)
    imap = shear_index_map(L, a, M, shear.s0, shear.s1, shear.X)
    if lt is not None:
        _check_lattice_type(imap, LatticeParameters(L, a, M, *lt))
    return shear, imap


def shear_analyze(
    signal: np.ndarray,
    window: np.ndarray,
    a: int,
    M: int,
    s0: int,
    s1: int,
    X: int,
    *,
    lt: tuple[int, int] | None = None,
) -> np.ndarray:
    """Non-separable DGT with explicit shear parameters.

    Parameters
    ----------
    signal : ndarray of shape (L,) or (L, W)
    window : ndarray of shape (L,) or (L, R)
    a, M : int
        Hop and number of channels of the non-separable lattice.
    s0, s1, X : int
        Shear solution, usually from :func:`find_shear`.
    lt : tuple of int, optional
        Expected lattice type; checked against the shear when given.

    Returns
    -------
    ndarray of shape (M, N, W), or (M, N, W, R) when ``R > 1``
    """
    f = as_columns(signal, "signal")
    g = as_columns(window, "window")
    if g.shape[0] != f.shape[0]:
        raise ShapeMismatchError(
            f"window length {g.shape[0]} does not match signal length {f.shape[0]}"
        )
    L = f.shape[0]
    lat = LatticeParameters(L, a, M)
    shear, imap = _resolve(L, a, M, s0, s1, X, lt)

    rect = dgt(
        _shear_signal(f, shear.s0, shear.s1),
        _shear_signal(g, shear.s0, shear.s1),
        shear.ar,
        shear.Mr,
    )
    rect = rect * _broadcast_phase(imap.phase, rect.ndim)
    coef = np.zeros((lat.M, lat.N) + rect.shape[2:], dtype=rect.dtype)
    coef[imap.rows, imap.cols] = rect
    return coef


def shear_synthesize(
    coefficients: np.ndarray,
    window: np.ndarray,
    a: int,
    M: int,
    s0: int,
    s1: int,
    X: int,
    *,
    lt: tuple[int, int] | None = None,
) -> np.ndarray:
    """Inverse of :func:`shear_analyze` for a (dual) synthesis window.

    Returns
    -------
    ndarray of shape (L, W) with ``L = len(window)``
    """
    g = as_columns(window, "window")
    L = g.shape[0]
    lat = LatticeParameters(L, a, M)
    coef = np.asarray(coefficients)
    if coef.ndim < 2 or coef.shape[:2] != (lat.M, lat.N):
        raise ShapeMismatchError(
            f"coefficients must start with (M, N) = {(lat.M, lat.N)}, "
            f"got {coef.shape}"
        )
    shear, imap = _resolve(L, a, M, s0, s1, X, lt)

    rect = coef[imap.rows, imap.cols]
    rect = rect * np.conj(_broadcast_phase(imap.phase, rect.ndim))
    f = idgt(rect, _shear_signal(g, shear.s0, shear.s1), shear.ar, shear.Mr)
    return _unshear_signal(f, shear.s0, shear.s1)


def nonsep_analyze(
    signal: np.ndarray,
    window: np.ndarray,
    a: int,
    M: int,
    lt1: int = 0,
    lt2: int = 1,
) -> np.ndarray:
    """DGT on the lattice ``(a, M, lt1, lt2)``.

    Coefficient ``c[m, n]`` is
    ``sum_l f[l] conj(g[l - a*n]) exp(-2*pi*i*(m + w(n))*l/M)`` with
    ``w(n) = mod(n*lt1, lt2)/lt2``. Rectangular lattices go straight to the
    rectangular kernel; others are sheared with :func:`find_shear`.
    """
    f = as_columns(signal, "signal")
    g = as_columns(window, "window")
    if g.shape[0] != f.shape[0]:
        raise ShapeMismatchError(
            f"window length {g.shape[0]} does not match signal length {f.shape[0]}"
        )
    lat = LatticeParameters(f.shape[0], a, M, lt1, lt2)
    if lat.is_separable:
        return dgt(f, g, a, M)
    s0, s1, X = find_shear(lat.L, a, M, lat.lt1, lat.lt2)
    return shear_analyze(f, g, a, M, s0, s1, X, lt=lat.lattice_type)


def nonsep_synthesize(
    coefficients: np.ndarray,
    window: np.ndarray,
    a: int,
    M: int,
    lt1: int = 0,
    lt2: int = 1,
) -> np.ndarray:
    """Inverse DGT on the lattice ``(a, M, lt1, lt2)`` at ``L = len(window)``."""
    g = as_columns(window, "window")
    lat = LatticeParameters(g.shape[0], a, M, lt1, lt2)
    if lat.is_separable:
        return idgt(coefficients, g, a, M)
    s0, s1, X = find_shear(lat.L, a, M, lat.lt1, lat.lt2)
    return shear_synthesize(coefficients, g, a, M, s0, s1, X, lt=lat.lattice_type)
