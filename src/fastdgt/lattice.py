"""Lattice parameters and admissible transform lengths."""

from __future__ import annotations

from dataclasses import dataclass
from math import gcd, lcm

from .errors import IncompatibleLatticeError


def lattice_type(lt1: int = 0, lt2: int = 1) -> tuple[int, int]:
    """Validate ``(lt1, lt2)`` and reduce it to lowest terms.

    Rectangular lattices (``lt1 == 0``) are normalized to ``(0, 1)``.
    """
    lt1, lt2 = int(lt1), int(lt2)
    if lt2 <= 0:
        raise IncompatibleLatticeError(f"lt2 must be positive, got {lt2}")
    if lt1 < 0 or lt1 >= lt2:
        raise IncompatibleLatticeError(
            f"lattice type must satisfy 0 <= lt1 < lt2, got ({lt1}, {lt2})"
        )
    if lt1 == 0:
        return 0, 1
    common = gcd(lt1, lt2)
    return lt1 // common, lt2 // common


def _check_positive(**values: int) -> None:
    for name, value in values.items():
        if int(value) <= 0:
            raise IncompatibleLatticeError(f"{name} must be positive, got {value}")


def minimal_length(a: int, M: int, lt1: int = 0, lt2: int = 1) -> int:
    """Return the smallest transform length admissible for the lattice.

    The time positions ``a*n`` and the frequency positions
    ``b*(m + w(n))`` close exactly on ``Z_L x Z_L`` iff ``L`` is a multiple
    of ``lt2 * lcm(a, M)``.
    """
    _check_positive(a=a, M=M)
    _, lt2 = lattice_type(lt1, lt2)
    return lt2 * lcm(int(a), int(M))


def admissible_length(Ls: int, a: int, M: int, lt1: int = 0, lt2: int = 1) -> int:
    """Return the smallest admissible transform length ``L >= Ls``."""
    Lsmallest = minimal_length(a, M, lt1, lt2)
    if Ls <= 0:
        return Lsmallest
    return -(-int(Ls) // Lsmallest) * Lsmallest


@dataclass(frozen=True)
class LatticeParameters:
    """Validated integer description of a Gabor lattice on ``Z_L``.

    Attributes
    ----------
    L:
        Transform length.
    a:
        Time hop.
    M:
        Number of frequency channels.
    lt1, lt2:
        Lattice type. The frequency offset of frame ``n`` is
        ``w(n) = mod(n*lt1, lt2) / lt2``; ``(0, 1)`` is rectangular.
    """

    L: int
    a: int
    M: int
    lt1: int = 0
    lt2: int = 1

    def __post_init__(self) -> None:
        _check_positive(L=self.L, a=self.a, M=self.M)
        lt1, lt2 = lattice_type(self.lt1, self.lt2)
        object.__setattr__(self, "lt1", lt1)
        object.__setattr__(self, "lt2", lt2)
        if self.L % self.a != 0:
            raise IncompatibleLatticeError(
                f"L={self.L} is not divisible by the hop a={self.a}"
            )
        if self.L % self.M != 0:
            raise IncompatibleLatticeError(
                f"L={self.L} is not divisible by the channel count M={self.M}"
            )
        if self.b % lt2 != 0 or self.N % lt2 != 0:
            raise IncompatibleLatticeError(
                f"L={self.L} does not close the lattice a={self.a}, M={self.M}, "
                f"lt=({lt1}, {lt2}); use a multiple of "
                f"{minimal_length(self.a, self.M, lt1, lt2)}"
            )

    @property
    def b(self) -> int:
        """Frequency step ``L / M``."""
        return self.L // self.M

    @property
    def N(self) -> int:
        """Number of time frames ``L / a``."""
        return self.L // self.a

    @property
    def c(self) -> int:
        return gcd(self.a, self.M)

    @property
    def d(self) -> int:
        return gcd(self.b, self.N)

    @property
    def p(self) -> int:
        return self.a // self.c

    @property
    def q(self) -> int:
        return self.M // self.c

    @property
    def lattice_type(self) -> tuple[int, int]:
        return self.lt1, self.lt2

    @property
    def is_separable(self) -> bool:
        return self.lt1 == 0

    @property
    def redundancy(self) -> float:
        """Number of coefficients per signal sample."""
        return self.M * self.N / self.L

    @property
    def coefficient_shape(self) -> tuple[int, int]:
        return self.M, self.N

    @property
    def factored_shape(self) -> tuple[int, int]:
        """Shape ``(p*q, c*d)`` of one factored window or signal channel."""
        return self.p * self.q, self.c * self.d

    def frequency_offsets(self) -> tuple[int, ...]:
        """Return ``b * w(n)`` in samples for ``n = 0 .. lt2-1``."""
        step = self.b // self.lt2
        return tuple(step * ((n * self.lt1) % self.lt2) for n in range(self.lt2))
