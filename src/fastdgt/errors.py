"""Exception taxonomy shared by the transform engine."""

from __future__ import annotations


class DGTError(ValueError):
    """Base class for invalid transform requests."""


class IncompatibleLatticeError(DGTError):
    """Raised when ``(L, a, M, lt)`` violates a divisibility constraint."""


class NoShearFoundError(DGTError):
    """Raised when no integer shear maps the lattice onto a rectangular one."""


class ShapeMismatchError(DGTError):
    """Raised when array dimensions do not match the lattice contract."""


class LatticeIndexingError(RuntimeError, DGTError):
    """Raised when the shear re-indexing is not an exact bijection.

    This signals an internal defect: the map is exact for every shear
    returned by :func:`fastdgt.shear.find_shear`.
    """
