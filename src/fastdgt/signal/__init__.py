"""Signal processing utilities."""

from .chirp import pchirp
from .window import fir_to_long

__all__ = ["pchirp", "fir_to_long"]
