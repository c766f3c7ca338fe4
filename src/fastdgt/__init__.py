"""fastdgt public API."""

from .configs import load_yaml, save_yaml
from .errors import (
    DGTError,
    IncompatibleLatticeError,
    LatticeIndexingError,
    NoShearFoundError,
    ShapeMismatchError,
)
from .factorization import defactorize, factorize
from .lattice import LatticeParameters, admissible_length, minimal_length
from .logging_utils import JsonlLogger, configure_logging, log_steps_jsonl
from .rectangular import analyze, dgt, idgt, synthesize
from .shear import (
    ShearParameters,
    find_shear,
    nonsep_analyze,
    nonsep_synthesize,
    shear_analyze,
    shear_synthesize,
)
from .streaming import (
    StreamingOverlapEngine,
    StreamState,
    StreamStatus,
    close_stream,
    iter_buffers,
    next_block,
    open_stream,
    open_stream_from_config,
)

__all__ = [
    "LatticeParameters",
    "minimal_length",
    "admissible_length",
    "factorize",
    "defactorize",
    "analyze",
    "synthesize",
    "dgt",
    "idgt",
    "ShearParameters",
    "find_shear",
    "shear_analyze",
    "shear_synthesize",
    "nonsep_analyze",
    "nonsep_synthesize",
    "StreamingOverlapEngine",
    "StreamState",
    "StreamStatus",
    "open_stream",
    "open_stream_from_config",
    "next_block",
    "close_stream",
    "iter_buffers",
    "DGTError",
    "IncompatibleLatticeError",
    "NoShearFoundError",
    "ShapeMismatchError",
    "LatticeIndexingError",
    "load_yaml",
    "save_yaml",
    "JsonlLogger",
    "configure_logging",
    "log_steps_jsonl",
]
