"""Typed state shared by the streaming engine and its callers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterator

import numpy as np

from ..shear import ShearParameters

if TYPE_CHECKING:
    from .engine import StreamingOverlapEngine


class StreamStatus(str, Enum):
    """Life cycle of one stream."""

    IDLE = "idle"
    PRIMING = "priming"
    STREAMING = "streaming"
    DRAINING = "draining"
    DONE = "done"


@dataclass(slots=True)
class StreamState:
    """Mutable runtime state of one stream.

    The state is owned by a single stream handle and is only mutated by
    :class:`~fastdgt.streaming.engine.StreamingOverlapEngine`.

    Parameters
    ----------
    engine:
        Engine holding the lattice, window and buffer geometry.
    source:
        Iterator of signal buffers of shape ``(buf_len,)`` or
        ``(buf_len, W)``.
    status:
        Current life-cycle state.
    shear:
        Shear solution for the working length, set when priming.
    overlap:
        Coefficient frames of the last buffer that still receive
        contributions from future buffers, shape ``(M, n_overlap, W)``.
    n_channels:
        Number of signal channels, fixed by the first buffer.
    block_index:
        Number of emitted blocks.
    samples_read:
        Number of signal samples consumed from ``source``.
    exhausted:
        ``True`` once the source ended (including a short final buffer).
    closed:
        ``True`` after :meth:`StreamingOverlapEngine.close`.
    """

    engine: StreamingOverlapEngine
    source: Iterator[np.ndarray]
    status: StreamStatus = StreamStatus.IDLE
    shear: ShearParameters | None = None
    overlap: np.ndarray | None = None
    n_channels: int | None = None
    block_index: int = 0
    samples_read: int = 0
    exhausted: bool = False
    closed: bool = False

    def summary(self) -> dict[str, Any]:
        """Return a JSON-serializable snapshot for block logging."""
        return {
            "status": self.status.value,
            "block_index": self.block_index,
            "samples_read": self.samples_read,
            "n_channels": self.n_channels,
            "shear": None if self.shear is None else list(self.shear),
        }
