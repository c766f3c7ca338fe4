"""Streaming (block-wise) evaluation of the DGT."""

from .buffers import iter_buffers
from .engine import (
    StreamingOverlapEngine,
    close_stream,
    next_block,
    open_stream,
    open_stream_from_config,
)
from .io_models import StreamState, StreamStatus

__all__ = [
    "StreamingOverlapEngine",
    "StreamState",
    "StreamStatus",
    "open_stream",
    "open_stream_from_config",
    "next_block",
    "close_stream",
    "iter_buffers",
]
