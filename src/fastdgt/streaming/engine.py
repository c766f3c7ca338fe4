"""Block-wise non-separable DGT with exact overlap-add continuity."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

import numpy as np

from ..errors import ShapeMismatchError
from ..lattice import LatticeParameters
from ..logging_utils import JsonlLogger
from ..rectangular import dgt
from ..shear import find_shear, shear_analyze
from ..signal import fir_to_long
from ..utils import as_columns
from .buffers import iter_buffers
from .io_models import StreamState, StreamStatus

if TYPE_CHECKING:
    from ..config_schema import TransformConfig


LOGGER = logging.getLogger(__name__)


class StreamingOverlapEngine:
    """Streaming DGT on a (non-separable) lattice by overlap-add.

    Procedure
    ---------
    ```text

       Lext = buf_len + 2*zero_pad, shear (s0, s1, X) = find_shear(Lext, ...)
       for each buffer f_k of buf_len samples:
           c_k <- nonsep DGT of [f_k, 0, ..., 0] (length Lext), FIR window g
           rotate c_k so the frames that see samples before f_k come first
           c_k[:, :n_overlap] += overlap
           emit c_k[:, :buf_len/a]; overlap <- c_k[:, buf_len/a:]
       when the source ends: emit overlap
    ```

    Every window position touches at most ``len(g) <= 2*zero_pad`` samples,
    so the periodic transform of the padded buffer never aliases, and the
    sum of all buffer contributions equals the transform of the whole
    signal. Emitted frame ``i`` of the concatenated output is global frame
    ``i - warmup_frames``; the last ``cooldown_frames`` frames lie past the
    end of the signal.

    Parameters
    ----------
    window : ndarray of shape (gl,) or (gl, R)
        Centred FIR analysis window, ``gl <= 2*zero_pad``.
    a, M : int
        Hop and number of channels.
    lt1, lt2 : int
        Lattice type.
    buf_len : int
        Buffer length; must be an admissible transform length.
    zero_pad : int
        Zeros padded on each side of a buffer. ``buf_len + 2*zero_pad`` must
        be admissible.
    block_logger : JsonlLogger, optional
        Receives one record per emitted block.
    """

    def __init__(
        self,
        window: np.ndarray,
        a: int,
        M: int,
        lt1: int = 0,
        lt2: int = 1,
        *,
        buf_len: int,
        zero_pad: int,
        block_logger: JsonlLogger | None = None,
    ) -> None:
        if zero_pad < 0:
            raise ValueError(f"zero_pad must be non-negative, got {zero_pad}")
        self.buf_len = int(buf_len)
        self.zero_pad = int(zero_pad)
        self.Lext = self.buf_len + 2 * self.zero_pad
        self.buffer_lattice = LatticeParameters(self.buf_len, a, M, lt1, lt2)
        self.lattice = LatticeParameters(self.Lext, a, M, lt1, lt2)

        g = as_columns(window, "window")
        if g.shape[0] > 2 * self.zero_pad:
            raise ShapeMismatchError(
                f"FIR window of length {g.shape[0]} exceeds 2*zero_pad="
                f"{2 * self.zero_pad}; increase zero_pad"
            )
        self.window = fir_to_long(window, self.Lext)
        self.block_logger = block_logger

        n_frames = self.lattice.N
        split = -(-(self.buf_len + self.zero_pad) // self.a)
        self.block_frames = self.buf_len // self.a
        self.overlap_frames = n_frames - self.block_frames
        self.warmup_frames = n_frames - split
        self.cooldown_frames = self.overlap_frames - self.warmup_frames

    @property
    def a(self) -> int:
        return self.lattice.a

    @property
    def M(self) -> int:
        return self.lattice.M

    @classmethod
    def from_config(
        cls, window: np.ndarray, config: TransformConfig
    ) -> StreamingOverlapEngine:
        """Build an engine from a parsed :class:`TransformConfig`."""
        block_log = config.runtime.block_log
        buf_len, zero_pad = config.stream.resolve(config.lattice)
        return cls(
            window,
            config.lattice.a,
            config.lattice.M,
            config.lattice.lt1,
            config.lattice.lt2,
            buf_len=buf_len,
            zero_pad=zero_pad,
            block_logger=JsonlLogger(block_log) if block_log else None,
        )

    def open(self, source: Iterable[np.ndarray]) -> StreamState:
        """Start a stream over ``source`` and return its state handle."""
        LOGGER.info(
            "Opening stream: a=%d M=%d lt=%s buf_len=%d Lext=%d",
            self.a, self.M, self.lattice.lattice_type, self.buf_len, self.Lext,
        )
        return StreamState(engine=self, source=iter(source))

    def close(self, state: StreamState) -> None:
        """Stop a stream and discard its overlap."""
        state.overlap = None
        state.status = StreamStatus.DONE
        state.closed = True
        LOGGER.info(
            "Closed stream after %d blocks (%d samples)",
            state.block_index, state.samples_read,
        )

    def next_block(self, state: StreamState) -> tuple[np.ndarray, bool]:
        """Process the next buffer of ``state`` and emit a coefficient block.

        Returns
        -------
        coefficients : ndarray of shape (M, n_frames, W)
            ``buf_len/a`` frames while streaming; the retained overlap when
            the source is exhausted; no frames once the stream is done.
        more : bool
            ``False`` once the stream is complete.
        """
        if state.engine is not self:
            raise ValueError("stream state belongs to another engine")
        if state.closed:
            raise RuntimeError("stream is closed")
        if state.status is StreamStatus.DONE:
            return self._empty(state), False

        buffer = None if state.exhausted else next(state.source, None)
        if buffer is None or np.asarray(buffer).shape[0] == 0:
            return self._drain(state), False

        block = as_columns(buffer, "buffer")
        if block.shape[0] > self.buf_len:
            raise ShapeMismatchError(
                f"buffer of {block.shape[0]} samples exceeds buf_len={self.buf_len}"
            )
        if state.n_channels is None:
            state.n_channels = block.shape[1]
        elif block.shape[1] != state.n_channels:
            raise ShapeMismatchError(
                f"buffer has {block.shape[1]} channels, stream has {state.n_channels}"
            )
        if block.shape[0] < self.buf_len:
            state.exhausted = True

        if state.status is StreamStatus.IDLE:
            state.status = StreamStatus.PRIMING
            state.shear = find_shear(self.Lext, self.a, self.M, *self.lattice.lattice_type)

        padded = np.zeros((self.Lext, block.shape[1]), dtype=block.dtype)
        padded[: block.shape[0]] = block
        coef = np.roll(self._analyze(padded, state), self.warmup_frames, axis=1)
        if state.overlap is not None:
            coef[:, : self.overlap_frames] += state.overlap

        out = coef[:, : self.block_frames].copy()
        state.overlap = coef[:, self.block_frames :].copy()
        state.samples_read += block.shape[0]
        state.status = StreamStatus.STREAMING
        self._emitted(state, out)
        return out, True

    def process(self, signal: np.ndarray) -> np.ndarray:
        """Stream a whole signal and concatenate the emitted blocks."""
        state = self.open(iter_buffers(signal, self.buf_len))
        blocks = []
        more = True
        while more:
            coef, more = self.next_block(state)
            blocks.append(coef)
        return np.concatenate(blocks, axis=1)

    def fold(self, coefficients: np.ndarray, L: int) -> np.ndarray:
        """Fold warm-up and cool-down frames onto a periodic length ``L``.

        The folded array equals the one-shot transform of the concatenated
        length-``L`` signal.
        """
        N = LatticeParameters(L, self.a, self.M, *self.lattice.lattice_type).N
        coef = np.asarray(coefficients)
        lead, cool = self.warmup_frames, self.cooldown_frames
        if coef.shape[1] != N + lead + cool:
            raise ShapeMismatchError(
                f"expected {N + lead + cool} streamed frames for L={L}, "
                f"got {coef.shape[1]}"
            )
        # Streamed frame j is global frame j - lead; the padding may wrap
        # around the circle more than once when it is longer than L.
        folded = np.zeros((coef.shape[0], N) + coef.shape[2:], dtype=coef.dtype)
        np.add.at(folded, (slice(None), np.arange(-lead, N + cool) % N), coef)
        return folded

    def _analyze(self, padded: np.ndarray, state: StreamState) -> np.ndarray:
        if self.lattice.is_separable:
            return dgt(padded, self.window, self.a, self.M)
        s0, s1, X = state.shear
        return shear_analyze(
            padded, self.window, self.a, self.M, s0, s1, X,
            lt=self.lattice.lattice_type,
        )

    def _drain(self, state: StreamState) -> np.ndarray:
        state.status = StreamStatus.DRAINING
        out = state.overlap if state.overlap is not None else self._empty(state)
        state.overlap = None
        state.exhausted = True
        self._emitted(state, out)
        state.status = StreamStatus.DONE
        return out

    def _empty(self, state: StreamState) -> np.ndarray:
        W = state.n_channels or 1
        R = self.window.shape[1] if self.window.ndim == 2 else 1
        trailing = (W,) if R == 1 else (W, R)
        return np.zeros((self.M, 0) + trailing, dtype=complex)

    def _emitted(self, state: StreamState, out: np.ndarray) -> None:
        state.block_index += 1
        LOGGER.debug(
            "block %d: %s, %d frames, %d samples read",
            state.block_index, state.status.value, out.shape[1], state.samples_read,
        )
        if self.block_logger is not None:
            record = state.summary()
            record["frames"] = int(out.shape[1])
            self.block_logger.write(record)


def open_stream(
    source: Iterable[np.ndarray],
    window: np.ndarray,
    a: int,
    M: int,
    lt1: int = 0,
    lt2: int = 1,
    *,
    buf_len: int,
    zero_pad: int,
) -> StreamState:
    """Create an engine for the lattice and open a stream over ``source``.

    ``buf_len`` and ``buf_len + 2*zero_pad`` must be multiples of
    :func:`~fastdgt.lattice.minimal_length` for the lattice.
    """
    engine = StreamingOverlapEngine(
        window, a, M, lt1, lt2, buf_len=buf_len, zero_pad=zero_pad
    )
    return engine.open(source)


def open_stream_from_config(
    source: Iterable[np.ndarray],
    window: np.ndarray,
    config: TransformConfig,
) -> StreamState:
    """Open a stream with the lattice, buffers and block log of ``config``."""
    return StreamingOverlapEngine.from_config(window, config).open(source)


def next_block(state: StreamState) -> tuple[np.ndarray, bool]:
    """Emit the next coefficient block of a stream opened by :func:`open_stream`."""
    return state.engine.next_block(state)


def close_stream(state: StreamState) -> None:
    """Stop a stream opened by :func:`open_stream`."""
    state.engine.close(state)
