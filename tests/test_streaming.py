from __future__ import annotations

import numpy as np
import pytest

from _reference import NONSEPARABLE, crand
from fastdgt import (
    IncompatibleLatticeError,
    JsonlLogger,
    ShapeMismatchError,
    StreamingOverlapEngine,
    StreamStatus,
    close_stream,
    find_shear,
    iter_buffers,
    minimal_length,
    next_block,
    nonsep_analyze,
    open_stream,
)
from fastdgt.signal import fir_to_long
from fastdgt.utils import relative_error


def _engine(a, M, lt, **kwargs):
    """Engine with buffers of the minimal length and a window filling the padding."""
    minL = minimal_length(a, M, *lt)
    window = np.hanning(minL + 2)[1:-1]
    engine = StreamingOverlapEngine(
        window, a, M, *lt, buf_len=minL, zero_pad=minL // 2, **kwargs
    )
    return engine, window, minL


@pytest.mark.parametrize(("a", "M", "lt"), NONSEPARABLE + [(4, 6, (0, 1))])
def test_streamed_blocks_fold_to_one_shot_transform(a: int, M: int, lt: tuple[int, int]) -> None:
    engine, window, minL = _engine(a, M, lt)
    L = 10 * minL
    f = crand(np.random.default_rng(L), L, 2)
    one_shot = nonsep_analyze(f, fir_to_long(window, L), a, M, *lt)

    streamed = engine.process(f)
    N = L // a
    lead, cool = engine.warmup_frames, engine.cooldown_frames
    assert streamed.shape == (M, N + lead + cool, 2)

    # Frames whose window never wraps around the circle need no folding.
    interior = streamed[:, lead + cool : N]
    assert relative_error(interior, one_shot[:, cool : N - lead]) < 1e-6
    assert relative_error(engine.fold(streamed, L), one_shot) < 1e-6


def test_real_rectangular_stream_matches_one_shot() -> None:
    a, M = 4, 8
    window = np.hanning(16)
    engine = StreamingOverlapEngine(window, a, M, buf_len=32, zero_pad=8)
    f = np.random.default_rng(0).standard_normal(320)

    streamed = engine.process(f)
    one_shot = nonsep_analyze(f, fir_to_long(window, 320), a, M)
    assert relative_error(engine.fold(streamed, 320), one_shot) < 1e-10


def test_short_final_buffer_is_zero_padded() -> None:
    engine, window, minL = _engine(4, 6, (1, 2))
    L = 10 * minL
    f = crand(np.random.default_rng(1), L - minL // 2)
    padded = np.concatenate([f, np.zeros(minL // 2)])

    streamed = engine.process(f)
    one_shot = nonsep_analyze(padded, fir_to_long(window, L), 4, 6, 1, 2)
    assert relative_error(engine.fold(streamed, L)[..., 0], one_shot[..., 0]) < 1e-6


def test_stream_state_transitions(tmp_path) -> None:
    block_log = JsonlLogger(tmp_path / "blocks.jsonl")
    engine, _, minL = _engine(4, 6, (1, 2), block_logger=block_log)
    f = crand(np.random.default_rng(2), 3 * minL)

    state = engine.open(iter_buffers(f, minL))
    assert state.status is StreamStatus.IDLE
    assert state.shear is None

    coef, more = engine.next_block(state)
    assert more
    assert coef.shape == (6, engine.block_frames, 1)
    assert state.status is StreamStatus.STREAMING
    assert tuple(state.shear) == tuple(find_shear(engine.Lext, 4, 6, 1, 2))

    for _ in range(2):
        _, more = engine.next_block(state)
        assert more
    tail, more = engine.next_block(state)
    assert not more
    assert tail.shape == (6, engine.overlap_frames, 1)
    assert state.status is StreamStatus.DONE
    assert state.samples_read == 3 * minL

    empty, more = engine.next_block(state)
    assert not more
    assert empty.shape[1] == 0

    records = block_log.read()
    assert [r["block_index"] for r in records] == [1, 2, 3, 4]
    assert [r["frames"] for r in records] == [engine.block_frames] * 3 + [engine.overlap_frames]
    assert records[-1]["status"] == "draining"

    engine.close(state)
    with pytest.raises(RuntimeError, match="closed"):
        engine.next_block(state)


def test_empty_source_finishes_immediately() -> None:
    engine, _, _ = _engine(4, 6, (1, 2))
    state = engine.open([])
    coef, more = engine.next_block(state)
    assert not more
    assert coef.shape == (6, 0, 1)
    assert state.status is StreamStatus.DONE


def test_streams_are_independent() -> None:
    engine, _, minL = _engine(3, 5, (1, 2))
    rng = np.random.default_rng(3)
    f1 = crand(rng, 4 * minL)
    f2 = crand(rng, 4 * minL)

    s1 = engine.open(iter_buffers(f1, minL))
    s2 = engine.open(iter_buffers(f2, minL))
    out1, out2 = [], []
    more1 = more2 = True
    while more1 or more2:
        if more1:
            block, more1 = engine.next_block(s1)
            out1.append(block)
        if more2:
            block, more2 = engine.next_block(s2)
            out2.append(block)
    np.testing.assert_allclose(np.concatenate(out1, axis=1), engine.process(f1), atol=1e-12)
    np.testing.assert_allclose(np.concatenate(out2, axis=1), engine.process(f2), atol=1e-12)


def test_module_level_stream_api() -> None:
    minL = minimal_length(4, 6, 1, 2)
    f = crand(np.random.default_rng(6), 2 * minL, 2)
    state = open_stream(
        iter_buffers(f, minL), np.hanning(minL), 4, 6, 1, 2, buf_len=minL, zero_pad=minL // 2
    )
    blocks = []
    more = True
    while more:
        block, more = next_block(state)
        blocks.append(block)
    assert np.concatenate(blocks, axis=1).shape[1] == 2 * minL // 4 + state.engine.overlap_frames
    close_stream(state)
    assert state.closed
    assert state.overlap is None


def test_stream_rejects_inconsistent_input() -> None:
    engine, _, minL = _engine(4, 6, (1, 2))
    state = engine.open(iter([np.zeros((minL, 2)), np.zeros((minL, 3))]))
    engine.next_block(state)
    with pytest.raises(ShapeMismatchError, match="channels"):
        engine.next_block(state)

    state = engine.open(iter([np.zeros(2 * minL)]))
    with pytest.raises(ShapeMismatchError, match="exceeds buf_len"):
        engine.next_block(state)


def test_open_stream_requires_buffer_geometry() -> None:
    with pytest.raises(TypeError):
        open_stream([], np.hanning(8), 4, 6, 1, 2)


def test_engine_validates_geometry() -> None:
    with pytest.raises(ShapeMismatchError, match="zero_pad"):
        StreamingOverlapEngine(np.hanning(30), 4, 6, 1, 2, buf_len=24, zero_pad=12)
    with pytest.raises(IncompatibleLatticeError):
        StreamingOverlapEngine(np.hanning(8), 4, 6, 1, 2, buf_len=36, zero_pad=6)
    with pytest.raises(IncompatibleLatticeError):
        StreamingOverlapEngine(np.hanning(8), 4, 6, 1, 2, buf_len=24, zero_pad=6)


def test_fold_when_padding_exceeds_signal() -> None:
    window = np.hanning(10)[1:-1]
    engine = StreamingOverlapEngine(window, 4, 6, 1, 2, buf_len=24, zero_pad=48)
    assert engine.warmup_frames > 24 // 4
    assert engine.cooldown_frames > 24 // 4

    for L in (24, 48):
        f = crand(np.random.default_rng(L), L, 2)
        one_shot = nonsep_analyze(f, fir_to_long(window, L), 4, 6, 1, 2)
        assert relative_error(engine.fold(engine.process(f), L), one_shot) < 1e-6


def test_fold_rejects_wrong_frame_count() -> None:
    engine, _, minL = _engine(4, 6, (1, 2))
    streamed = engine.process(np.ones(2 * minL))
    with pytest.raises(ShapeMismatchError, match="streamed frames"):
        engine.fold(streamed[:, 1:], 2 * minL)
