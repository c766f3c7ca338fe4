"""Buffer sources for streaming transforms."""

from __future__ import annotations

from typing import Iterator

import numpy as np


def iter_buffers(signal: np.ndarray, buf_len: int) -> Iterator[np.ndarray]:
    """Split ``signal`` along its first axis into consecutive buffers.

    The last buffer is shorter when ``buf_len`` does not divide the signal
    length.
    """
    if buf_len <= 0:
        raise ValueError("buf_len must be a positive integer.")
    arr = np.asarray(signal)
    for start in range(0, arr.shape[0], buf_len):
        yield arr[start : start + buf_len]
