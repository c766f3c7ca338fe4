from __future__ import annotations

import numpy as np
import pytest

from _reference import RECTANGULAR, crand
from fastdgt import LatticeParameters, ShapeMismatchError, defactorize, factorize
from fastdgt.utils import is_hermitian


@pytest.mark.parametrize(("L", "a", "M"), RECTANGULAR)
@pytest.mark.parametrize("R", [1, 3])
def test_factorize_roundtrip(L: int, a: int, M: int, R: int) -> None:
    rng = np.random.default_rng(L + R)
    g = crand(rng, L, R)
    lat = LatticeParameters(L, a, M)

    gf = factorize(g, a, M)
    assert gf.shape == (lat.p * lat.q * R, lat.c * lat.d)
    np.testing.assert_allclose(defactorize(gf, L, a, M), g, rtol=0, atol=1e-12)


def test_factorize_matches_block_definition() -> None:
    L, a, M = 24, 4, 6
    lat = LatticeParameters(L, a, M)
    pq, c, d = lat.p * lat.q, lat.c, lat.d
    rng = np.random.default_rng(0)
    g = crand(rng, L, 2)

    gf = factorize(g, a, M)
    s = np.arange(d)
    for w in range(2):
        for x in range(pq):
            for r in range(c):
                for k in range(d):
                    expected = np.sum(
                        g[r + c * x + c * pq * s, w] * np.exp(-2j * np.pi * k * s / d)
                    ) / np.sqrt(d)
                    assert gf[w * pq + x, r * d + k] == pytest.approx(expected, abs=1e-12)


def test_factored_real_window_is_hermitian() -> None:
    g = np.random.default_rng(1).standard_normal(108)
    gf = factorize(g, 9, 12)
    lat = LatticeParameters(108, 9, 12)
    assert lat.d == 3
    blocks = gf.reshape(lat.p * lat.q, lat.c, lat.d)
    assert is_hermitian(blocks, axis=-1)
    assert not is_hermitian(factorize(crand(np.random.default_rng(2), 108), 9, 12).reshape(blocks.shape))


def test_defactorize_rejects_wrong_shape() -> None:
    gf = factorize(np.ones(24), 4, 6)
    with pytest.raises(ShapeMismatchError, match="factored array"):
        defactorize(gf[:-1], 24, 4, 6)
    with pytest.raises(ShapeMismatchError):
        defactorize(gf, 48, 4, 6)


def test_factorize_rejects_incompatible_length() -> None:
    with pytest.raises(Exception, match="not divisible"):
        factorize(np.ones(25), 4, 6)
