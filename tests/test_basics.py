from fastdgt import (
    LatticeParameters,
    StreamingOverlapEngine,
    analyze,
    factorize,
    find_shear,
    nonsep_analyze,
    synthesize,
)


def test_public_imports() -> None:
    assert LatticeParameters is not None
    assert factorize is not None
    assert analyze is not None
    assert synthesize is not None
    assert find_shear is not None
    assert nonsep_analyze is not None
    assert StreamingOverlapEngine is not None
