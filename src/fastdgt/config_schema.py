"""Typed OmegaConf schemas for transform and streaming configurations."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping, TypeVar, cast

from .configs import OmegaConf, load_yaml
from .lattice import LatticeParameters, admissible_length, minimal_length

DEFAULT_BUFFER_LENGTH = 1024


@dataclass
class LatticeConfig:
    """Lattice configuration schema."""

    a: int = 4
    M: int = 6
    lt1: int = 0
    lt2: int = 1

    def minimal_length(self) -> int:
        return minimal_length(self.a, self.M, self.lt1, self.lt2)

    def parameters(self, L: int) -> LatticeParameters:
        """Validate the lattice at transform length ``L``."""
        return LatticeParameters(L, self.a, self.M, self.lt1, self.lt2)


@dataclass
class StreamConfig:
    """Streaming buffer configuration schema.

    Unset values are resolved against the lattice by :meth:`resolve`.
    """

    buf_len: int | None = None
    zero_pad: int | None = None

    def resolve(self, lattice: LatticeConfig) -> tuple[int, int]:
        """Return ``(buf_len, zero_pad)`` valid for ``lattice``.

        ``buf_len`` defaults to the smallest admissible length of at least
        1024 samples and ``zero_pad`` to the smallest admissible length of at
        least half the buffer, which keeps ``buf_len + 2*zero_pad`` admissible.
        """
        buf_len = self.buf_len
        if buf_len is None:
            buf_len = admissible_length(
                DEFAULT_BUFFER_LENGTH, lattice.a, lattice.M, lattice.lt1, lattice.lt2
            )
        zero_pad = self.zero_pad
        if zero_pad is None:
            zero_pad = admissible_length(
                -(-buf_len // 2), lattice.a, lattice.M, lattice.lt1, lattice.lt2
            )
        return buf_len, zero_pad


@dataclass
class RuntimeConfig:
    """Runtime configuration schema."""

    log_level: str = "INFO"
    block_log: str | None = None


@dataclass
class TransformConfig:
    """Top-level transform configuration schema."""

    lattice: LatticeConfig = field(default_factory=LatticeConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)


TSchema = TypeVar("TSchema")


def _decode_schema(
    data: Mapping[str, object],
    schema: type[TSchema],
) -> TSchema:
    base = OmegaConf.structured(schema)
    loaded = OmegaConf.create(dict(data))
    merged = OmegaConf.merge(base, loaded)
    decoded = OmegaConf.to_object(merged)
    if not isinstance(decoded, schema):
        raise TypeError(f"Failed to decode config as {schema.__name__}")
    return cast(TSchema, decoded)


def parse_transform_config(data: Mapping[str, object]) -> TransformConfig:
    """Decode a mapping into :class:`TransformConfig`."""
    return _decode_schema(data, TransformConfig)


def parse_lattice_config(data: Mapping[str, object]) -> LatticeConfig:
    """Decode a mapping into :class:`LatticeConfig`."""
    return _decode_schema(data, LatticeConfig)


def load_transform_config(
    path: str | Path,
    *,
    overrides: Iterable[str] | None = None,
) -> TransformConfig:
    """Load and decode a YAML transform configuration."""
    return parse_transform_config(load_yaml(path, overrides=overrides))


def transform_config_to_dict(config: TransformConfig) -> dict[str, Any]:
    """Convert :class:`TransformConfig` to plain dictionary."""
    return asdict(config)
