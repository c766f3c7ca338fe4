"""YAML loading and saving for transform configurations."""

from __future__ import annotations

from dataclasses import asdict, is_dataclass
import importlib
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

try:
    OmegaConf = importlib.import_module("omegaconf").OmegaConf
except ModuleNotFoundError as exc:
    raise RuntimeError(
        "fastdgt configuration support requires 'omegaconf'. "
        "Install dependencies with `pip install fastdgt`."
    ) from exc


def _to_mapping(value: Any, *, source: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise TypeError(
            f"{source} must hold a mapping of sections (lattice, stream, runtime), "
            f"got {type(value).__name__}"
        )
    return {str(key): item for key, item in value.items()}


def _apply_dotlist(cfg: Any, overrides: Iterable[str] | None) -> Any:
    items = [item for item in (overrides or []) if item]
    if not items:
        return cfg
    return OmegaConf.merge(cfg, OmegaConf.from_dotlist(items))


def load_yaml(
    path: str | Path,
    *,
    overrides: Iterable[str] | None = None,
) -> dict[str, Any]:
    """Load a YAML config, applying dotlist overrides like ``stream.buf_len=96``.

    Interpolations are resolved before the plain mapping is returned.
    """
    path = Path(path)
    cfg = _apply_dotlist(OmegaConf.load(path), overrides)
    return _to_mapping(OmegaConf.to_container(cfg, resolve=True), source=str(path))


def merge_overrides(
    data: Mapping[str, Any],
    overrides: Iterable[str] | None = None,
) -> dict[str, Any]:
    """Apply dotlist overrides such as ``lattice.M=12`` to an in-memory mapping."""
    cfg = _apply_dotlist(OmegaConf.create(dict(data)), overrides)
    return _to_mapping(OmegaConf.to_container(cfg, resolve=True), source="overrides")


def save_yaml(path: str | Path, data: Mapping[str, Any] | Any) -> Path:
    """Write a mapping or a config dataclass to YAML and return the path."""
    payload = asdict(data) if is_dataclass(data) else dict(data)
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(payload, handle, sort_keys=False)
    return out
