from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import tomllib
from typing import Any, Mapping

from .axis import Axis, axis_from_dict
from .errors import ConfigError, InvalidAxisError
from .histogram import Histogram
from .storage import DEPTH_LADDER


@dataclass(frozen=True)
class HistogramDefinition:
    """Histogram layout read from a TOML file.

    Example::

        name = "dijet"

        [storage]
        depth = 2

        [[axes]]
        kind = "regular"
        bins = 50
        lower = 0.0
        upper = 500.0
        label = "mjj"
    """

    name: str
    axes: tuple[Axis, ...]
    depth: int = 1

    def __post_init__(self) -> None:
        if not self.axes:
            raise ConfigError("histogram definition requires at least one [[axes]] table")
        if self.depth not in DEPTH_LADDER:
            raise ConfigError(f"storage depth must be one of {DEPTH_LADDER}, got {self.depth}")

    def build(self) -> Histogram:
        hist = Histogram(*self.axes)
        hist.storage.promote(self.depth)
        return hist


def definition_from_dict(raw: Mapping[str, Any], *, default_name: str = "histogram") -> HistogramDefinition:
    name = str(raw.get("name", default_name))
    raw_axes = raw.get("axes")
    if not isinstance(raw_axes, list):
        raise ConfigError("`axes` must be an array of tables")
    try:
        axes = tuple(axis_from_dict(item) for item in raw_axes)
    except InvalidAxisError as exc:
        raise ConfigError(f"invalid axis in definition `{name}`: {exc}") from exc

    storage = raw.get("storage", {})
    if not isinstance(storage, Mapping):
        raise ConfigError("`storage` must be a table")
    depth = storage.get("depth", 1)
    if not isinstance(depth, int) or isinstance(depth, bool):
        raise ConfigError(f"storage depth must be an integer, got {depth!r}")
    return HistogramDefinition(name=name, axes=axes, depth=depth)


def load_definition(path: str | Path) -> HistogramDefinition:
    definition_path = Path(path)
    if not definition_path.exists():
        raise FileNotFoundError(f"histogram definition not found: {definition_path}")
    with definition_path.open("rb") as f:
        try:
            raw = tomllib.load(f)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigError(f"cannot parse {definition_path}: {exc}") from exc
    return definition_from_dict(raw, default_name=definition_path.stem)
