from __future__ import annotations

import bisect
from dataclasses import dataclass, field
import math
from numbers import Integral, Real
from typing import Any, ClassVar, Literal, Mapping, TypeAlias

import numpy as np

from .errors import InvalidAxisError, UnknownCategoryError


UnmatchedPolicy = Literal["error", "other", "drop"]
UNMATCHED_POLICIES: tuple[str, ...] = ("error", "other", "drop")

# Marks a dropped sample in the slot arrays returned by ``slots_many``.
DROPPED = -1


@dataclass(frozen=True)
class RegularAxis:
    """Equal-width bins over ``[lower, upper)``."""

    kind: ClassVar[str] = "regular"

    bins: int
    lower: float
    upper: float
    label: str = ""
    underflow: bool = True
    overflow: bool = True

    def __post_init__(self) -> None:
        _require_bin_count(self.bins)
        lower = _require_finite(self.lower, "lower")
        upper = _require_finite(self.upper, "upper")
        if lower >= upper:
            raise InvalidAxisError("regular axis requires lower < upper")
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)
        object.__setattr__(self, "underflow", bool(self.underflow))
        object.__setattr__(self, "overflow", bool(self.overflow))

    @property
    def extent(self) -> int:
        return self.bins + int(self.underflow) + int(self.overflow)

    @property
    def index_bounds(self) -> tuple[int, int]:
        return _flow_bounds(self.bins, self.underflow, self.overflow)

    def index(self, value: float) -> int | None:
        z = (float(value) - self.lower) / (self.upper - self.lower)
        if math.isnan(z) or z >= 1.0:
            return self.bins if self.overflow else None
        if z < 0.0:
            return -1 if self.underflow else None
        return min(int(math.floor(z * self.bins)), self.bins - 1)

    def slot(self, index: int) -> int:
        return index if index >= 0 else self.extent + index

    def slots_many(self, values: Any) -> np.ndarray:
        x = np.asarray(values, dtype=np.float64)
        z = (x - self.lower) / (self.upper - self.lower)
        slots = np.full(x.shape, DROPPED, dtype=np.int64)
        with np.errstate(invalid="ignore"):
            inside = (z >= 0.0) & (z < 1.0)
            slots[inside] = np.minimum(np.floor(z[inside] * self.bins), self.bins - 1).astype(np.int64)
            if self.overflow:
                slots[(z >= 1.0) | np.isnan(z)] = self.bins
            if self.underflow:
                slots[z < 0.0] = self.extent - 1
        return slots

    def bin_label(self, index: int) -> str:
        width = (self.upper - self.lower) / self.bins
        lo = self.lower + index * width
        return f"[{lo:g}, {lo + width:g})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "bins": self.bins,
            "lower": self.lower,
            "upper": self.upper,
            "label": self.label,
            "underflow": self.underflow,
            "overflow": self.overflow,
        }


@dataclass(frozen=True)
class VariableAxis:
    """Bins delimited by an explicit, strictly increasing edge sequence."""

    kind: ClassVar[str] = "variable"

    edges: tuple[float, ...]
    label: str = ""
    underflow: bool = True
    overflow: bool = True

    def __post_init__(self) -> None:
        try:
            edges = tuple(_require_finite(e, "edge") for e in self.edges)
        except TypeError as exc:
            if isinstance(exc, InvalidAxisError):
                raise
            raise InvalidAxisError("variable axis edges must be a sequence of numbers") from exc
        if len(edges) < 2:
            raise InvalidAxisError("variable axis requires at least two edges")
        if any(b <= a for a, b in zip(edges, edges[1:])):
            raise InvalidAxisError("variable axis edges must be strictly increasing")
        object.__setattr__(self, "edges", edges)
        object.__setattr__(self, "underflow", bool(self.underflow))
        object.__setattr__(self, "overflow", bool(self.overflow))

    @property
    def bins(self) -> int:
        return len(self.edges) - 1

    @property
    def extent(self) -> int:
        return self.bins + int(self.underflow) + int(self.overflow)

    @property
    def index_bounds(self) -> tuple[int, int]:
        return _flow_bounds(self.bins, self.underflow, self.overflow)

    def index(self, value: float) -> int | None:
        v = float(value)
        if math.isnan(v):
            return self.bins if self.overflow else None
        k = bisect.bisect_right(self.edges, v) - 1
        if k < 0:
            return -1 if self.underflow else None
        if k >= self.bins:
            return self.bins if self.overflow else None
        return k

    def slot(self, index: int) -> int:
        return index if index >= 0 else self.extent + index

    def slots_many(self, values: Any) -> np.ndarray:
        x = np.asarray(values, dtype=np.float64)
        k = np.searchsorted(np.asarray(self.edges), x, side="right").astype(np.int64) - 1
        slots = np.full(x.shape, DROPPED, dtype=np.int64)
        inside = (k >= 0) & (k < self.bins) & ~np.isnan(x)
        slots[inside] = k[inside]
        if self.overflow:
            slots[(k >= self.bins) | np.isnan(x)] = self.bins
        if self.underflow:
            slots[k < 0] = self.extent - 1
        return slots

    def bin_label(self, index: int) -> str:
        return f"[{self.edges[index]:g}, {self.edges[index + 1]:g})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "edges": list(self.edges),
            "label": self.label,
            "underflow": self.underflow,
            "overflow": self.overflow,
        }


@dataclass(frozen=True)
class IntegerAxis:
    """Unit-width bins for the integers in ``[lower, upper)``."""

    kind: ClassVar[str] = "integer"

    lower: int
    upper: int
    label: str = ""
    underflow: bool = True
    overflow: bool = True

    def __post_init__(self) -> None:
        for name in ("lower", "upper"):
            raw = getattr(self, name)
            if not isinstance(raw, Integral) or isinstance(raw, bool):
                raise InvalidAxisError(f"integer axis {name} must be an integer, got {raw!r}")
            object.__setattr__(self, name, int(raw))
        if self.upper <= self.lower:
            raise InvalidAxisError("integer axis requires lower < upper")
        object.__setattr__(self, "underflow", bool(self.underflow))
        object.__setattr__(self, "overflow", bool(self.overflow))

    @property
    def bins(self) -> int:
        return self.upper - self.lower

    @property
    def extent(self) -> int:
        return self.bins + int(self.underflow) + int(self.overflow)

    @property
    def index_bounds(self) -> tuple[int, int]:
        return _flow_bounds(self.bins, self.underflow, self.overflow)

    def index(self, value: float) -> int | None:
        v = float(value)
        if math.isnan(v) or v >= self.upper:
            return self.bins if self.overflow else None
        if v < self.lower:
            return -1 if self.underflow else None
        return int(math.floor(v)) - self.lower

    def slot(self, index: int) -> int:
        return index if index >= 0 else self.extent + index

    def slots_many(self, values: Any) -> np.ndarray:
        x = np.asarray(values, dtype=np.float64)
        slots = np.full(x.shape, DROPPED, dtype=np.int64)
        with np.errstate(invalid="ignore"):
            inside = (x >= self.lower) & (x < self.upper)
            slots[inside] = np.floor(x[inside]).astype(np.int64) - self.lower
            if self.overflow:
                slots[(x >= self.upper) | np.isnan(x)] = self.bins
            if self.underflow:
                slots[x < self.lower] = self.extent - 1
        return slots

    def bin_label(self, index: int) -> str:
        return str(self.lower + index)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "lower": self.lower,
            "upper": self.upper,
            "label": self.label,
            "underflow": self.underflow,
            "overflow": self.overflow,
        }


@dataclass(frozen=True)
class CategoryAxis:
    """Unordered discrete labels matched exactly.

    ``unmatched`` decides what happens to a value outside ``labels``: ``"error"``
    raises :class:`UnknownCategoryError`, ``"other"`` counts it in one extra slot
    after the labels, ``"drop"`` discards the sample.
    """

    kind: ClassVar[str] = "category"

    labels: tuple[Any, ...]
    label: str = ""
    unmatched: UnmatchedPolicy = "error"
    _lookup: dict[Any, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.labels, (str, bytes)):
            raise InvalidAxisError("category axis labels must be a sequence, not a single string")
        try:
            labels = tuple(self.labels)
            lookup = {value: i for i, value in enumerate(labels)}
        except TypeError as exc:
            raise InvalidAxisError("category axis labels must be a sequence of hashable values") from exc
        if not labels:
            raise InvalidAxisError("category axis requires at least one label")
        if len(lookup) != len(labels):
            raise InvalidAxisError("category axis labels must be unique")
        if self.unmatched not in UNMATCHED_POLICIES:
            raise InvalidAxisError(
                f"unsupported unmatched policy {self.unmatched!r}; expected one of {UNMATCHED_POLICIES}"
            )
        object.__setattr__(self, "labels", labels)
        object.__setattr__(self, "_lookup", lookup)

    @property
    def bins(self) -> int:
        return len(self.labels)

    @property
    def other(self) -> bool:
        return self.unmatched == "other"

    @property
    def extent(self) -> int:
        return self.bins + int(self.other)

    @property
    def index_bounds(self) -> tuple[int, int]:
        return (0, self.extent)

    def index(self, value: Any) -> int | None:
        k = self._lookup.get(value)
        if k is not None:
            return k
        if self.unmatched == "other":
            return self.bins
        if self.unmatched == "drop":
            return None
        raise UnknownCategoryError(f"value {value!r} is not a category of axis {self.label or self.labels!r}")

    def slot(self, index: int) -> int:
        return index

    def slots_many(self, values: Any) -> np.ndarray:
        items = values.tolist() if isinstance(values, np.ndarray) else list(values)
        slots = np.empty(len(items), dtype=np.int64)
        for i, value in enumerate(items):
            k = self.index(value)
            slots[i] = DROPPED if k is None else k
        return slots

    def bin_label(self, index: int) -> str:
        if index == self.bins:
            return "<other>"
        return str(self.labels[index])

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "labels": list(self.labels),
            "label": self.label,
            "unmatched": self.unmatched,
        }


@dataclass(frozen=True)
class PolarAxis:
    """Circular axis: values wrap modulo ``period``, so every finite value lands in a bin."""

    kind: ClassVar[str] = "polar"

    bins: int
    start: float = 0.0
    period: float = 2.0 * math.pi
    label: str = ""

    def __post_init__(self) -> None:
        _require_bin_count(self.bins)
        start = _require_finite(self.start, "start")
        period = _require_finite(self.period, "period")
        if period <= 0.0:
            raise InvalidAxisError("polar axis period must be > 0")
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "period", period)

    @property
    def extent(self) -> int:
        return self.bins

    @property
    def index_bounds(self) -> tuple[int, int]:
        return (0, self.bins)

    def index(self, value: float) -> int | None:
        v = float(value)
        if not math.isfinite(v):
            return None
        u = ((v - self.start) % self.period) / self.period
        return min(int(u * self.bins), self.bins - 1)

    def slot(self, index: int) -> int:
        return index

    def slots_many(self, values: Any) -> np.ndarray:
        x = np.asarray(values, dtype=np.float64)
        slots = np.full(x.shape, DROPPED, dtype=np.int64)
        finite = np.isfinite(x)
        u = np.mod(x[finite] - self.start, self.period) / self.period
        slots[finite] = np.minimum((u * self.bins).astype(np.int64), self.bins - 1)
        return slots

    def bin_label(self, index: int) -> str:
        width = self.period / self.bins
        lo = self.start + index * width
        return f"[{lo:g}, {lo + width:g})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "bins": self.bins,
            "start": self.start,
            "period": self.period,
            "label": self.label,
        }


Axis: TypeAlias = RegularAxis | VariableAxis | IntegerAxis | CategoryAxis | PolarAxis

AXIS_TYPES: tuple[type, ...] = (RegularAxis, VariableAxis, IntegerAxis, CategoryAxis, PolarAxis)
AXIS_KINDS: dict[str, type] = {cls.kind: cls for cls in AXIS_TYPES}


def is_axis(obj: object) -> bool:
    return isinstance(obj, AXIS_TYPES)


def axis_to_dict(axis: Axis) -> dict[str, Any]:
    return axis.to_dict()


def axis_from_dict(raw: Mapping[str, Any]) -> Axis:
    if not isinstance(raw, Mapping):
        raise InvalidAxisError(f"axis descriptor must be a mapping, got {type(raw).__name__}")
    kind = raw.get("kind")
    cls = AXIS_KINDS.get(str(kind))
    if cls is None:
        raise InvalidAxisError(f"unknown axis kind: {kind!r}; expected one of {sorted(AXIS_KINDS)}")
    params = {key: value for key, value in raw.items() if key != "kind"}
    try:
        return cls(**params)
    except InvalidAxisError:
        raise
    except TypeError as exc:
        raise InvalidAxisError(f"invalid {kind} axis descriptor: {exc}") from exc


def _flow_bounds(bins: int, underflow: bool, overflow: bool) -> tuple[int, int]:
    return (-1 if underflow else 0, bins + 1 if overflow else bins)


def _require_bin_count(bins: object) -> None:
    if not isinstance(bins, Integral) or isinstance(bins, bool):
        raise InvalidAxisError(f"bin count must be an integer, got {bins!r}")
    if bins <= 0:
        raise InvalidAxisError(f"bin count must be > 0, got {bins}")


def _require_finite(raw: object, name: str) -> float:
    if not isinstance(raw, Real) or isinstance(raw, bool):
        raise InvalidAxisError(f"axis {name} must be a real number, got {raw!r}")
    value = float(raw)
    if not math.isfinite(value):
        raise InvalidAxisError(f"axis {name} must be finite, got {raw!r}")
    return value
