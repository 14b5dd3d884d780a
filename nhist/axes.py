from __future__ import annotations

import operator
from typing import Iterable, Iterator, Sequence

import numpy as np

from .axis import DROPPED, Axis, is_axis
from .errors import DimensionMismatchError, IndexOutOfRangeError, InvalidAxisError


AXIS_LIMIT = 16


class AxisSet:
    """Ordered axes of one histogram plus the row-major strides of its storage.

    Strides run over the axis extents (flow slots included) with the last axis
    varying fastest, so the storage buffer reshapes to ``extents`` in C order.
    """

    def __init__(self, axes: Iterable[Axis]) -> None:
        axes = tuple(axes)
        if not axes:
            raise InvalidAxisError("at least one axis is required")
        if len(axes) > AXIS_LIMIT:
            raise InvalidAxisError(f"too many axes: {len(axes)} > {AXIS_LIMIT}")
        for i, axis in enumerate(axes):
            if not is_axis(axis):
                raise InvalidAxisError(f"require an axis object at position {i}, got {type(axis).__name__}")
        self._axes = axes
        self._extents = tuple(axis.extent for axis in axes)
        strides = [1] * len(axes)
        acc = 1
        for k in range(len(axes) - 1, -1, -1):
            strides[k] = acc
            acc *= self._extents[k]
        self._strides = tuple(strides)
        self._size = acc

    @property
    def dimension(self) -> int:
        return len(self._axes)

    @property
    def axes(self) -> tuple[Axis, ...]:
        return self._axes

    @property
    def extents(self) -> tuple[int, ...]:
        return self._extents

    @property
    def strides(self) -> tuple[int, ...]:
        return self._strides

    @property
    def size(self) -> int:
        return self._size

    def shape(self, i: int) -> int:
        return self._axes[i].bins

    def visible_shape(self) -> tuple[int, ...]:
        return tuple(axis.bins for axis in self._axes)

    def flatten(self, indices: Sequence[int]) -> int:
        """Flat storage offset of axis-level indices (``-1`` underflow, ``bins`` overflow)."""
        if len(indices) != len(self._axes):
            raise DimensionMismatchError(f"expected {len(self._axes)} indices, got {len(indices)}")
        offset = 0
        for k, (axis, raw) in enumerate(zip(self._axes, indices)):
            index = operator.index(raw)
            lo, hi = axis.index_bounds
            if not lo <= index < hi:
                raise IndexOutOfRangeError(f"index {index} out of range [{lo}, {hi}) on axis {k}")
            offset += axis.slot(index) * self._strides[k]
        return offset

    def flatten_many(self, slot_columns: Sequence[np.ndarray]) -> np.ndarray:
        """Flat offsets of per-axis slot columns; rows with a dropped slot come back as ``-1``."""
        if len(slot_columns) != len(self._axes):
            raise DimensionMismatchError(f"expected {len(self._axes)} slot columns, got {len(slot_columns)}")
        offsets = np.zeros(len(slot_columns[0]), dtype=np.int64)
        dropped = np.zeros(len(slot_columns[0]), dtype=bool)
        for stride, slots in zip(self._strides, slot_columns):
            dropped |= slots == DROPPED
            offsets += slots * stride
        offsets[dropped] = DROPPED
        return offsets

    def __iter__(self) -> Iterator[Axis]:
        return iter(self._axes)

    def __len__(self) -> int:
        return len(self._axes)

    def __getitem__(self, i: int) -> Axis:
        return self._axes[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AxisSet):
            return NotImplemented
        return self._axes == other._axes

    def __hash__(self) -> int:
        return hash(self._axes)

    def __repr__(self) -> str:
        return f"AxisSet({list(self._axes)!r})"
