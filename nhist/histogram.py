from __future__ import annotations

from dataclasses import dataclass
import logging
import operator
from typing import Any, Iterable

import numpy as np

from .adapters.normalize import normalize_columns, normalize_rows
from .axes import AxisSet
from .axis import DROPPED, Axis
from .errors import AxisMismatchError, DimensionMismatchError, IndexOutOfRangeError
from .storage import DenseStorage


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BufferExport:
    """Zero-copy, read-only description of a histogram's counter buffer."""

    shape: tuple[int, ...]
    itemsize: int
    typestr: str
    data: memoryview

    @property
    def array_interface(self) -> dict[str, Any]:
        return {
            "shape": self.shape,
            "typestr": self.typestr,
            "data": self.data,
            "version": 3,
        }


class Histogram:
    """Multi-dimensional counting histogram over a fixed set of axes.

    Each fill maps one value per axis to a bin, composes the flat offset and
    bumps that counter. Values outside an axis without a flow slot drop the
    whole event. Counts are exact unsigned integers; the counter width grows
    on demand (see :class:`nhist.storage.DenseStorage`).
    """

    def __init__(self, *axes: Axis) -> None:
        self._axes = AxisSet(axes)
        self._storage = DenseStorage(self._axes.size)

    @classmethod
    def from_axes(cls, axes: Iterable[Axis]) -> "Histogram":
        return cls(*axes)

    @classmethod
    def _from_parts(cls, axes: AxisSet, storage: DenseStorage) -> "Histogram":
        if storage.size != axes.size:
            raise DimensionMismatchError(f"storage holds {storage.size} cells, axes need {axes.size}")
        hist = cls.__new__(cls)
        hist._axes = axes
        hist._storage = storage
        return hist

    @property
    def axes(self) -> AxisSet:
        return self._axes

    @property
    def storage(self) -> DenseStorage:
        return self._storage

    @property
    def dimension(self) -> int:
        return self._axes.dimension

    @property
    def depth(self) -> int:
        return self._storage.depth

    def axis(self, i: int) -> Axis:
        return self._axes[i]

    def shape(self, i: int) -> int:
        return self._axes.shape(i)

    def fill(self, *values: Any) -> None:
        if len(values) != self.dimension:
            raise DimensionMismatchError(f"fill expects {self.dimension} values, got {len(values)}")
        # Map every axis before dropping: an unknown category raises even when another axis drops.
        indices = [axis.index(value) for axis, value in zip(self._axes, values)]
        if any(index is None for index in indices):
            return
        self._storage.increment(self._axes.flatten(indices))

    def fill_many(self, samples: Any) -> int:
        """Fill a batch given as rows: ``(N,)`` for 1-D histograms, ``(N, dimension)`` otherwise.

        Returns the number of accepted (not dropped) samples.
        """
        return self._fill_from_columns(normalize_rows(samples, dimension=self.dimension))

    def fill_columns(self, *columns: Any) -> int:
        """Fill a batch given as one equally long column per axis."""
        return self._fill_from_columns(normalize_columns(columns, dimension=self.dimension))

    def _fill_from_columns(self, columns: list[np.ndarray]) -> int:
        slots = [axis.slots_many(col) for axis, col in zip(self._axes, columns)]
        offsets = self._axes.flatten_many(slots)
        accepted = offsets[offsets != DROPPED]
        dropped = offsets.size - accepted.size
        if accepted.size:
            counts = np.bincount(accepted, minlength=self._storage.size)
            self._storage.add_counts(counts)
        LOGGER.debug("Histogram batch fill accepted=%d dropped=%d", accepted.size, dropped)
        return int(accepted.size)

    def value(self, *indices: int) -> int:
        """Count of the bin at ``indices``; each index must lie in ``[0, shape(i))``."""
        if len(indices) != self.dimension:
            raise DimensionMismatchError(f"expected {self.dimension} indices, got {len(indices)}")
        for k, index in enumerate(indices):
            if not 0 <= index < self._axes.shape(k):
                raise IndexOutOfRangeError(f"index {index} out of range [0, {self._axes.shape(k)}) on axis {k}")
        return self._storage.get(self._axes.flatten(indices))

    def at(self, *indices: int, flow: bool = True) -> int:
        """Like :meth:`value`, but ``-1`` and ``bins`` address underflow and overflow slots."""
        if not flow:
            return self.value(*indices)
        return self._storage.get(self._axes.flatten(indices))

    def __getitem__(self, index: Any) -> int:
        """Bin count for an index vector (tuple, list or 1-D array); a bare int works for 1-D histograms."""
        if isinstance(index, (str, bytes)):
            raise TypeError(f"histogram indices must be integers, got {index!r}")
        ndim = np.ndim(index)
        if ndim == 0 and self.dimension == 1:
            return self.value(index)
        if ndim != 1:
            raise DimensionMismatchError(f"expected a vector of {self.dimension} indices, got {index!r}")
        return self.value(*(operator.index(i) for i in index))

    def sum(self) -> int:
        return self._storage.sum()

    def buffer(self) -> BufferExport:
        depth = self._storage.depth
        return BufferExport(
            shape=self._axes.extents,
            itemsize=depth,
            typestr=f"<u{depth}",
            data=self._storage.buffer(),
        )

    def to_numpy(self, *, flow: bool = False) -> np.ndarray:
        """Counts as a read-only array; ``flow=False`` slices the flow slots away."""
        full = self._storage.values().reshape(self._axes.extents)
        if flow:
            return full
        return full[tuple(slice(0, axis.bins) for axis in self._axes)]

    def copy(self) -> "Histogram":
        return Histogram._from_parts(self._axes, self._storage.copy())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Histogram):
            return NotImplemented
        return self._axes == other._axes and self._storage == other._storage

    __hash__ = None  # type: ignore[assignment]

    def __iadd__(self, other: "Histogram") -> "Histogram":
        if not isinstance(other, Histogram):
            return NotImplemented
        self._require_same_axes(other)
        self._storage.add(other._storage)
        return self

    def __add__(self, other: "Histogram") -> "Histogram":
        if not isinstance(other, Histogram):
            return NotImplemented
        self._require_same_axes(other)
        out = self.copy()
        out._storage.add(other._storage)
        return out

    def __repr__(self) -> str:
        return f"Histogram({', '.join(repr(axis) for axis in self._axes)}, depth={self.depth}, sum={self.sum()})"

    def _require_same_axes(self, other: "Histogram") -> None:
        if self._axes != other._axes:
            raise AxisMismatchError(f"axes differ: {self._axes!r} != {other._axes!r}")
