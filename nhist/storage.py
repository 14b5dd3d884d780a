from __future__ import annotations

import logging

import numpy as np

from .errors import IndexOutOfRangeError, ShapeMismatchError, StorageOverflowError


LOGGER = logging.getLogger(__name__)

# Counter widths in bytes, narrowest first. A storage only ever climbs this ladder.
DEPTH_LADDER: tuple[int, ...] = (1, 2, 4, 8)


def dtype_for_depth(depth: int) -> np.dtype:
    if depth not in DEPTH_LADDER:
        raise ValueError(f"unsupported depth {depth}; expected one of {DEPTH_LADDER}")
    return np.dtype(f"<u{depth}")


def max_count(depth: int) -> int:
    return (1 << (8 * depth)) - 1


def depth_for_value(value: int) -> int:
    for depth in DEPTH_LADDER:
        if value <= max_count(depth):
            return depth
    raise StorageOverflowError(f"count {value} exceeds the widest counter ({DEPTH_LADDER[-1]} bytes)")


class DenseStorage:
    """Contiguous unsigned counters sharing one adaptive width.

    Every cell has the same byte width (``depth``). When a write would overflow
    the current width, the whole buffer is widened to the next step of
    :data:`DEPTH_LADDER` before the write is applied. The widened buffer is built
    completely and swapped in afterwards, so readers never see a mixed state.
    """

    def __init__(self, size: int, depth: int = 1) -> None:
        if size <= 0:
            raise ValueError("storage size must be > 0")
        self._data = np.zeros(int(size), dtype=dtype_for_depth(depth))

    @classmethod
    def from_bytes(cls, payload: bytes, size: int, depth: int) -> "DenseStorage":
        dtype = dtype_for_depth(depth)
        if len(payload) != size * dtype.itemsize:
            raise ShapeMismatchError(
                f"buffer holds {len(payload)} bytes, expected {size * dtype.itemsize} for {size} cells of depth {depth}"
            )
        storage = cls(size, depth)
        storage._data = np.frombuffer(payload, dtype=dtype).copy()
        return storage

    @property
    def depth(self) -> int:
        return self._data.dtype.itemsize

    @property
    def size(self) -> int:
        return self._data.size

    def __len__(self) -> int:
        return self._data.size

    def get(self, offset: int) -> int:
        return int(self._data[self._check_offset(offset)])

    def increment(self, offset: int) -> None:
        offset = self._check_offset(offset)
        if int(self._data[offset]) >= max_count(self.depth):
            self.promote()
        self._data[offset] += 1

    def promote(self, depth: int | None = None) -> int:
        """Widen every counter to ``depth`` (default: the next ladder step).

        Returns the depth in effect afterwards. Asking for a depth at or below
        the current one leaves the storage as it is.
        """
        current = self.depth
        if depth is None:
            position = DEPTH_LADDER.index(current)
            if position + 1 >= len(DEPTH_LADDER):
                raise StorageOverflowError(f"storage is already at the widest depth ({current} bytes)")
            depth = DEPTH_LADDER[position + 1]
        dtype = dtype_for_depth(depth)
        if depth <= current:
            return current
        staged = self._data.astype(dtype)
        self._data = staged
        LOGGER.debug("DenseStorage promoted depth=%d->%d cells=%d", current, depth, staged.size)
        return depth

    def add(self, other: "DenseStorage") -> None:
        if not isinstance(other, DenseStorage):
            raise TypeError(f"cannot add {type(other).__name__} to DenseStorage")
        if other.size != self.size:
            raise ShapeMismatchError(f"storage sizes differ: {self.size} != {other.size}")
        self.add_counts(other._data, min_depth=other.depth)

    def add_counts(self, counts: np.ndarray, *, min_depth: int = 1) -> None:
        """Add a raw per-cell count array, widening once if the sums need it."""
        counts = np.asarray(counts)
        if counts.shape != self._data.shape:
            raise ShapeMismatchError(f"count array shape {counts.shape} != storage shape {self._data.shape}")
        if counts.dtype.kind not in "iu":
            raise TypeError(f"counts must be integers, got dtype {counts.dtype}")
        if counts.dtype.kind == "i" and counts.size and int(counts.min()) < 0:
            raise ValueError("counts must be non-negative")
        base = self._data.astype(np.uint64)
        total = base + counts.astype(np.uint64)
        if np.any(total < base):
            raise StorageOverflowError(f"cell sum exceeds the widest counter ({DEPTH_LADDER[-1]} bytes)")
        current = self.depth
        target = max(current, min_depth, depth_for_value(int(total.max())))
        self._data = total.astype(dtype_for_depth(target))
        if target != current:
            LOGGER.debug("DenseStorage promoted depth=%d->%d cells=%d", current, target, total.size)

    def sum(self) -> int:
        if self.depth == DEPTH_LADDER[-1]:
            return sum(self._data.tolist())
        return int(self._data.sum(dtype=np.uint64))

    def values(self) -> np.ndarray:
        view = self._data.view()
        view.flags.writeable = False
        return view

    def buffer(self) -> memoryview:
        return memoryview(self._data).toreadonly()

    def to_bytes(self) -> bytes:
        return self._data.tobytes()

    def copy(self) -> "DenseStorage":
        clone = DenseStorage(self.size, self.depth)
        clone._data = self._data.copy()
        return clone

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DenseStorage):
            return NotImplemented
        return self.size == other.size and bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"DenseStorage(size={self.size}, depth={self.depth})"

    def _check_offset(self, offset: int) -> int:
        offset = int(offset)
        if not 0 <= offset < self._data.size:
            raise IndexOutOfRangeError(f"offset {offset} out of range [0, {self._data.size})")
        return offset
