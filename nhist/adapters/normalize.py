from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import numpy as np

from nhist.errors import DimensionMismatchError


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


def normalize_rows(samples: Any, *, dimension: int) -> list[np.ndarray]:
    """Split a batch of samples into one column per axis.

    Accepts a 1-D array-like when ``dimension == 1`` and an ``(N, dimension)``
    array-like otherwise. Rows may mix numbers and category labels.
    """
    if pd is not None and isinstance(samples, pd.DataFrame):
        if samples.shape[1] != dimension:
            raise DimensionMismatchError(f"frame has {samples.shape[1]} columns, expected {dimension}")
        return [_coerce_column(samples.iloc[:, k], label=f"column {k}") for k in range(dimension)]

    arr = _to_ndarray(samples, label="samples")
    if arr.size == 0 and arr.ndim == 1:
        return [arr for _ in range(dimension)]
    if arr.ndim == 1:
        if dimension > 1:
            raise DimensionMismatchError(f"samples must be two-dimensional for a {dimension}-D histogram")
        return [arr]
    if arr.ndim == 2:
        if arr.shape[1] != dimension:
            raise DimensionMismatchError(
                f"size of second dimension does not match: {arr.shape[1]} != {dimension}"
            )
        return [arr[:, k] for k in range(dimension)]
    raise DimensionMismatchError(f"samples have wrong dimension: ndim={arr.ndim}")


def normalize_columns(columns: Sequence[Any], *, dimension: int) -> list[np.ndarray]:
    if len(columns) != dimension:
        raise DimensionMismatchError(f"expected {dimension} columns, got {len(columns)}")
    out = [_coerce_column(col, label=f"column {k}") for k, col in enumerate(columns)]
    lengths = {col.shape[0] for col in out}
    if len(lengths) > 1:
        raise DimensionMismatchError(f"columns have different lengths: {sorted(lengths)}")
    return out


def _coerce_column(value: Any, *, label: str) -> np.ndarray:
    arr = _to_ndarray(value, label=label)
    if arr.ndim != 1:
        raise DimensionMismatchError(f"{label} must be 1-D")
    return arr


def _to_ndarray(value: Any, *, label: str) -> np.ndarray:
    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.is_cuda:
            tensor = tensor.cpu()
        return tensor.to(torch.float64).numpy()

    if pd is not None and isinstance(value, pd.Series):
        return _coerce_ndarray(value.to_numpy())

    if isinstance(value, np.ndarray):
        return _coerce_ndarray(value)

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return _coerce_ndarray(np.asarray(value, dtype=object))

    raise TypeError(f"unsupported {label} input type: {type(value)!r}")


def _coerce_ndarray(arr: np.ndarray) -> np.ndarray:
    if arr.dtype.kind in {"i", "u", "f", "b"}:
        return arr.astype(np.float64, copy=False)
    if arr.dtype.kind == "O" and arr.size and all(_is_number(v) for v in arr.flat):
        return arr.astype(np.float64)
    return arr.astype(object, copy=False)


def _is_number(raw: object) -> bool:
    return isinstance(raw, (int, float, np.integer, np.floating)) and not isinstance(raw, bool)
