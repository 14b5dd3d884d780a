from __future__ import annotations


class HistogramError(Exception):
    pass


class InvalidAxisError(HistogramError, ValueError, TypeError):
    pass


class DimensionMismatchError(HistogramError, ValueError):
    pass


class IndexOutOfRangeError(HistogramError, IndexError):
    pass


class AxisMismatchError(HistogramError, ValueError):
    pass


class ShapeMismatchError(HistogramError, ValueError):
    pass


class UnknownCategoryError(HistogramError, KeyError):
    pass


class StorageOverflowError(HistogramError, OverflowError):
    pass


class SerializationError(HistogramError, ValueError):
    pass


class ConfigError(HistogramError, ValueError):
    pass
