from nhist.axes import AXIS_LIMIT, AxisSet
from nhist.axis import (
    Axis,
    CategoryAxis,
    IntegerAxis,
    PolarAxis,
    RegularAxis,
    VariableAxis,
    axis_from_dict,
    axis_to_dict,
)
from nhist.config import HistogramDefinition, load_definition
from nhist.errors import (
    AxisMismatchError,
    ConfigError,
    DimensionMismatchError,
    HistogramError,
    IndexOutOfRangeError,
    InvalidAxisError,
    SerializationError,
    ShapeMismatchError,
    StorageOverflowError,
    UnknownCategoryError,
)
from nhist.histogram import BufferExport, Histogram
from nhist.storage import DEPTH_LADDER, DenseStorage

__all__ = [
    "AXIS_LIMIT",
    "Axis",
    "AxisMismatchError",
    "AxisSet",
    "BufferExport",
    "CategoryAxis",
    "ConfigError",
    "DEPTH_LADDER",
    "DenseStorage",
    "DimensionMismatchError",
    "Histogram",
    "HistogramDefinition",
    "HistogramError",
    "IndexOutOfRangeError",
    "IntegerAxis",
    "InvalidAxisError",
    "PolarAxis",
    "RegularAxis",
    "SerializationError",
    "ShapeMismatchError",
    "StorageOverflowError",
    "UnknownCategoryError",
    "VariableAxis",
    "axis_from_dict",
    "axis_to_dict",
    "load_definition",
]
