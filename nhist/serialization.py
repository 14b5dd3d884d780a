from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
import json
import logging
from pathlib import Path
from typing import Any, Mapping

from .axes import AxisSet
from .axis import axis_from_dict, axis_to_dict
from .errors import HistogramError, SerializationError
from .histogram import Histogram
from .storage import DenseStorage


LOGGER = logging.getLogger(__name__)

CURRENT_FORMAT_VERSION = "1"
SUPPORTED_FORMAT_VERSIONS = {"1"}
DEPRECATED_FORMAT_VERSIONS: set[str] = set()


@dataclass(frozen=True)
class FormatCompatibility:
    accepted: bool
    warning: str | None


def check_format_compatibility(version: str) -> FormatCompatibility:
    if version not in SUPPORTED_FORMAT_VERSIONS:
        return FormatCompatibility(accepted=False, warning=f"unsupported histogram format_version={version}")
    if version in DEPRECATED_FORMAT_VERSIONS:
        return FormatCompatibility(accepted=True, warning=f"histogram format_version={version} is deprecated")
    return FormatCompatibility(accepted=True, warning=None)


def to_dict(hist: Histogram) -> dict[str, Any]:
    storage = hist.storage
    return {
        "format_version": CURRENT_FORMAT_VERSION,
        "axes": [axis_to_dict(axis) for axis in hist.axes],
        "depth": storage.depth,
        "size": storage.size,
        "data": base64.b64encode(storage.to_bytes()).decode("ascii"),
    }


def from_dict(payload: Mapping[str, Any]) -> Histogram:
    if not isinstance(payload, Mapping):
        raise SerializationError("histogram document must be a JSON object")
    try:
        version = str(payload["format_version"])
        raw_axes = payload["axes"]
        depth = int(payload["depth"])
        size = int(payload["size"])
        encoded = str(payload["data"])
    except KeyError as exc:
        raise SerializationError(f"histogram document missing required field: {exc.args[0]}") from exc
    except (TypeError, ValueError) as exc:
        raise SerializationError(f"malformed histogram document: {exc}") from exc

    compat = check_format_compatibility(version)
    if not compat.accepted:
        raise SerializationError(compat.warning or f"unsupported format_version={version}")
    if compat.warning:
        LOGGER.warning("%s", compat.warning)

    if not isinstance(raw_axes, list):
        raise SerializationError("`axes` must be a list")
    try:
        payload_bytes = base64.b64decode(encoded.encode("ascii"), validate=True)
    except (binascii.Error, UnicodeEncodeError) as exc:
        raise SerializationError(f"`data` is not valid base64: {exc}") from exc

    try:
        axes = AxisSet(axis_from_dict(raw) for raw in raw_axes)
        if axes.size != size:
            raise SerializationError(f"document size {size} does not match axes ({axes.size} cells)")
        storage = DenseStorage.from_bytes(payload_bytes, size, depth)
    except SerializationError:
        raise
    except (HistogramError, ValueError) as exc:
        raise SerializationError(f"cannot rebuild histogram: {exc}") from exc
    return Histogram._from_parts(axes, storage)


def dumps(hist: Histogram) -> str:
    return json.dumps(to_dict(hist), separators=(",", ":"), sort_keys=True)


def loads(text: str | bytes) -> Histogram:
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SerializationError(f"histogram document is not valid JSON: {exc}") from exc
    return from_dict(payload)


def save(hist: Histogram, path: str | Path) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(dumps(hist), encoding="utf-8")
    return out


def load(path: str | Path) -> Histogram:
    src = Path(path)
    if not src.exists():
        raise FileNotFoundError(f"histogram file not found: {src}")
    return loads(src.read_text(encoding="utf-8"))
