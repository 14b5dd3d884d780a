from __future__ import annotations

import base64
import json
from pathlib import Path
import tempfile
import unittest
from unittest import mock

from nhist import serialization
from nhist.axis import CategoryAxis, IntegerAxis, RegularAxis, VariableAxis
from nhist.errors import SerializationError
from nhist.histogram import Histogram


def _sample() -> Histogram:
    hist = Histogram(RegularAxis(4, 0.0, 2.0, label="x"), CategoryAxis(("a", "b"), unmatched="other"))
    for x, c in ((0.1, "a"), (1.9, "b"), (5.0, "zz"), (-1.0, "a")):
        hist.fill(x, c)
    for _ in range(300):
        hist.fill(0.7, "b")
    return hist


class SerializationTests(unittest.TestCase):
    def test_round_trip_preserves_axes_counts_and_depth(self) -> None:
        hist = _sample()
        restored = serialization.loads(serialization.dumps(hist))
        self.assertEqual(restored, hist)
        self.assertEqual(restored.depth, 2)
        self.assertEqual(restored.axes, hist.axes)
        self.assertEqual(restored.at(-1, 0), 1)

    def test_document_layout(self) -> None:
        doc = serialization.to_dict(Histogram(IntegerAxis(0, 3, underflow=False, overflow=False)))
        self.assertEqual(doc["format_version"], serialization.CURRENT_FORMAT_VERSION)
        self.assertEqual(doc["depth"], 1)
        self.assertEqual(doc["size"], 3)
        self.assertEqual(base64.b64decode(doc["data"]), b"\x00\x00\x00")
        self.assertEqual(doc["axes"][0]["kind"], "integer")

    def test_unsupported_version_rejected(self) -> None:
        doc = serialization.to_dict(_sample())
        doc["format_version"] = "99"
        with self.assertRaisesRegex(SerializationError, "unsupported"):
            serialization.from_dict(doc)

    def test_deprecated_version_warns(self) -> None:
        doc = serialization.to_dict(_sample())
        with mock.patch.object(serialization, "DEPRECATED_FORMAT_VERSIONS", {"1"}):
            with self.assertLogs("nhist.serialization", level="WARNING") as logs:
                restored = serialization.from_dict(doc)
        self.assertEqual(restored, _sample())
        self.assertIn("deprecated", logs.output[0])

    def test_compatibility_check(self) -> None:
        self.assertTrue(serialization.check_format_compatibility("1").accepted)
        self.assertIsNone(serialization.check_format_compatibility("1").warning)
        self.assertFalse(serialization.check_format_compatibility("0").accepted)

    def test_missing_field(self) -> None:
        doc = serialization.to_dict(_sample())
        del doc["data"]
        with self.assertRaisesRegex(SerializationError, "data"):
            serialization.from_dict(doc)

    def test_bad_base64(self) -> None:
        doc = serialization.to_dict(_sample())
        doc["data"] = "not base64!!"
        with self.assertRaises(SerializationError):
            serialization.from_dict(doc)

    def test_payload_length_mismatch(self) -> None:
        doc = serialization.to_dict(_sample())
        doc["data"] = base64.b64encode(b"\x00" * 3).decode("ascii")
        with self.assertRaises(SerializationError):
            serialization.from_dict(doc)

    def test_size_mismatch(self) -> None:
        doc = serialization.to_dict(_sample())
        doc["size"] = doc["size"] + 1
        with self.assertRaisesRegex(SerializationError, "size"):
            serialization.from_dict(doc)

    def test_invalid_axis_descriptor(self) -> None:
        doc = serialization.to_dict(_sample())
        doc["axes"][0]["kind"] = "log"
        with self.assertRaises(SerializationError):
            serialization.from_dict(doc)

    def test_unsupported_depth(self) -> None:
        doc = serialization.to_dict(Histogram(RegularAxis(2, 0, 1)))
        doc["depth"] = 3
        with self.assertRaises(SerializationError):
            serialization.from_dict(doc)

    def test_invalid_json(self) -> None:
        with self.assertRaises(SerializationError):
            serialization.loads("{not json")
        with self.assertRaises(SerializationError):
            serialization.loads(json.dumps([1, 2, 3]))

    def test_save_and_load(self) -> None:
        hist = Histogram(VariableAxis((0.0, 1.0, 10.0)))
        hist.fill_many([0.5, 3.0, 3.0, 20.0])
        with tempfile.TemporaryDirectory() as td:
            path = serialization.save(hist, Path(td) / "nested" / "h.json")
            self.assertTrue(path.exists())
            self.assertEqual(serialization.load(path), hist)

    def test_load_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(FileNotFoundError):
                serialization.load(Path(td) / "absent.json")


if __name__ == "__main__":
    unittest.main()
