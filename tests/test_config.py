from __future__ import annotations

from pathlib import Path
import tempfile
import unittest

from nhist.axis import CategoryAxis, RegularAxis
from nhist.config import HistogramDefinition, definition_from_dict, load_definition
from nhist.errors import ConfigError


DIJET = """
name = "dijet"

[storage]
depth = 2

[[axes]]
kind = "regular"
bins = 50
lower = 0.0
upper = 500.0
label = "mjj"

[[axes]]
kind = "category"
labels = ["ee", "mumu"]
unmatched = "other"
"""


class HistogramDefinitionTests(unittest.TestCase):
    def _write(self, td: str, text: str, name: str = "def.toml") -> Path:
        path = Path(td) / name
        path.write_text(text, encoding="utf-8")
        return path

    def test_load_and_build(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            definition = load_definition(self._write(td, DIJET))
        self.assertEqual(definition.name, "dijet")
        self.assertEqual(definition.depth, 2)
        self.assertEqual(definition.axes[0], RegularAxis(50, 0.0, 500.0, label="mjj"))
        self.assertEqual(definition.axes[1], CategoryAxis(("ee", "mumu"), unmatched="other"))
        hist = definition.build()
        self.assertEqual(hist.depth, 2)
        self.assertEqual(hist.dimension, 2)
        self.assertEqual(hist.sum(), 0)

    def test_name_defaults_to_file_stem(self) -> None:
        text = '[[axes]]\nkind = "integer"\nlower = 0\nupper = 4\n'
        with tempfile.TemporaryDirectory() as td:
            definition = load_definition(self._write(td, text, name="counts.toml"))
        self.assertEqual(definition.name, "counts")
        self.assertEqual(definition.depth, 1)

    def test_missing_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(FileNotFoundError):
                load_definition(Path(td) / "missing.toml")

    def test_malformed_toml(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError):
                load_definition(self._write(td, "name = \n"))

    def test_requires_axes(self) -> None:
        with self.assertRaises(ConfigError):
            definition_from_dict({"name": "x"})
        with self.assertRaises(ConfigError):
            definition_from_dict({"name": "x", "axes": []})

    def test_invalid_axis_wrapped(self) -> None:
        raw = {"axes": [{"kind": "regular", "bins": 0, "lower": 0.0, "upper": 1.0}]}
        with self.assertRaisesRegex(ConfigError, "invalid axis"):
            definition_from_dict(raw)

    def test_depth_validation(self) -> None:
        axes = [{"kind": "integer", "lower": 0, "upper": 2}]
        with self.assertRaises(ConfigError):
            definition_from_dict({"axes": axes, "storage": {"depth": 3}})
        with self.assertRaises(ConfigError):
            definition_from_dict({"axes": axes, "storage": {"depth": "wide"}})
        with self.assertRaises(ConfigError):
            definition_from_dict({"axes": axes, "storage": 4})

    def test_config_error_is_value_error(self) -> None:
        with self.assertRaises(ValueError):
            HistogramDefinition(name="empty", axes=())


if __name__ == "__main__":
    unittest.main()
