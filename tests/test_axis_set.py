from __future__ import annotations

import unittest

import numpy as np

from nhist.axes import AXIS_LIMIT, AxisSet
from nhist.axis import DROPPED, CategoryAxis, IntegerAxis, RegularAxis
from nhist.errors import DimensionMismatchError, IndexOutOfRangeError, InvalidAxisError


class AxisSetTests(unittest.TestCase):
    def test_shape_excludes_flow_slots(self) -> None:
        axes = AxisSet([RegularAxis(4, 0, 4), CategoryAxis(("a", "b", "c"))])
        self.assertEqual(axes.dimension, 2)
        self.assertEqual(axes.shape(0), 4)
        self.assertEqual(axes.shape(1), 3)
        self.assertEqual(axes.extents, (6, 3))
        self.assertEqual(axes.size, 18)

    def test_row_major_strides(self) -> None:
        axes = AxisSet([IntegerAxis(0, 2), IntegerAxis(0, 3), IntegerAxis(0, 4)])
        self.assertEqual(axes.extents, (4, 5, 6))
        self.assertEqual(axes.strides, (30, 6, 1))

    def test_flatten_uses_slots(self) -> None:
        axes = AxisSet([RegularAxis(2, 0, 2), RegularAxis(3, 0, 3, underflow=False)])
        self.assertEqual(axes.strides, (4, 1))
        self.assertEqual(axes.flatten((1, 2)), 6)
        self.assertEqual(axes.flatten((-1, 3)), 3 * 4 + 3)
        self.assertEqual(axes.flatten((2, 0)), 8)

    def test_flatten_rejects_wrong_arity(self) -> None:
        axes = AxisSet([RegularAxis(2, 0, 2), RegularAxis(2, 0, 2)])
        with self.assertRaises(DimensionMismatchError):
            axes.flatten((1,))
        with self.assertRaises(DimensionMismatchError):
            axes.flatten((1, 1, 1))

    def test_flatten_rejects_unreserved_slots(self) -> None:
        axes = AxisSet([RegularAxis(2, 0, 2, underflow=False, overflow=False)])
        with self.assertRaises(IndexOutOfRangeError):
            axes.flatten((-1,))
        with self.assertRaises(IndexOutOfRangeError):
            axes.flatten((2,))

    def test_flatten_many_propagates_drops(self) -> None:
        axes = AxisSet([IntegerAxis(0, 2), IntegerAxis(0, 3)])
        first = np.array([0, 1, DROPPED], dtype=np.int64)
        second = np.array([2, DROPPED, 1], dtype=np.int64)
        self.assertEqual(axes.flatten_many([first, second]).tolist(), [2, DROPPED, DROPPED])

    def test_construction_limits(self) -> None:
        with self.assertRaises(InvalidAxisError):
            AxisSet([])
        with self.assertRaises(InvalidAxisError):
            AxisSet([IntegerAxis(0, 1)] * (AXIS_LIMIT + 1))
        with self.assertRaises(TypeError):
            AxisSet([RegularAxis(2, 0, 2), "not an axis"])  # type: ignore[list-item]
        self.assertEqual(AxisSet([IntegerAxis(0, 1)] * AXIS_LIMIT).dimension, AXIS_LIMIT)

    def test_equality_is_structural(self) -> None:
        a = AxisSet([RegularAxis(5, 0, 5), CategoryAxis(("x",))])
        b = AxisSet([RegularAxis(5, 0.0, 5.0), CategoryAxis(["x"])])
        c = AxisSet([RegularAxis(5, 0, 5)])
        self.assertEqual(a, b)
        self.assertEqual(hash(a), hash(b))
        self.assertNotEqual(a, c)


if __name__ == "__main__":
    unittest.main()
