"""Tests for the composite lag Calculator."""
import math
import unittest

import numpy as np

from PyMCorr.core.accumulator import Covariance
from PyMCorr.core.calculator import Calculator


class TestCalculatorIncrement(unittest.TestCase):
    """Test that one window updates Cs, Cr and Ct consistently."""

    def test_increment_updates_three_tables(self):
        calc = Calculator(3)
        xs, ys = [1.0, 0.0, 1.0], [1.0, 0.0, 0.0]
        calc.increment(xs, ys, 2)

        cov = Covariance.from_samples(xs, ys)
        self.assertEqual(calc.cs.get_n(2), 1)
        self.assertAlmostEqual(calc.cs.get_mean(2), cov.result)
        self.assertEqual(calc.ct[2], cov)
        self.assertEqual(calc.cr.get_n(2), 1)
        self.assertAlmostEqual(calc.cr.get_mean_x(2), cov.mean_x)
        self.assertAlmostEqual(calc.cr.get_mean_y(2), cov.mean_y)

    def test_lag_out_of_range_is_ignored(self):
        calc = Calculator(3)
        calc.increment([1.0], [1.0], 3)
        calc.increment([1.0], [1.0], 10)
        self.assertTrue(calc.is_empty)

    def test_no_samples_is_ignored(self):
        calc = Calculator(3)
        calc.increment(np.zeros(0), np.zeros(0), 1)
        self.assertTrue(calc.is_empty)
        self.assertTrue(math.isnan(calc.cs.get_mean(1)))


class TestCalculatorAppend(unittest.TestCase):
    """Test merging calculators."""

    def test_append_equals_single_calculator(self):
        windows = [
            ([1.0, 0.0], [1.0, 1.0], 0),
            ([0.0, 1.0, 1.0], [0.0, 1.0, 0.0], 1),
            ([1.0], [0.0], 1),
            ([0.0, 0.0], [1.0, 0.0], 2),
        ]
        single = Calculator(3)
        for xs, ys, lag in windows:
            single.increment(xs, ys, lag)

        left, right = Calculator(3), Calculator(3)
        for xs, ys, lag in windows[:2]:
            left.increment(xs, ys, lag)
        for xs, ys, lag in windows[2:]:
            right.increment(xs, ys, lag)
        left.append(right)

        for lag in range(3):
            self.assertEqual(left.cs.get_n(lag), single.cs.get_n(lag))
            self.assertAlmostEqual(left.cs.get_mean(lag), single.cs.get_mean(lag))
            self.assertEqual(left.ct[lag], single.ct[lag])
            self.assertEqual(left.cr[lag], single.cr[lag])

    def test_append_empty_is_identity(self):
        calc = Calculator(2)
        calc.increment([1.0, 0.0], [0.0, 0.0], 1)
        calc.append(Calculator(2))
        self.assertEqual(calc.cs.get_n(1), 1)
        self.assertEqual(calc.ct.get_n(1), 2)

    def test_append_rejects_different_max_lag(self):
        with self.assertRaises(ValueError):
            Calculator(2).append(Calculator(3))
