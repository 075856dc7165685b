"""Tests for lag-indexed accumulator tables."""
import math

import numpy as np
import pytest

from PyMCorr.core.accumulator import Covariance, MeanVariance
from PyMCorr.core.lagtable import Covariances, MeanVariances


class TestCovariances:
    def test_fresh_table_is_empty(self):
        table = Covariances(4)
        assert len(table) == 4
        assert all(table.get_n(lag) == 0 for lag in range(4))
        assert all(math.isnan(table.get_result(lag)) for lag in range(4))
        assert np.isnan(table.results()).all()

    def test_increment_only_touches_its_lag(self):
        table = Covariances(3)
        table.increment(1, 1.0, 0.0)
        table.increment(1, 0.0, 0.0)
        assert table.get_n(0) == 0
        assert table.get_n(1) == 2
        assert table.get_n(2) == 0
        assert table.get_mean_x(1) == pytest.approx(0.5)
        assert table.get_mean_y(1) == pytest.approx(0.0)

    def test_append_at_merges_scalar_accumulator(self):
        table = Covariances(2)
        cov = Covariance.from_samples([1.0, 0.0, 1.0], [1.0, 0.0, 0.0])
        table.append_at(1, cov)
        assert table[1] == cov
        assert table.get_result(1) == pytest.approx(cov.result)

    def test_whole_table_merge_equals_per_lag_merge(self):
        rng = np.random.default_rng(3)
        a, b = Covariances(5), Covariances(5)
        for table in (a, b):
            for _ in range(40):
                table.increment(int(rng.integers(0, 5)), float(rng.integers(0, 2)), float(rng.integers(0, 2)))

        per_lag = []
        for lag in range(5):
            cov = a[lag]
            cov.append(b[lag])
            per_lag.append(cov)

        a.append(b)
        for lag in range(5):
            assert a[lag] == per_lag[lag]
        np.testing.assert_allclose(a.results(), [c.result for c in per_lag])

    def test_append_rejects_different_length(self):
        with pytest.raises(ValueError):
            Covariances(3).append(Covariances(4))


class TestMeanVariances:
    def test_increment_and_snapshot(self):
        table = MeanVariances(2)
        for v in (1.0, 2.0, 3.0):
            table.increment(0, v)
        assert table.get_n(0) == 3
        assert table.get_mean(0) == pytest.approx(2.0)
        assert table.get_var(0) == pytest.approx(1.0)
        assert math.isnan(table.get_mean(1))
        assert math.isnan(table.get_var(1))

    def test_append_with_empty_sides(self):
        a, b = MeanVariances(3), MeanVariances(3)
        a.increment(0, 1.0)
        a.increment(0, 3.0)
        b.increment(1, 5.0)
        b.increment(2, 2.0)
        a.increment(2, 4.0)

        a.append(b)

        assert a.get_n(0) == 2 and a.get_mean(0) == pytest.approx(2.0)
        assert a.get_n(1) == 1 and a.get_mean(1) == pytest.approx(5.0)
        assert a.get_var(1) == 0.0
        assert a.get_n(2) == 2 and a.get_mean(2) == pytest.approx(3.0)
        assert a.get_var(2) == pytest.approx(2.0)

    def test_append_at(self):
        table = MeanVariances(2)
        mv = MeanVariance()
        for v in (2.0, 4.0):
            mv.increment(v)
        table.append_at(1, mv)
        table.increment(1, 6.0)
        assert table.get_n(1) == 3
        assert table.get_mean(1) == pytest.approx(4.0)
        assert table.get_var(1) == pytest.approx(4.0)

    def test_append_rejects_other_table_type(self):
        with pytest.raises(ValueError):
            MeanVariances(3).append(Covariances(3))
