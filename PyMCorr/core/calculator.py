"""Composite lag correlation calculator.

A ``Calculator`` bundles the three lag tables derived from the same
per-window covariance:

- ``cs``: mean/variance over windows of the per-window covariance result
- ``cr``: covariance over windows of the per-window mean x and mean y
- ``ct``: covariance over every raw (x, y) sample

Calculators are created per worker and per chunk and folded together with
``append``, which only touches accumulator state.
"""
from __future__ import annotations

import numpy.typing as npt

from .accumulator import Covariance
from .lagtable import Covariances, MeanVariances


class Calculator(object):
    def __init__(self, max_lag: int) -> None:
        self.max_lag = max_lag
        self.cs = MeanVariances(max_lag)
        self.cr = Covariances(max_lag)
        self.ct = Covariances(max_lag)

    def increment(self, xs: npt.ArrayLike, ys: npt.ArrayLike, lag: int) -> None:
        """Add the difference indicators of one window observed at ``lag``.

        Lags outside the table and windows without any sample are ignored.
        """
        if lag >= self.max_lag:
            return
        cov = Covariance.from_samples(xs, ys)
        if not cov.n:
            return

        self.cs.increment(lag, cov.result)
        self.ct.append_at(lag, cov)
        self.cr.increment(lag, cov.mean_x, cov.mean_y)

    def append(self, other: Calculator) -> None:
        """Merge another calculator of the same size into this one."""
        if other.max_lag != self.max_lag:
            raise ValueError("Can not merge calculators with max lag {} and {}".format(
                self.max_lag, other.max_lag))
        self.cs.append(other.cs)
        self.cr.append(other.cr)
        self.ct.append(other.ct)

    @property
    def is_empty(self) -> bool:
        return not self.cs.n.any()
