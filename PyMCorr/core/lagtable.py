"""Fixed-length tables of accumulators indexed by lag distance.

The tables keep one accumulator per lag in numpy structure-of-arrays form,
which makes a whole-table merge a handful of vectorised additions. Single
entries can be read back as scalar accumulators with ``table[lag]``.
"""
from __future__ import annotations

import numpy as np
import numpy.typing as npt

from .accumulator import Covariance, MeanVariance


class _LagTable:
    max_lag: int

    def __len__(self) -> int:
        return self.max_lag

    def _check_compatible(self, other: _LagTable) -> None:
        if type(other) is not type(self) or other.max_lag != self.max_lag:
            raise ValueError(
                "Can not merge {} of size {} into size {}".format(
                    type(other).__name__, other.max_lag, self.max_lag)
            )


class Covariances(_LagTable):
    """Array of ``Covariance`` accumulators, one per lag."""

    def __init__(self, max_lag: int) -> None:
        self.max_lag = max_lag
        self.xy = np.zeros(max_lag, dtype=np.float64)
        self.x = np.zeros(max_lag, dtype=np.float64)
        self.y = np.zeros(max_lag, dtype=np.float64)
        self.n = np.zeros(max_lag, dtype=np.int64)

    def __getitem__(self, lag: int) -> Covariance:
        return Covariance(float(self.xy[lag]), float(self.x[lag]), float(self.y[lag]), int(self.n[lag]))

    def increment(self, lag: int, x: float, y: float) -> None:
        self.xy[lag] += x * y
        self.x[lag] += x
        self.y[lag] += y
        self.n[lag] += 1

    def append_at(self, lag: int, cov: Covariance) -> None:
        """Merge a single accumulator into the entry at ``lag``."""
        self.xy[lag] += cov.xy
        self.x[lag] += cov.x
        self.y[lag] += cov.y
        self.n[lag] += cov.n

    def append(self, other: Covariances) -> None:
        self._check_compatible(other)
        self.xy += other.xy
        self.x += other.x
        self.y += other.y
        self.n += other.n

    def get_n(self, lag: int) -> int:
        return int(self.n[lag])

    def get_result(self, lag: int) -> float:
        return self[lag].result

    def get_mean_x(self, lag: int) -> float:
        return self[lag].mean_x

    def get_mean_y(self, lag: int) -> float:
        return self[lag].mean_y

    def results(self) -> npt.NDArray[np.float64]:
        """Covariance of every lag at once; NaN where no sample exists."""
        with np.errstate(divide="ignore", invalid="ignore"):
            n = self.n.astype(np.float64)
            return self.xy / n - (self.x / n) * (self.y / n)


class MeanVariances(_LagTable):
    """Array of ``MeanVariance`` accumulators, one per lag."""

    def __init__(self, max_lag: int) -> None:
        self.max_lag = max_lag
        self.n = np.zeros(max_lag, dtype=np.int64)
        self.mean = np.full(max_lag, np.nan, dtype=np.float64)
        self.m2 = np.zeros(max_lag, dtype=np.float64)

    def __getitem__(self, lag: int) -> MeanVariance:
        return MeanVariance(int(self.n[lag]), float(self.mean[lag]), float(self.m2[lag]))

    def _store(self, lag: int, mv: MeanVariance) -> None:
        self.n[lag] = mv.n
        self.mean[lag] = mv.mean
        self.m2[lag] = mv.m2

    def increment(self, lag: int, v: float) -> None:
        mv = self[lag]
        mv.increment(v)
        self._store(lag, mv)

    def append_at(self, lag: int, other: MeanVariance) -> None:
        mv = self[lag]
        mv.append(other)
        self._store(lag, mv)

    def append(self, other: MeanVariances) -> None:
        self._check_compatible(other)
        n = self.n + other.n
        delta = other.mean - self.mean
        with np.errstate(divide="ignore", invalid="ignore"):
            mean = self.mean + delta * other.n / n
            m2 = self.m2 + other.m2 + delta * delta * self.n * other.n / n
        # entries where either side is empty take the other side verbatim
        self_empty = self.n == 0
        other_empty = other.n == 0
        mean = np.where(self_empty, other.mean, np.where(other_empty, self.mean, mean))
        m2 = np.where(self_empty, other.m2, np.where(other_empty, self.m2, m2))
        self.n, self.mean, self.m2 = n, mean, m2

    def get_n(self, lag: int) -> int:
        return int(self.n[lag])

    def get_mean(self, lag: int) -> float:
        return self[lag].mean

    def get_var(self, lag: int) -> float:
        return self[lag].variance
