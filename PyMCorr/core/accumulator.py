"""Online, mergeable sufficient-statistics accumulators.

Both accumulators support O(1) incremental updates and O(1) merges, so that
partial results computed by different workers can be folded together in any
order. Reads on an empty accumulator return NaN instead of raising.
"""
from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np
import numpy.typing as npt


@dataclass
class Covariance:
    """Bivariate covariance accumulator holding (sum xy, sum x, sum y, n)."""
    xy: float = 0.0
    x: float = 0.0
    y: float = 0.0
    n: int = 0

    @classmethod
    def from_samples(cls, xs: npt.ArrayLike, ys: npt.ArrayLike) -> Covariance:
        """Build an accumulator over paired samples in one pass."""
        xs = np.asarray(xs, dtype=np.float64)
        ys = np.asarray(ys, dtype=np.float64)
        if xs.shape != ys.shape:
            raise ValueError("x and y sample arrays differ in length")
        return cls(float(np.dot(xs, ys)), float(xs.sum()), float(ys.sum()), int(xs.size))

    def increment(self, x: float, y: float) -> None:
        self.xy += x * y
        self.x += x
        self.y += y
        self.n += 1

    def append(self, other: Covariance) -> None:
        """Merge another accumulator into this one."""
        self.xy += other.xy
        self.x += other.x
        self.y += other.y
        self.n += other.n

    @property
    def mean_x(self) -> float:
        return self.x / self.n if self.n else math.nan

    @property
    def mean_y(self) -> float:
        return self.y / self.n if self.n else math.nan

    @property
    def result(self) -> float:
        """Population covariance, NaN if no sample was added."""
        if not self.n:
            return math.nan
        return self.xy / self.n - (self.x / self.n) * (self.y / self.n)


@dataclass
class MeanVariance:
    """Running mean and variance (Welford update, Chan et al. merge)."""
    n: int = 0
    mean: float = math.nan
    m2: float = 0.0

    def increment(self, v: float) -> None:
        self.n += 1
        if self.n == 1:
            self.mean = v
            self.m2 = 0.0
            return
        delta = v - self.mean
        self.mean += delta / self.n
        self.m2 += delta * (v - self.mean)

    def append(self, other: MeanVariance) -> None:
        """Merge another accumulator into this one."""
        if not other.n:
            return
        if not self.n:
            self.n, self.mean, self.m2 = other.n, other.mean, other.m2
            return
        n = self.n + other.n
        delta = other.mean - self.mean
        self.mean += delta * other.n / n
        self.m2 += other.m2 + delta * delta * self.n * other.n / n
        self.n = n

    @property
    def variance(self) -> float:
        """Bias-corrected sample variance; NaN when empty, 0 for one sample."""
        if not self.n:
            return math.nan
        if self.n == 1:
            return 0.0
        return self.m2 / (self.n - 1)
