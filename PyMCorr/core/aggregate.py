"""Genome-wide aggregation of per-chunk lag correlations.

Every chunk yields one ``Calculator``. For each lag, the chunk contributes a
single observation of Cs (mean of per-window covariances), Cr (covariance of
per-window means) and Ct (covariance of all samples) when it holds enough
windows. The genome-wide result is the mean and variance of those
observations across chunks.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterator, List, Tuple

import numpy as np

from .calculator import Calculator
from .lagtable import MeanVariances

logger = logging.getLogger(__name__)

DEFAULT_MIN_CHUNK_SAMPLES = 10


@dataclass(frozen=True)
class LagRow:
    """Genome-wide statistics at one lag distance."""
    lag: int
    cs_mean: float
    cs_var: float
    cr_mean: float
    cr_var: float
    ct_mean: float
    ct_var: float
    n: int

    @property
    def values(self) -> Tuple[float, float, float, float, float, float, int]:
        return (self.cs_mean, self.cs_var, self.cr_mean, self.cr_var,
                self.ct_mean, self.ct_var, self.n)


@dataclass
class LagCorrelationResult:
    """Genome-wide lag correlation table, one row per lag in increasing order."""
    rows: List[LagRow]
    nchunks: int = 0
    nsites: int = 0

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[LagRow]:
        return iter(self.rows)

    @property
    def max_lag(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not any(row.n for row in self.rows)


class GenomeAggregator(object):
    def __init__(self, max_lag: int, min_chunk_samples: int = DEFAULT_MIN_CHUNK_SAMPLES) -> None:
        self.max_lag = max_lag
        self.min_chunk_samples = min_chunk_samples
        self.cs = MeanVariances(max_lag)
        self.cr = MeanVariances(max_lag)
        self.ct = MeanVariances(max_lag)
        self.nchunks = 0
        self.nsites = 0

    def add(self, calculator: Calculator, nsites: int = 0) -> None:
        """Collect one chunk's observation at every lag with enough windows.

        A lag is taken when the chunk holds more than ``min_chunk_samples``
        windows at it and all three statistics are finite.
        """
        if calculator.max_lag != self.max_lag:
            raise ValueError("Can not aggregate a calculator with max lag {} into {}".format(
                calculator.max_lag, self.max_lag))

        self.nchunks += 1
        self.nsites += nsites
        if calculator.is_empty:
            return

        cs_n = calculator.cs.n
        cs_mean = calculator.cs.mean
        cr = calculator.cr.results()
        ct = calculator.ct.results()

        for lag in np.flatnonzero(cs_n > self.min_chunk_samples):
            values = (cs_mean[lag], cr[lag], ct[lag])
            if not all(math.isfinite(v) for v in values):
                continue
            self.cs.increment(lag, float(values[0]))
            self.cr.increment(lag, float(values[1]))
            self.ct.increment(lag, float(values[2]))

    def result(self) -> LagCorrelationResult:
        rows = []
        for lag in range(self.max_lag):
            cs, cr, ct = self.cs[lag], self.cr[lag], self.ct[lag]
            rows.append(LagRow(
                lag=lag,
                cs_mean=cs.mean, cs_var=cs.variance,
                cr_mean=cr.mean, cr_var=cr.variance,
                ct_mean=ct.mean, ct_var=ct.variance,
                n=cs.n
            ))
        logger.debug("Aggregated {} chunks ({} sites)".format(self.nchunks, self.nsites))
        return LagCorrelationResult(rows, self.nchunks, self.nsites)
