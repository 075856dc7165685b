"""Sliding window pairing of sites.

Sites of one reference are pushed into a ``LagWindow`` in position order.
Whenever the newest site is at least ``max_lag`` bases away from the oldest
pending one, the oldest site becomes an *anchor* and is emitted together
with every pending site closer than ``max_lag`` as a ``Job``. Each site is an
anchor exactly once.

``compare_job`` turns a job into calculator updates: reads observed at both
the anchor and a partner site are paired, and every pair of such reads
yields two difference indicators (one per site) that feed the calculator at
the partner's lag.
"""
from __future__ import annotations

import logging
from collections import deque
from itertools import islice
from typing import Deque, Dict, Iterable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np
import numpy.typing as npt

from PyMCorr.interfaces.site import Site
from .calculator import Calculator
from .exceptions import SiteUnsortedError

logger = logging.getLogger(__name__)


class Job(NamedTuple):
    """An anchor site and the sites within the lag window (anchor first)."""
    anchor: Site
    window: Tuple[Site, ...]


class LagWindow(object):
    def __init__(self, max_lag: int) -> None:
        self.max_lag = max_lag
        self._sites: Deque[Site] = deque()
        self._reference: Optional[str] = None
        self._last_pos = -1

    def __len__(self) -> int:
        return len(self._sites)

    def _check_pos(self, site: Site) -> None:
        if site.reference != self._reference:
            if self._sites:
                raise ValueError("Drain the window before switching reference "
                                 "({} -> {})".format(self._reference, site.reference))
            self._reference = site.reference
            self._last_pos = -1

        if site.pos < self._last_pos:
            raise SiteUnsortedError(site.reference, site.pos, self._last_pos)
        self._last_pos = site.pos

    def push(self, site: Site) -> Iterator[Job]:
        """Add a site and emit the jobs of every anchor it completes."""
        self._check_pos(site)
        self._sites.append(site.collapse_mates())

        while site.pos - self._sites[0].pos >= self.max_lag:
            yield self._pop_job()

    def drain(self) -> Iterator[Job]:
        """Emit the jobs of every remaining anchor."""
        while self._sites:
            yield self._pop_job()

    def _pop_job(self) -> Job:
        anchor = self._sites.popleft()
        window: List[Site] = [anchor]
        for site in self._sites:
            if site.pos - anchor.pos >= self.max_lag:
                break
            window.append(site)
        return Job(anchor, tuple(window))


def iter_jobs(sites: Iterable[Site], max_lag: int) -> Iterator[Job]:
    """Emit the job of every site of an ordered single-reference stream."""
    window = LagWindow(max_lag)
    for site in sites:
        yield from window.push(site)
    yield from window.drain()


class JobBatch(NamedTuple):
    """Jobs of ``nanchors`` consecutive anchors, sent to a worker at once.

    ``sites`` holds the anchors followed by every site needed to complete
    the window of the last anchor.
    """
    sites: Tuple[Site, ...]
    nanchors: int

    def jobs(self, max_lag: int) -> Iterator[Job]:
        for k in range(self.nanchors):
            anchor = self.sites[k]
            window: List[Site] = [anchor]
            for site in islice(self.sites, k + 1, None):
                if site.pos - anchor.pos >= max_lag:
                    break
                window.append(site)
            yield Job(anchor, tuple(window))


def iter_job_batches(sites: Sequence[Site], max_lag: int, batch_size: int) -> Iterator[JobBatch]:
    """Split the jobs of an ordered single-reference site list into batches.

    Emits the same jobs as ``iter_jobs`` without repeating window sites per
    anchor.
    """
    collapsed = [site.collapse_mates() for site in sites]
    for prev, site in zip(collapsed, islice(collapsed, 1, None)):
        if site.pos < prev.pos:
            raise SiteUnsortedError(site.reference, site.pos, prev.pos)

    n = len(collapsed)
    hi = 0
    for lo in range(0, n, batch_size):
        last = min(lo + batch_size, n) - 1
        limit = collapsed[last].pos + max_lag
        hi = max(hi, last + 1)
        while hi < n and collapsed[hi].pos < limit:
            hi += 1
        yield JobBatch(tuple(collapsed[lo:hi]), last - lo + 1)


def find_pairs(anchor_bases: Dict[str, str], site: Site) -> List[Tuple[str, str]]:
    """Pair valid alleles of ``site`` with anchor bases of the same read."""
    pairs = []
    for allele in site.alleles:
        if allele.is_valid and allele.read_id in anchor_bases:
            pairs.append((anchor_bases[allele.read_id], allele.base))
    return pairs


def pair_differences(pairs: List[Tuple[str, str]]) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Difference indicators for every unordered pair of read pairs.

    For read pairs i < j, ``x`` is 1 if their anchor bases differ and ``y``
    is 1 if their partner bases differ.
    """
    if len(pairs) < 2:
        empty = np.zeros(0, dtype=np.float64)
        return empty, empty
    bases0 = np.array([p[0] for p in pairs])
    bases1 = np.array([p[1] for p in pairs])
    i, j = np.triu_indices(len(pairs), k=1)
    xs = (bases0[i] != bases0[j]).astype(np.float64)
    ys = (bases1[i] != bases1[j]).astype(np.float64)
    return xs, ys


def compare_job(job: Job, calculator: Calculator, min_coverage: int) -> None:
    """Feed every lag of a job into ``calculator``.

    Lags with fewer than ``min_coverage`` paired reads are skipped.
    """
    anchor = job.anchor
    anchor_bases = {
        a.read_id: a.base for a in anchor.alleles
        if a.is_valid and a.read_id is not None
    }
    if not anchor_bases:
        return

    for site in job.window:
        lag = site.pos - anchor.pos
        if lag < 0:
            raise SiteUnsortedError(site.reference, site.pos, anchor.pos)
        if lag >= calculator.max_lag:
            break

        pairs = find_pairs(anchor_bases, site)
        if len(pairs) < min_coverage:
            continue

        xs, ys = pair_differences(pairs)
        calculator.increment(xs, ys, lag)
