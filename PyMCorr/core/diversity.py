"""Per-site nucleotide diversity.

The diversity of a site is the probability that two reads drawn without
replacement carry different bases::

    pi = sum(n_i * n_j for i < j) / C(depth, 2)

Only valid bases (A, C, G, T) are counted and overlapping mates count once.
"""
from __future__ import annotations

import math
from collections import Counter
from itertools import combinations
from typing import Iterable, Iterator, NamedTuple, Sequence, Tuple

from PyMCorr.interfaces.site import Site

DIVERSITY_BASES = "ACGT"


def count_alleles(site: Site) -> Tuple[int, int, int, int]:
    """Number of A, C, G and T alleles of ``site``."""
    counter = Counter(a.base for a in site.collapse_mates().alleles if a.is_valid)
    a, c, g, t = (counter[b] for b in DIVERSITY_BASES)
    return a, c, g, t


def nucleotide_diversity(counts: Sequence[int]) -> float:
    """Pairwise difference rate of allele ``counts``; NaN below two alleles.

    >>> nucleotide_diversity((2, 2, 0, 0))
    0.6666666666666666
    """
    total = sum(counts)
    if total < 2:
        return math.nan
    cross = sum(x * y for x, y in combinations(counts, 2))
    return cross / (total * (total - 1) / 2)


class SiteDiversity(NamedTuple):
    reference: str
    pos: int
    base: str
    counts: Tuple[int, int, int, int]

    @property
    def depth(self) -> int:
        return sum(self.counts)

    @property
    def pi(self) -> float:
        return nucleotide_diversity(self.counts)


def iter_site_diversity(sites: Iterable[Site]) -> Iterator[SiteDiversity]:
    """Diversity of every site with at least one observed allele."""
    for site in sites:
        if not site.alleles:
            continue
        yield SiteDiversity(site.reference, site.pos, site.base, count_alleles(site))
