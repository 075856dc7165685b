"""Site and allele models shared by readers and the calculation core.

A ``Site`` is one genomic position with every base observed on it. Sites are
immutable; filtering produces new instances.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

VALID_BASES = frozenset("ATGC")
AMBIGUOUS_BASE = 'N'


@dataclass(frozen=True)
class Allele:
    """One base observed on a read.

    Attributes:
        base: Upper-case base character
        quality: Phred base quality
        read_id: Read (or read pair) name; None when the input has no names
    """
    base: str
    quality: int = 0
    read_id: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.base in VALID_BASES


@dataclass(frozen=True)
class Site:
    """Observed alleles at a 0-based position of a reference."""
    reference: str
    pos: int
    base: str = AMBIGUOUS_BASE
    alleles: Tuple[Allele, ...] = field(default_factory=tuple)

    @property
    def depth(self) -> int:
        return len(self.alleles)

    def collapse_mates(self) -> Site:
        """Merge alleles sharing a read name into one allele.

        Overlapping mates of a read pair are observed twice at the same site.
        They are merged into a single allele that keeps its base if both
        observations agree and becomes ambiguous otherwise. Alleles without a
        read name are left untouched.
        """
        named: Dict[str, List[Allele]] = OrderedDict()
        for allele in self.alleles:
            if allele.read_id is not None:
                named.setdefault(allele.read_id, []).append(allele)

        if len(named) == sum(1 for a in self.alleles if a.read_id is not None):
            return self

        alleles: List[Allele] = [a for a in self.alleles if a.read_id is None]
        for read_id, observed in named.items():
            if len(observed) == 1:
                alleles.append(observed[0])
                continue
            bases = {a.base for a in observed}
            base = observed[0].base if len(bases) == 1 else AMBIGUOUS_BASE
            alleles.append(Allele(base, max(a.quality for a in observed), read_id))

        return replace(self, alleles=tuple(alleles))

    def filter_quality(self, min_quality: int) -> Site:
        """Drop alleles whose base quality is below ``min_quality``."""
        if min_quality <= 0:
            return self
        return replace(self, alleles=tuple(a for a in self.alleles if a.quality >= min_quality))
