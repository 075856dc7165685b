"""Site stream from a coordinate-sorted BAM file.

Columns of ``pysam.AlignmentFile.pileup`` are converted into ``Site``
objects. Overlapping mates are kept as separate observations; they are
collapsed into one allele by the pairing engine.
"""
from __future__ import annotations

import logging
import weakref
from pathlib import Path
from typing import Any, Iterator, List, Literal, Optional, Tuple, Union

import sys
if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

import pysam

from PyMCorr.core.exceptions import NothingToCalc
from PyMCorr.interfaces.site import AMBIGUOUS_BASE, Allele, Site
from PyMCorr.utils.calc import filter_chroms

logger = logging.getLogger(__name__)

MAX_PILEUP_DEPTH = 1000000


class ReferenceSequence(object):
    """Reference bases from an indexed FASTA, one reference held at a time."""

    def __init__(self, path: Optional[Union[str, Path]]) -> None:
        self._fasta = pysam.FastaFile(str(path)) if path is not None else None
        self._reference: Optional[str] = None
        self._seq = ''

    def close(self) -> None:
        if self._fasta is not None:
            self._fasta.close()

    def base(self, reference: str, pos: int) -> str:
        if self._fasta is None:
            return AMBIGUOUS_BASE
        if reference != self._reference:
            self._reference = reference
            if reference in self._fasta.references:
                self._seq = self._fasta.fetch(reference).upper()
            else:
                logger.warning("Reference '{}' not found in the FASTA".format(reference))
                self._seq = ''
        return self._seq[pos] if pos < len(self._seq) else AMBIGUOUS_BASE


class BAMSiteReader(object):
    """Iterate over the pileup sites of the target references of a BAM file."""

    def __init__(self,
                 path: Union[str, Path],
                 min_mapq: int = 0,
                 min_base_quality: int = 0,
                 chromfilter: Optional[List[Tuple[bool, List[str]]]] = None,
                 reference_path: Optional[Union[str, Path]] = None) -> None:
        self.path = path
        self.min_mapq = min_mapq
        self.min_base_quality = min_base_quality
        self.chromfilter = chromfilter
        self.reference_path = reference_path

        self._af: Optional[pysam.AlignmentFile] = None
        self._refseq: Optional[ReferenceSequence] = None
        self.references: Tuple[str, ...] = ()

    def open(self) -> None:
        self._af = pysam.AlignmentFile(str(self.path))
        self._finalizer = weakref.finalize(self, self._af.close)
        self._refseq = ReferenceSequence(self.reference_path)

        all_references = self._af.references
        if not all_references:
            raise NothingToCalc("BAM file '{}' has no reference sequences".format(self.path))
        targets = filter_chroms(all_references, self.chromfilter)
        if not targets:
            raise NothingToCalc("There is no targeted references in '{}'".format(self.path))
        self.references = tuple(r for r in all_references if r in targets)

    def close(self) -> None:
        if self._af is not None:
            self._finalizer()
            self._af = None
        if self._refseq is not None:
            self._refseq.close()
            self._refseq = None

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(self, exc_type: Optional[type], exc: Optional[BaseException], tb: Optional[Any]) -> Literal[False]:
        self.close()
        return False

    def _make_site(self, column: Any) -> Site:
        assert self._refseq is not None
        reference = column.reference_name
        pos = column.reference_pos

        alleles = []
        for pileupread in column.pileups:
            if pileupread.is_del or pileupread.is_refskip:
                continue
            read = pileupread.alignment
            if read.mapping_quality < self.min_mapq:
                continue
            qpos = pileupread.query_position
            quals = read.query_qualities
            quality = int(quals[qpos]) if quals is not None else 0
            alleles.append(Allele(read.query_sequence[qpos].upper(), quality, read.query_name))

        site = Site(reference, pos, self._refseq.base(reference, pos), tuple(alleles))
        return site.filter_quality(self.min_base_quality)

    def __iter__(self) -> Iterator[Site]:
        if self._af is None:
            raise ValueError("BAM file '{}' is not opened".format(self.path))

        targets = set(self.references)
        columns = self._af.pileup(
            stepper="all",
            min_mapping_quality=self.min_mapq,
            min_base_quality=0,
            ignore_overlaps=False,
            ignore_orphans=False,
            max_depth=MAX_PILEUP_DEPTH,
        )
        for column in columns:
            if column.reference_name in targets:
                yield self._make_site(column)
