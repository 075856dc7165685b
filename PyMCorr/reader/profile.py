"""Position class profile of a genome.

Every base of a reference is classified from the CDS features of a GFF3
annotation as non-coding, first, second or third codon position, or
four-fold degenerate (a third position where every base encodes the same
amino acid). The profile is used to restrict a calculation to one class of
positions.
"""
from __future__ import annotations

import logging
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, NamedTuple, Optional, Union

import numpy as np
import numpy.typing as npt
import pysam
from Bio.Data.CodonTable import unambiguous_dna_by_id
from Bio.Seq import reverse_complement
from BCBio import GFF

from PyMCorr.core.exceptions import ProfileError
from PyMCorr.interfaces.config import PositionType

logger = logging.getLogger(__name__)

STOP = '*'


def _make_codon_table(table: Any) -> Dict[str, str]:
    codons = dict(table.forward_table)
    for codon in table.stop_codons:
        codons[codon] = STOP
    return codons


# NCBI genetic code id -> {codon: amino acid}, stop codons as '*'
CODON_TABLES: Dict[int, Dict[str, str]] = {
    table_id: _make_codon_table(table) for table_id, table in unambiguous_dna_by_id.items()
}


class SiteType(IntEnum):
    NONCODING = 0
    FIRST = 1
    SECOND = 2
    THIRD = 3
    FOURFOLD = 4


_CODING_TYPES = frozenset((SiteType.FIRST, SiteType.SECOND, SiteType.THIRD, SiteType.FOURFOLD))
_POSITION2SITETYPE = {
    PositionType.NONCODING: SiteType.NONCODING,
    PositionType.FIRST: SiteType.FIRST,
    PositionType.SECOND: SiteType.SECOND,
    PositionType.THIRD: SiteType.THIRD,
    PositionType.FOURFOLD: SiteType.FOURFOLD,
}


def accepts(position_type: PositionType, site_type: SiteType) -> bool:
    """Whether a site of ``site_type`` belongs to ``position_type``.

    ``coding`` accepts every codon position and ``third`` includes four-fold
    degenerate sites.
    """
    if position_type is PositionType.ALL:
        return True
    if position_type is PositionType.CODING:
        return site_type in _CODING_TYPES
    if position_type is PositionType.THIRD:
        return site_type in (SiteType.THIRD, SiteType.FOURFOLD)
    return _POSITION2SITETYPE[position_type] == site_type


def is_fourfold(codon: str, table: Dict[str, str]) -> bool:
    """Whether the third base of ``codon`` is four-fold degenerate."""
    prefix = codon[:2]
    aas = {table.get(prefix + b) for b in "ACGT"}
    return len(aas) == 1 and None not in aas and STOP not in aas


class CDSFeature(NamedTuple):
    """A CDS feature with 0-based half-open coordinates."""
    reference: str
    start: int
    end: int
    strand: str
    phase: int


def _iter_cds(features: Iterable[Any]) -> Iterator[Any]:
    for feat in features:
        if feat.type == "CDS":
            yield feat
        yield from _iter_cds(getattr(feat, "sub_features", ()))


def iter_gff_cds(path: Union[str, Path]) -> Iterator[CDSFeature]:
    """Yield the CDS features of a GFF3 file."""
    limit_info = dict(gff_type=["CDS"])
    with open(path) as gff_handle:
        for rec in GFF.parse(gff_handle, limit_info=limit_info, target_lines=1):
            for feat in _iter_cds(rec.features):
                phase = feat.qualifiers.get("phase", ['0'])[0]
                yield CDSFeature(
                    rec.id,
                    int(feat.location.start),
                    int(feat.location.end),
                    '-' if feat.location.strand == -1 else '+',
                    0 if phase == '.' else int(phase)
                )


class GenomeProfile(object):
    """Per-base ``SiteType`` arrays of every reference."""

    def __init__(self, profiles: Dict[str, npt.NDArray[np.uint8]]) -> None:
        self.profiles = profiles

    @classmethod
    def from_files(cls,
                   fasta_path: Optional[Union[str, Path]],
                   gff_path: Optional[Union[str, Path]],
                   codon_table: int = 11) -> GenomeProfile:
        if fasta_path is None or gff_path is None:
            raise ProfileError("Position filtering requires both -r/--reference and -g/--gff.")
        if codon_table not in CODON_TABLES:
            raise ProfileError("Unsupported codon table: {}".format(codon_table))

        logger.info("Load reference sequences from '{}'".format(fasta_path))
        try:
            with pysam.FastxFile(str(fasta_path)) as fa:
                sequences = {entry.name: entry.sequence.upper() for entry in fa}
        except (IOError, OSError) as e:
            raise ProfileError("Failed to read reference '{}': {}".format(fasta_path, e))

        logger.info("Load CDS annotation from '{}'".format(gff_path))
        try:
            features = list(iter_gff_cds(gff_path))
        except (IOError, OSError, ValueError, IndexError) as e:
            raise ProfileError("Failed to read annotation '{}': {}".format(gff_path, e))

        return cls.build(sequences, features, CODON_TABLES[codon_table])

    @classmethod
    def build(cls, sequences: Dict[str, str], features: Iterable[CDSFeature],
              table: Dict[str, str]) -> GenomeProfile:
        profiles = {ref: np.zeros(len(seq), dtype=np.uint8) for ref, seq in sequences.items()}

        nfeatures = 0
        for feat in features:
            if feat.reference not in sequences:
                logger.warning("Reference '{}' of a CDS is not in the FASTA; skipped".format(feat.reference))
                continue
            cls._profile_cds(profiles[feat.reference], sequences[feat.reference], feat, table)
            nfeatures += 1

        logger.info("Profiled {} CDS features on {} references".format(nfeatures, len(profiles)))
        return cls(profiles)

    @staticmethod
    def _profile_cds(profile: npt.NDArray[np.uint8], seq: str, feat: CDSFeature,
                     table: Dict[str, str]) -> None:
        end = min(feat.end, len(seq))
        if feat.strand == '-':
            # codons are read from the end on the reverse strand
            for codon_end in range(end - feat.phase, feat.start + 2, -3):
                codon = reverse_complement(seq[codon_end - 3:codon_end])
                first, second, third = codon_end - 1, codon_end - 2, codon_end - 3
                profile[first] = SiteType.FIRST
                profile[second] = SiteType.SECOND
                profile[third] = SiteType.FOURFOLD if is_fourfold(codon, table) else SiteType.THIRD
        else:
            for codon_start in range(feat.start + feat.phase, end - 2, 3):
                codon = seq[codon_start:codon_start + 3]
                profile[codon_start] = SiteType.FIRST
                profile[codon_start + 1] = SiteType.SECOND
                profile[codon_start + 2] = SiteType.FOURFOLD if is_fourfold(codon, table) else SiteType.THIRD

    def site_type(self, reference: str, pos: int) -> Optional[SiteType]:
        """Class of a position; None outside the profiled sequences."""
        profile = self.profiles.get(reference)
        if profile is None or not 0 <= pos < len(profile):
            return None
        return SiteType(int(profile[pos]))

    def accepts(self, position_type: PositionType, reference: str, pos: int) -> bool:
        site_type = self.site_type(reference, pos)
        if site_type is None:
            return False
        return accepts(position_type, site_type)
