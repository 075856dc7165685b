"""samtools mpileup text reader.

Decodes lines of ``samtools mpileup`` output into ``Site`` objects::

    ref  pos  ref_base  depth  bases  quals  [... read_names]

Read names (``--output-QNAME``) are taken from the last column of lines with
seven or more columns. Positions are converted to 0-based.
"""
from __future__ import annotations

import logging
import re
import sys
from pathlib import Path
from typing import Any, Iterator, List, Optional, TextIO, Tuple, Union

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from PyMCorr.core.exceptions import PileupFormatError
from PyMCorr.interfaces.site import Allele, Site
from PyMCorr.utils.calc import ChromFilter

logger = logging.getLogger(__name__)

STDIN_PATH = '-'
PHRED_OFFSET = 33
QNAME_COLUMN_MIN = 7

_READ_START = re.compile(r"\^.")
_INDEL = re.compile(r"[+-]([0-9]+)")


def decode_bases(bases: str, ref_base: str) -> str:
    """Strip read start/end markers and indels, resolve reference matches.

    >>> decode_bases("^I.,+2ATa-1c$", "g")
    'GGA'
    """
    bases = _READ_START.sub('', bases).replace('$', '')

    decoded: List[str] = []
    i = 0
    while i < len(bases):
        m = _INDEL.match(bases, i)
        if m:
            i = m.end() + int(m.group(1))
            continue
        b = bases[i]
        decoded.append(ref_base if b in ".," else b)
        i += 1

    return ''.join(decoded).upper()


def decode_qualities(quals: str) -> List[int]:
    return [ord(q) - PHRED_OFFSET for q in quals]


def parse_pileup_line(line: str, lineno: int = 0, min_base_quality: int = 0) -> Site:
    """Decode one mpileup line.

    Raises:
        PileupFormatError: the line is truncated or its bases, qualities and
            read names disagree in number.
    """
    terms = line.rstrip("\r\n").split('\t')
    if len(terms) < 4:
        raise PileupFormatError("line {}: expected at least 4 columns, got {}".format(lineno, len(terms)))

    reference, pos, ref_base, depth = terms[:4]
    try:
        site_pos = int(pos) - 1
        ndepth = int(depth)
    except ValueError:
        raise PileupFormatError("line {}: invalid position or depth".format(lineno))
    ref_base = ref_base.upper()[:1] or 'N'

    if ndepth == 0 or len(terms) < 6:
        return Site(reference, site_pos, ref_base)

    bases = decode_bases(terms[4], ref_base)
    quals = decode_qualities(terms[5])
    if len(bases) != len(quals):
        raise PileupFormatError(
            "line {}: {} decoded bases but {} qualities".format(lineno, len(bases), len(quals)))

    names: List[Optional[str]]
    if len(terms) >= QNAME_COLUMN_MIN:
        names = list(terms[-1].split(','))
        if len(names) != len(bases):
            raise PileupFormatError(
                "line {}: {} decoded bases but {} read names".format(lineno, len(bases), len(names)))
    else:
        names = [None] * len(bases)

    alleles = tuple(Allele(b, q, n) for b, q, n in zip(bases, quals, names))
    return Site(reference, site_pos, ref_base, alleles).filter_quality(min_base_quality)


class PileupReader(object):
    """Iterate over the sites of an mpileup file (``-`` for stdin)."""

    def __init__(self,
                 path: Union[str, Path],
                 min_base_quality: int = 0,
                 chromfilter: Optional[List[Tuple[bool, List[str]]]] = None) -> None:
        self.path = path
        self.min_base_quality = min_base_quality
        self._chromfilter = ChromFilter(chromfilter)
        self._fp: Optional[TextIO] = None

    def open(self) -> None:
        if str(self.path) == STDIN_PATH:
            self._fp = sys.stdin
        else:
            self._fp = open(self.path, newline='')

    def close(self) -> None:
        if self._fp is not None and str(self.path) != STDIN_PATH:
            self._fp.close()
        self._fp = None

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(self, _ex_type: Optional[type], _ex_value: Optional[BaseException], _trace: Optional[Any]) -> None:
        self.close()

    def __iter__(self) -> Iterator[Site]:
        if self._fp is None:
            raise ValueError("Pileup file '{}' is not opened".format(self.path))

        for lineno, line in enumerate(self._fp, 1):
            if not line.strip():
                continue
            site = parse_pileup_line(line, lineno, self.min_base_quality)
            if self._chromfilter(site.reference):
                yield site
