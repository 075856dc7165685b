"""Split an ordered site stream into fixed-width genomic chunks.

Chunks are the unit of parallel work and of genome-wide aggregation. Sites
of different chunks are never paired, so pairs straddling a chunk boundary
are not compared.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Set

from PyMCorr.interfaces.site import Site
from .exceptions import SiteUnsortedError

logger = logging.getLogger(__name__)


@dataclass
class Chunk:
    """Sites of ``reference`` within the half-open interval [start, end)."""
    reference: str
    start: int
    end: int
    sites: List[Site] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.sites)


def _chunk_start(pos: int, chunk_size: int, offset: int) -> int:
    return offset + (pos - offset) // chunk_size * chunk_size


def iter_chunks(sites: Iterable[Site], chunk_size: int, offset: int = 0) -> Iterator[Chunk]:
    """Group ``sites`` into chunks of ``chunk_size`` bases starting at ``offset``.

    Chunk windows are ``[offset + k * chunk_size, offset + (k + 1) * chunk_size)``
    on every reference. Windows without any site are not emitted.

    Raises:
        SiteUnsortedError: a position decreases within a reference, or a
            reference appears again after another one started.
    """
    if chunk_size < 1:
        raise ValueError("chunk size must be > 0")

    finished: Set[str] = set()
    chunk: Optional[Chunk] = None
    last_pos = -1

    for site in sites:
        if chunk is not None and site.reference != chunk.reference:
            finished.add(chunk.reference)
            yield chunk
            chunk = None

        if chunk is None:
            if site.reference in finished:
                raise SiteUnsortedError(
                    site.reference, site.pos, last_pos,
                    "Input sites must be sorted: reference '{}' appears again.".format(site.reference)
                )
            last_pos = -1
        elif site.pos < last_pos:
            raise SiteUnsortedError(site.reference, site.pos, last_pos)
        last_pos = site.pos

        if chunk is not None and site.pos >= chunk.end:
            yield chunk
            chunk = None

        if chunk is None:
            start = _chunk_start(site.pos, chunk_size, offset)
            chunk = Chunk(site.reference, start, start + chunk_size)
        chunk.sites.append(site)

    if chunk is not None:
        yield chunk
