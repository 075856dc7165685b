"""Configuration models and type definitions for PyMCorr.

Defines enums for input formats and position classes, and the main
PyMCorrConfig dataclass holding every calculation parameter. The config is
passed explicitly to handlers, workers and readers.
"""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple
from argparse import Namespace

import sys

if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self


class InputFormat(Enum):
    """Format of a site stream input file."""
    AUTO = "auto"
    PILEUP = "pileup"
    BAM = "bam"

    def resolve(self, path: Path) -> "InputFormat":
        """Decide the concrete format of ``path`` for ``AUTO``."""
        if self is not InputFormat.AUTO:
            return self
        if path.suffix.lower() == ".bam":
            return InputFormat.BAM
        return InputFormat.PILEUP


class PositionType(Enum):
    """Class of genomic positions to include in the calculation."""
    ALL = "all"
    CODING = "coding"
    NONCODING = "noncoding"
    FIRST = "first"
    SECOND = "second"
    THIRD = "third"
    FOURFOLD = "fourfold"


POSITION_TYPES = tuple(e.value for e in PositionType)
INPUT_FORMATS = tuple(e.value for e in InputFormat)


@dataclass
class PyMCorrConfig:
    """Configuration for PyMCorr lag correlation analysis.

    Attributes:
        max_lag: Number of lag distances (0 to max_lag - 1)
        min_coverage: Minimum number of paired reads for a site pair
        min_chunk_samples: A chunk must hold more windows than this at a lag
            to contribute to the genome-wide statistics
        chunk_size: Width of a genomic chunk in bases
        nproc: Number of worker processes
        job_batch_size: Number of jobs sent to a worker at once
        queue_size: Maximum number of pending job batches
        region_start: 0-based inclusive start of the analysed region
        region_end: 0-based exclusive end of the analysed region
    """
    max_lag: int = 300
    min_coverage: int = 2
    min_chunk_samples: int = 10
    chunk_size: int = 10000
    nproc: int = 1
    job_batch_size: int = 64
    queue_size: int = 64

    region_start: int = 0
    region_end: Optional[int] = None

    min_mapq: int = 0
    min_base_quality: int = 0

    position_type: PositionType = PositionType.ALL
    codon_table: int = 11

    input_format: InputFormat = InputFormat.AUTO
    reference_path: Optional[Path] = None
    annotation_path: Optional[Path] = None
    chromfilter: Optional[List[Tuple[bool, List[str]]]] = None

    debug: bool = False

    def __post_init__(self) -> None:
        for attr in ("max_lag", "chunk_size", "nproc", "job_batch_size", "queue_size"):
            if getattr(self, attr) < 1:
                raise ValueError("{} must be > 0".format(attr))
        for attr in ("min_coverage", "min_chunk_samples", "region_start",
                     "min_mapq", "min_base_quality"):
            if getattr(self, attr) < 0:
                raise ValueError("{} must be >= 0".format(attr))
        if self.region_end is not None and self.region_end <= self.region_start:
            raise ValueError("region end must be greater than region start")

    @property
    def multiprocess(self) -> bool:
        """Check if the configuration is set for multiprocess execution."""
        return self.nproc > 1

    @property
    def filter_positions(self) -> bool:
        return self.position_type is not PositionType.ALL

    @classmethod
    def from_args(cls, args: Namespace) -> Self:
        """Create configuration from parsed command-line arguments."""
        return cls(
            max_lag=args.max_lag,
            min_coverage=args.min_coverage,
            min_chunk_samples=args.min_chunk_samples,
            chunk_size=args.chunk_size,
            nproc=args.process,
            job_batch_size=args.batch_size,
            queue_size=args.queue_size,
            region_start=args.region_start,
            region_end=args.region_end,
            min_mapq=args.min_mapq,
            min_base_quality=args.min_base_quality,
            position_type=PositionType(args.position_type),
            codon_table=args.codon_table,
            input_format=InputFormat(args.format),
            reference_path=args.reference,
            annotation_path=args.gff,
            chromfilter=args.chromfilter,
            debug=args.log_level <= 10
        )
