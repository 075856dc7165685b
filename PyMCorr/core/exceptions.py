"""Exceptions for PyMCorr lag correlation analysis.

Every fatal condition raised by PyMCorr derives from ``PyMCorrError`` so that
entry points can report it through a single path. Statistical non-events
(empty accumulators, low coverage, sparse chunks) are never exceptions.
"""
from typing import Optional


class PyMCorrError(Exception):
    """Base class of all PyMCorr errors."""
    pass


class SiteUnsortedError(PyMCorrError):
    """Exception raised when input sites are not sorted by position.

    The sliding window pairing relies on a non-decreasing position order
    within each reference, and on every reference being contiguous in the
    stream. Any violation aborts the whole calculation.
    """

    def __init__(self, reference: str, pos: int, last_pos: int, message: Optional[str] = None) -> None:
        self.reference = reference
        self.pos = pos
        self.last_pos = last_pos
        super().__init__(message or
                         "Input sites must be sorted: '{}' position {} follows {}.".format(reference, pos, last_pos))


class PileupFormatError(PyMCorrError, ValueError):
    """Exception raised when a pileup line cannot be decoded."""
    pass


class ProfileError(PyMCorrError):
    """Exception raised when a position profile can not be built."""
    pass


class WorkerError(PyMCorrError, RuntimeError):
    """Exception raised when a worker process failed."""
    pass


class NothingToCalc(PyMCorrError):
    """Exception raised when the input yields no site to calculate."""
    pass
