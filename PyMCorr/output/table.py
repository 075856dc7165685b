"""Tab-delimited table I/O.

The correlation table holds one row per lag in increasing order::

    lag  cs_mean  cs_var  cr_mean  cr_var  ct_mean  ct_var  n

The diversity table holds one row per site with a 0-based position::

    reference  pos  base  A  C  G  T  depth  pi
"""
from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, TextIO, cast

import sys
if sys.version_info >= (3, 11):
    from typing import Self
else:
    from typing_extensions import Self

from PyMCorr.core.aggregate import LagCorrelationResult, LagRow
from PyMCorr.core.diversity import DIVERSITY_BASES, SiteDiversity
from PyMCorr.utils.output import catch_IOError

CORROUTPUT_SUFFIX = "_corr.tab"
INDEX_COLUMN = "lag"
VALUE_COLUMNS = ("cs_mean", "cs_var", "cr_mean", "cr_var", "ct_mean", "ct_var", "n")

PIOUTPUT_SUFFIX = "_pi.tab"
PI_COLUMNS = ("reference", "pos", "base") + tuple(DIVERSITY_BASES) + ("depth", "pi")

logger = logging.getLogger(__name__)


class TableIO(object):
    """Tab-delimited table reader/writer, optionally with a leading index column."""
    DIALECT = "excel-tab"

    def __init__(self, path: os.PathLike, mode: str = 'r') -> None:
        self.path = path
        self.mode = mode
        self.fp: Optional[TextIO] = None

        if mode not in ('r', 'w'):
            raise NotImplementedError(f"Unsupported mode: {mode}")

    def open(self) -> None:
        self.fp = cast(TextIO, open(self.path, self.mode, newline=''))

    def __enter__(self) -> Self:
        self.open()
        return self

    def __exit__(self, _ex_type: Optional[type], _ex_value: Optional[BaseException], _trace: Optional[Any]) -> None:
        if self.fp is not None:
            self.fp.close()
            self.fp = None

    close = __exit__

    def read(self) -> Dict[str, List[str]]:
        """Read every column, including the lag column, as strings."""
        assert self.fp is not None, "File not opened"
        tab = csv.reader(self.fp, dialect=TableIO.DIALECT)
        header = next(tab)
        columns: Dict[str, List[str]] = {key: [] for key in header}
        for row in tab:
            for key, value in zip(header, row):
                columns[key].append(value)
        return columns

    def write(self, header: List[str], body: Iterable[Any], index: Optional[str] = INDEX_COLUMN) -> None:
        """Write rows of ``body`` after the header.

        Rows are prefixed by their number under the ``index`` column unless
        ``index`` is None.
        """
        assert self.fp is not None, "File not opened"
        tab = csv.writer(self.fp, dialect=TableIO.DIALECT)
        if index is None:
            tab.writerow(header)
            tab.writerows(body)
        else:
            tab.writerow((index, ) + tuple(header))
            tab.writerows((i, ) + tuple(row) for i, row in enumerate(body))


def corr_table_path(output_basename: os.PathLike) -> Path:
    return Path(str(output_basename) + CORROUTPUT_SUFFIX)


@catch_IOError(logger)
def output_corr(output_basename: os.PathLike, result: LagCorrelationResult) -> Path:
    """Write ``<basename>_corr.tab`` and return its path."""
    outfile = corr_table_path(output_basename)
    logger.info("Output '{}'".format(outfile))

    with TableIO(outfile, 'w') as tab:
        tab.write(list(VALUE_COLUMNS), (row.values for row in result))

    return outfile


@catch_IOError(logger)
def load_corr(path: os.PathLike) -> LagCorrelationResult:
    """Read a table written by ``output_corr``."""
    logger.info("Load correlation table from '{}'".format(path))

    with TableIO(path) as tab:
        table = tab.read()

    missing = [c for c in (INDEX_COLUMN, ) + VALUE_COLUMNS if c not in table]
    if missing:
        raise IndexError("'{}' misses columns: {}".format(path, ', '.join(missing)))

    rows = []
    for i, lag in enumerate(table[INDEX_COLUMN]):
        values = [float(table[c][i]) for c in VALUE_COLUMNS[:-1]]
        rows.append(LagRow(int(lag), *values, n=int(table["n"][i])))

    return LagCorrelationResult(rows)


def pi_table_path(output_basename: os.PathLike) -> Path:
    return Path(str(output_basename) + PIOUTPUT_SUFFIX)


@catch_IOError(logger)
def output_pi(output_basename: os.PathLike, diversities: Iterable[SiteDiversity]) -> int:
    """Write ``<basename>_pi.tab`` while consuming ``diversities``.

    Returns:
        Number of written sites
    """
    outfile = pi_table_path(output_basename)
    logger.info("Output '{}'".format(outfile))

    nsites = 0

    def _rows() -> Iterable[tuple]:
        nonlocal nsites
        for d in diversities:
            nsites += 1
            yield (d.reference, d.pos, d.base) + d.counts + (d.depth, d.pi)

    with TableIO(outfile, 'w') as tab:
        tab.write(list(PI_COLUMNS), _rows(), index=None)

    return nsites
