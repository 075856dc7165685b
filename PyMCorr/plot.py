"""``pymcorr-plot``: plot figures from existing correlation tables."""
import argparse
import logging
from itertools import zip_longest
from pathlib import Path
from typing import List, Optional, Sequence

from PyMCorr import entrypoint, logging_version
from PyMCorr.utils.parsearg import get_plot_parser
from PyMCorr.utils.logfmt import set_rootlogger
from PyMCorr.pymcorr import prepare_output, PLOTFILE_SUFFIX
from PyMCorr.output.table import load_corr, CORROUTPUT_SUFFIX

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = get_plot_parser()
    args = parser.parse_args(argv)

    for table in args.tables:
        if not table.exists():
            parser.error("Correlation table does not exist: '{}'".format(table))
    if args.name and len(args.name) > len(args.tables):
        parser.error("argument -n/--name: more names than input tables.")

    set_rootlogger(args.color, args.log_level)
    logging_version(logger)

    return args


def _table_basename(path: Path) -> str:
    name = path.name
    if name.endswith(CORROUTPUT_SUFFIX):
        return name[:-len(CORROUTPUT_SUFFIX)]
    return path.stem


@entrypoint(logger)
def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _parse_args(argv)

    from PyMCorr.output.figure import plot_figures

    names: List[Optional[str]] = [
        n if n is not None else _table_basename(t)
        for t, n in zip_longest(args.tables, args.name)
    ]
    basenames = prepare_output(args.tables, names, args.outdir, (PLOTFILE_SUFFIX, ))

    for table, output_basename in zip(args.tables, basenames):
        result = load_corr(table)
        plot_figures(Path(str(output_basename) + PLOTFILE_SUFFIX), result)
