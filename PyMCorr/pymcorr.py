"""Main PyMCorr CLI application for lag correlation analysis."""
from __future__ import annotations

import argparse
import logging
import sys
from itertools import zip_longest
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from . import entrypoint, logging_version
from .utils.logfmt import set_rootlogger
from .utils.parsearg import get_pymcorr_parser
from .utils.output import prepare_outdir
from .handler.calc import CalcHandler
from .interfaces.config import PyMCorrConfig
from .core.aggregate import LagCorrelationResult
from .core.exceptions import NothingToCalc, PileupFormatError
from .reader.pileup import STDIN_PATH
from .reader.profile import GenomeProfile
from .output.table import output_corr, CORROUTPUT_SUFFIX

logger = logging.getLogger(__name__)

PLOTFILE_SUFFIX = "_corr.pdf"
EXPECT_OUTFILE_SUFFIXES: Tuple[str, ...] = (CORROUTPUT_SUFFIX, PLOTFILE_SUFFIX)
STDIN_BASENAME = "stdin"


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = get_pymcorr_parser()
    args = parser.parse_args(argv)

    if args.position_type != "all" and (args.reference is None or args.gff is None):
        parser.error("argument --position-type: -r/--reference and -g/--gff must be specified.")
    if args.region_end is not None and args.region_end <= args.region_start:
        parser.error("argument --region-end: must be greater than --region-start.")
    if args.name and len(args.name) > len(args.inputs):
        parser.error("argument -n/--name: more names than input files.")

    # set up logging
    set_rootlogger(args.color, args.log_level)
    logging_version(logger)

    return args


@entrypoint(logger)
def main(argv: Optional[Sequence[str]] = None) -> None:
    """Main PyMCorr application entry point.

    Calculates the lag correlation table of every input and writes it (and
    its plot) under the output directory. An unreadable or malformed input
    is reported and skipped; unsorted input and worker failures abort the run.
    """
    args = _parse_args(argv)
    config = PyMCorrConfig.from_args(args)

    suffixes: List[str] = list(EXPECT_OUTFILE_SUFFIXES)
    if args.skip_plots:
        suffixes.remove(PLOTFILE_SUFFIX)
    basenames = prepare_output(args.inputs, args.name, args.outdir, tuple(suffixes))

    profile: Optional[GenomeProfile] = None
    if config.filter_positions:
        profile = GenomeProfile.from_files(config.reference_path, config.annotation_path,
                                           config.codon_table)

    logger.info("Calculate correlations between 0 to {} base lag "
                "with >= {} paired reads".format(config.max_lag - 1, config.min_coverage))
    for path, output_basename in zip(args.inputs, basenames):
        result = run_calculation(config, path, profile)
        output_results(args, output_basename, result)


def prepare_output(inputs: List[Path], names: List[Optional[str]], outdir: Path,
                   suffixes: Tuple[str, ...] = EXPECT_OUTFILE_SUFFIXES) -> List[Path]:
    """Prepare output directory and generate output basenames.

    Raises:
        SystemExit: If output directory cannot be created
    """
    if not prepare_outdir(outdir, logger):
        # Error logs already generated in prepare_outdir
        sys.exit(1)

    basenames: List[Path] = []
    for f, n in zip_longest(inputs, names):
        if n is not None:
            output_basename = Path(outdir) / n
        elif str(f) == STDIN_PATH:
            output_basename = Path(outdir) / STDIN_BASENAME
        else:
            output_basename = Path(outdir) / Path(f).stem

        for suffix in suffixes:
            expect_outfile = Path(str(output_basename) + suffix)
            if expect_outfile.exists():
                logger.warning("Existing file '{}' will be overwritten.".format(expect_outfile))
        basenames.append(output_basename)

    return basenames


def run_calculation(config: PyMCorrConfig, path: Path,
                    profile: Optional[GenomeProfile] = None) -> Optional[LagCorrelationResult]:
    logger.info("Process {}".format(path))

    try:
        handler = CalcHandler(path, config, profile)
        result = handler.run_calculation()
    except (IOError, OSError) as e:
        logger.error("Failed to open file '{}': {}".format(path, e))
    except (PileupFormatError, NothingToCalc) as e:
        logger.error("{}: {}".format(type(e).__name__, e))
        logger.warning("Failed to process {}. Skip this file.".format(path))
        if config.debug:
            logger.debug("Traceback:", exc_info=True)
    else:
        if result.is_empty:
            logger.warning("No lag of {} has more than {} windows in any chunk.".format(
                path, config.min_chunk_samples))
        return result
    return None


def output_results(args: argparse.Namespace, output_basename: Path,
                   result: Optional[LagCorrelationResult]) -> None:
    if result is None:
        return

    output_corr(output_basename, result)
    if not args.skip_plots:
        plotfile_path = Path(str(output_basename) + PLOTFILE_SUFFIX)
        try:
            from PyMCorr.output.figure import plot_figures
        except ImportError:
            logger.error("Skip output plots '{}'".format(plotfile_path))
        else:
            plot_figures(plotfile_path, result)
