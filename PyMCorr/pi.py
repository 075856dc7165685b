"""``pymcorr-pi``: per-site nucleotide diversity tables."""
import argparse
import logging
from pathlib import Path
from typing import Optional, Sequence

from PyMCorr import entrypoint, logging_version
from PyMCorr.utils.parsearg import get_pi_parser
from PyMCorr.utils.logfmt import set_rootlogger
from PyMCorr.pymcorr import prepare_output
from PyMCorr.handler.calc import CalcHandler
from PyMCorr.interfaces.config import InputFormat, PyMCorrConfig
from PyMCorr.core.diversity import iter_site_diversity
from PyMCorr.core.exceptions import NothingToCalc, PileupFormatError
from PyMCorr.output.table import output_pi, PIOUTPUT_SUFFIX

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = get_pi_parser()
    args = parser.parse_args(argv)

    if args.region_end is not None and args.region_end <= args.region_start:
        parser.error("argument --region-end: must be greater than --region-start.")
    if args.name and len(args.name) > len(args.inputs):
        parser.error("argument -n/--name: more names than input files.")

    set_rootlogger(args.color, args.log_level)
    logging_version(logger)

    return args


def _make_config(args: argparse.Namespace) -> PyMCorrConfig:
    return PyMCorrConfig(
        region_start=args.region_start,
        region_end=args.region_end,
        min_mapq=args.min_mapq,
        min_base_quality=args.min_base_quality,
        input_format=InputFormat(args.format),
        reference_path=args.reference,
        chromfilter=args.chromfilter,
        debug=args.log_level <= logging.DEBUG
    )


@entrypoint(logger)
def main(argv: Optional[Sequence[str]] = None) -> None:
    """Write the nucleotide diversity of every covered site of each input."""
    args = _parse_args(argv)
    config = _make_config(args)

    basenames = prepare_output(args.inputs, args.name, args.outdir, (PIOUTPUT_SUFFIX, ))
    for path, output_basename in zip(args.inputs, basenames):
        run_diversity(config, path, output_basename)


def run_diversity(config: PyMCorrConfig, path: Path, output_basename: Path) -> Optional[int]:
    """Write the diversity table of one input; None if the input was skipped."""
    logger.info("Process {}".format(path))

    handler = CalcHandler(path, config)
    try:
        with handler.make_reader() as reader:
            nsites = output_pi(output_basename, iter_site_diversity(handler.filter_sites(reader)))
    except (IOError, OSError) as e:
        logger.error("Failed to open file '{}': {}".format(path, e))
    except (PileupFormatError, NothingToCalc) as e:
        logger.error("{}: {}".format(type(e).__name__, e))
        logger.warning("Failed to process {}. Skip this file.".format(path))
        if config.debug:
            logger.debug("Traceback:", exc_info=True)
    else:
        logger.info("{} sites written".format(nsites))
        return nsites
    return None
