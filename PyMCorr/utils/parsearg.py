"""Command-line argument parsing for PyMCorr entry points.

Provides the parsers of ``pymcorr``, ``pymcorr-pi`` and ``pymcorr-plot``
together with the custom argparse actions they share.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence, Type, Union

import PyMCorr
from PyMCorr.interfaces.config import INPUT_FORMATS, POSITION_TYPES
from PyMCorr.reader.profile import CODON_TABLES

EPILOG = (" \nInput sites must be sorted by reference and position, "
          "e.g. the output of `samtools mpileup --output-QNAME`.\n ")


def _make_upper(s: str) -> str:
    return s.upper()


class StoreLoggingLevel(argparse.Action):
    """Convert a logging level name into its ``logging`` constant."""
    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Union[Any, Sequence[Any], None],
        option_string: Optional[str] = None
    ) -> None:
        assert isinstance(values, str), "Logging level must be a string"
        setattr(namespace, self.dest, getattr(logging, values))


class ForceNaturalNumber(argparse.Action):
    """Reject integer arguments smaller than 1."""
    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Union[Any, Sequence[Any], None],
        option_string: Optional[str] = None
    ) -> None:
        assert isinstance(values, int), "Argument must be an integer"
        if values < 1:
            parser.error("argument {} must be > 0.".format('/'.join(self.option_strings)))
        setattr(namespace, self.dest, values)


class ForceNonNegative(argparse.Action):
    """Reject negative integer arguments."""
    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Union[Any, Sequence[Any], None],
        option_string: Optional[str] = None
    ) -> None:
        assert isinstance(values, int), "Argument must be an integer"
        if values < 0:
            parser.error("argument {} must be >= 0.".format('/'.join(self.option_strings)))
        setattr(namespace, self.dest, values)


class ToColorizeOption(argparse.Action):
    """Convert 'TRUE'/'FALSE'/'AUTO' into a colorize flag."""
    def __call__(
        self,
        parser: argparse.ArgumentParser,
        namespace: argparse.Namespace,
        values: Union[Any, Sequence[Any], None],
        option_string: Optional[str] = None
    ) -> None:
        assert isinstance(values, str), "Colorization option must be a string"
        if values == "TRUE":
            colorize = True
        elif values == "FALSE":
            colorize = False
        else:
            colorize = sys.stderr.isatty()
        setattr(namespace, self.dest, colorize)


def make_multistate_append_action(key: bool) -> Type[argparse.Action]:
    """Create an action appending ``(key, values)`` to a shared list."""
    class _MultistateAppendAction(argparse.Action):
        def __call__(self, parser: argparse.ArgumentParser, namespace: argparse.Namespace, values: Any, option_string: Optional[str] = None) -> None:
            args = getattr(namespace, self.dest)
            args = [] if args is None else args
            args.append((key, values))
            setattr(namespace, self.dest, args)

    return _MultistateAppendAction


def add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v", "--log-level", type=_make_upper, default=logging.INFO,
        action=StoreLoggingLevel, choices=("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"),
        help="Set verbosity. (Default: INFO)"
    )
    parser.add_argument(
        "--color", type=_make_upper, default=sys.stderr.isatty(), action=ToColorizeOption,
        choices=("TRUE", "FALSE", "AUTO"),
        help="Coloring log. (Default: auto)"
    )
    parser.add_argument(
        "--version", action="version", version="PyMCorr " + PyMCorr.VERSION
    )


def add_chrom_filter_args(group: argparse._ArgumentGroup) -> None:
    group.add_argument(
        "-i", "--include-chrom", nargs='+', dest="chromfilter", metavar="CHROM",
        action=make_multistate_append_action(True),
        help="Include references to calculate. You can use Unix shell-style "
             "wildcards ('.', '*', '[]' and '[!]'). This option can be declared "
             "multiple times to include references specified in a just before "
             "-e/--exclude-chrom option. Note that this option is case-sensitive."
    )
    group.add_argument(
        "-e", "--exclude-chrom", nargs='+', dest="chromfilter", metavar="CHROM",
        action=make_multistate_append_action(False),
        help="Exclude references from calculation. You can use Unix shell-style "
             "wildcards ('.', '*', '[]' and '[!]'). This option can be declared "
             "multiple times to exclude references specified in a just before "
             "-i/--include-chrom option. Note that this option is case-sensitive."
    )


def get_pymcorr_parser() -> argparse.ArgumentParser:
    """Create main PyMCorr argument parser."""
    parser = argparse.ArgumentParser(
        description="Position-lag correlation of read-pair differences "
                    "from pileup or BAM inputs.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    add_common_args(parser)

    proc_args = parser.add_argument_group("Processing behaviors")
    proc_args.add_argument(
        "-p", "--process", type=int, default=1, action=ForceNaturalNumber,
        help="Number of worker process. (Default: 1)"
    )
    proc_args.add_argument(
        "--batch-size", type=int, default=64, action=ForceNaturalNumber,
        help="Number of site windows sent to a worker at once. (Default: 64)"
    )
    proc_args.add_argument(
        "--queue-size", type=int, default=64, action=ForceNaturalNumber,
        help="Maximum number of pending batches. (Default: 64)"
    )
    proc_args.add_argument(
        "--skip-plots", action="store_true",
        help="Skip output figures."
    )

    input_args = parser.add_argument_group("Input file arguments")
    input_args.add_argument(
        "inputs", nargs="+", type=Path,
        help="samtools mpileup text ('-' for stdin) or BAM files. "
             "Input must be sorted by positions."
    )
    input_args.add_argument(
        "-f", "--format", default="auto", choices=INPUT_FORMATS,
        help="Input file format. 'auto' reads files with a .bam suffix as BAM "
             "and everything else as pileup text. (Default: auto)"
    )
    input_args.add_argument(
        "-r", "--reference", type=Path,
        help="Reference FASTA. Required by --position-type and used as the "
             "reference base of BAM inputs."
    )
    input_args.add_argument(
        "-g", "--gff", type=Path,
        help="GFF3 annotation whose CDS features define coding positions."
    )

    filter = parser.add_argument_group("Input filtering arguments")
    filter.add_argument(
        "-q", "--min-mapq", type=int, default=0, action=ForceNonNegative,
        help="Filter out BAM reads which have less than specified "
             "SAM mapping quality score. (Default: 0)"
    )
    filter.add_argument(
        "-Q", "--min-base-quality", type=int, default=0, action=ForceNonNegative,
        help="Filter out bases which have less than specified base quality. (Default: 0)"
    )
    filter.add_argument(
        "--region-start", type=int, default=0, action=ForceNonNegative,
        help="0-based start of the analysed region. (Default: 0)"
    )
    filter.add_argument(
        "--region-end", type=int, action=ForceNaturalNumber,
        help="0-based exclusive end of the analysed region. (Default: none)"
    )
    filter.add_argument(
        "--position-type", default="all", choices=POSITION_TYPES,
        help="Restrict sites to a class of positions. "
             "Requires -r/--reference and -g/--gff unless 'all'. (Default: all)"
    )
    filter.add_argument(
        "--codon-table", type=int, default=11, choices=sorted(CODON_TABLES),
        help="NCBI genetic code used to find four-fold degenerate sites. (Default: 11)"
    )
    add_chrom_filter_args(filter)

    proc_params = parser.add_argument_group("PyMCorr parameters")
    proc_params.add_argument(
        "-l", "--max-lag", type=int, action=ForceNaturalNumber, default=300,
        help="Calculate correlations for lags from 0 to [MAX_LAG] - 1 bases. (Default: 300)"
    )
    proc_params.add_argument(
        "-c", "--min-coverage", type=int, action=ForceNonNegative, default=2,
        help="Minimum number of reads covering both sites of a pair. (Default: 2)"
    )
    proc_params.add_argument(
        "--min-chunk-samples", type=int, action=ForceNonNegative, default=10,
        help="A chunk contributes to a lag only with more site pairs than this. (Default: 10)"
    )
    proc_params.add_argument(
        "-s", "--chunk-size", type=int, action=ForceNaturalNumber, default=10000,
        help="Width of genomic chunks in bases. (Default: 10000)"
    )

    output = parser.add_argument_group("Output file arguments")
    output.add_argument(
        "-n", "--name", nargs='*', default=[],
        help="Output file base name(s). (Default: input file name without extension)"
    )
    output.add_argument(
        "-o", "--outdir", default='.', type=Path,
        help="Output directory. (Default: current directory)"
    )

    return parser


def get_plot_parser() -> argparse.ArgumentParser:
    """Create argument parser of ``pymcorr-plot``."""
    parser = argparse.ArgumentParser(
        description="Plot figures from PyMCorr correlation tables.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    add_common_args(parser)

    input_args = parser.add_argument_group("Input file arguments")
    input_args.add_argument(
        "tables", nargs='+', type=Path,
        help="Correlation tables (*_corr.tab) to plot."
    )

    output = parser.add_argument_group("Output file arguments")
    output.add_argument(
        "-n", "--name", nargs='*', default=[],
        help="Output file base name(s). (Default: table file name without suffix)"
    )
    output.add_argument(
        "-o", "--outdir", default='.', type=Path,
        help="Output directory. (Default: current directory)"
    )

    return parser


def get_pi_parser() -> argparse.ArgumentParser:
    """Create argument parser of ``pymcorr-pi``."""
    parser = argparse.ArgumentParser(
        description="Per-site nucleotide diversity from pileup or BAM inputs.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    add_common_args(parser)

    input_args = parser.add_argument_group("Input file arguments")
    input_args.add_argument(
        "inputs", nargs="+", type=Path,
        help="samtools mpileup text ('-' for stdin) or BAM files."
    )
    input_args.add_argument(
        "-f", "--format", default="auto", choices=INPUT_FORMATS,
        help="Input file format. 'auto' reads files with a .bam suffix as BAM "
             "and everything else as pileup text. (Default: auto)"
    )
    input_args.add_argument(
        "-r", "--reference", type=Path,
        help="Reference FASTA used as the reference base of BAM inputs."
    )

    filter = parser.add_argument_group("Input filtering arguments")
    filter.add_argument(
        "-q", "--min-mapq", type=int, default=0, action=ForceNonNegative,
        help="Filter out BAM reads which have less than specified "
             "SAM mapping quality score. (Default: 0)"
    )
    filter.add_argument(
        "-Q", "--min-base-quality", type=int, default=0, action=ForceNonNegative,
        help="Filter out bases which have less than specified base quality. (Default: 0)"
    )
    filter.add_argument(
        "--region-start", type=int, default=0, action=ForceNonNegative,
        help="0-based start of the reported region. (Default: 0)"
    )
    filter.add_argument(
        "--region-end", type=int, action=ForceNaturalNumber,
        help="0-based exclusive end of the reported region. (Default: none)"
    )
    add_chrom_filter_args(filter)

    output = parser.add_argument_group("Output file arguments")
    output.add_argument(
        "-n", "--name", nargs='*', default=[],
        help="Output file base name(s). (Default: input file name without extension)"
    )
    output.add_argument(
        "-o", "--outdir", default='.', type=Path,
        help="Output directory. (Default: current directory)"
    )

    return parser
