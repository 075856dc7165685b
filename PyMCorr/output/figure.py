"""Matplotlib plots of lag correlation results.

Plots the genome-wide mean of Cs, Cr and Ct against lag, with the standard
error of the mean as a shaded band, into a PDF file.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Tuple

import numpy as np
import numpy.typing as npt

from PyMCorr.core.aggregate import LagCorrelationResult
from PyMCorr.utils.output import catch_IOError

logger = logging.getLogger(__name__)

try:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt  # type: ignore[import-untyped]
    from matplotlib.backends.backend_pdf import PdfPages  # type: ignore[import-untyped]
except Exception:
    logger.error("Failed to import matplotlib.")
    import traceback
    logger.warning("Exception traceback:\n|" +
                   traceback.format_exc().replace('\n', "\n|"))
    raise

PLOTFILE_SUFFIX = "_corr.pdf"
STATISTICS = (
    ("cs", "Cs", "tab:blue"),
    ("cr", "Cr", "tab:orange"),
    ("ct", "Ct", "tab:green"),
)


def _feed_pdf_page(pp: Any) -> None:
    pp.savefig()
    plt.close()


def mean_and_stderr(result: LagCorrelationResult, stat: str) -> Tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
    """Mean and standard error of the mean of one statistic at every lag."""
    means = np.array([getattr(row, stat + "_mean") for row in result], dtype=np.float64)
    variances = np.array([getattr(row, stat + "_var") for row in result], dtype=np.float64)
    ns = np.array([row.n for row in result], dtype=np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        stderr = np.sqrt(variances / ns)
    return means, stderr


def plot_correlations(result: LagCorrelationResult, name: str) -> None:
    lags = np.array([row.lag for row in result])

    fig, axes = plt.subplots(len(STATISTICS), 1, sharex=True, figsize=(8, 9))
    for ax, (stat, label, color) in zip(axes, STATISTICS):
        mean, stderr = mean_and_stderr(result, stat)
        ax.plot(lags, mean, color=color, linewidth=0.8, label=label)
        ax.fill_between(lags, mean - stderr, mean + stderr, color=color, alpha=0.3, linewidth=0)
        ax.set_ylabel(label)
        ax.legend(loc="upper right", frameon=False)

    axes[0].set_title(name)
    axes[-1].set_xlabel("Lag (bp)")
    fig.tight_layout()


@catch_IOError(logger)
def plot_figures(outfile: os.PathLike, result: LagCorrelationResult) -> None:
    outfile_path = Path(outfile)
    logger.info("Output '{}'".format(outfile_path))
    name = outfile_path.name
    if name.endswith(PLOTFILE_SUFFIX):
        name = name[:-len(PLOTFILE_SUFFIX)]

    with PdfPages(os.fspath(outfile_path)) as pp:
        plot_correlations(result, name)
        _feed_pdf_page(pp)
