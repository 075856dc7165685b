"""PyMCorr package initialization with version and common utilities.

Provides package constants, version information, and common utilities
for PyMCorr command-line tools.

The module provides:
- VERSION: Package version string
- logging_version(): Version logging utility
- entrypoint(): Decorator for main entry point exception handling
"""
import logging
import sys
import traceback
import multiprocessing
from functools import wraps
from typing import Any, Callable

from PyMCorr.core.exceptions import PyMCorrError

VERSION = "0.3.0"

logger = logging.getLogger(__name__)


def logging_version(logger: Any) -> None:
    """Log PyMCorr and Python version information.

    Args:
        logger: Logger instance to use for version output
    """
    logger.info("PyMCorr version {} with Python{}.{}.{}".format(
                *[VERSION] + list(sys.version_info[:3])))
    for line in sys.version.split('\n'):
        logger.debug(line)


def _ensure_spawn() -> None:
    """Ensure the multiprocessing start method is set to `spawn`."""
    current = multiprocessing.get_start_method(allow_none=True)
    if current != "spawn":
        try:
            multiprocessing.set_start_method("spawn")
        except RuntimeError:
            logger.warning(
                "Failed to set multiprocessing start method to 'spawn'. "
                "Worker processes will use '{}'.".format(current)
            )


def entrypoint(logger: Any) -> Callable[[Callable[..., None]], Callable[..., None]]:
    """Decorator for main entry point exception handling.

    A ``PyMCorrError`` escaping the wrapped function is fatal: it is logged
    as a single critical line (plus the traceback when the root logger is at
    DEBUG level) and the process exits with status 1.

    Args:
        logger: Logger instance for status messages

    Returns:
        Decorator function that wraps main entry point functions
    """
    def _entrypoint_wrapper_base(main_func: Callable[..., None]) -> Callable[..., None]:
        @wraps(main_func)
        def _inner(*args: Any, **kwargs: Any) -> None:
            try:
                _ensure_spawn()
                main_func(*args, **kwargs)
                logger.info("PyMCorr finished.")
            except KeyboardInterrupt:
                sys.stderr.write("\r\033[K")
                sys.stderr.flush()
                logger.info("Got KeyboardInterrupt. bye")
                if logging.getLogger().isEnabledFor(logging.DEBUG):
                    traceback.print_exc()
            except PyMCorrError as e:
                logger.critical("{}: {}".format(type(e).__name__, e))
                if logging.getLogger().isEnabledFor(logging.DEBUG):
                    traceback.print_exc()
                sys.exit(1)
        return _inner
    return _entrypoint_wrapper_base
