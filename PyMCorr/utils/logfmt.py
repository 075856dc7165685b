"""Colored logging formatter for terminal output.

- set_rootlogger(): Configures the root logger with color support
- ColorfulFormatter: ANSI color formatter with level-based coloring
"""
import logging
from typing import Optional, Dict

LOGGING_FORMAT: str = "[%(asctime)s | %(levelname)s] %(name)10s : %(message)s"


def set_rootlogger(colorize: bool, log_level: int) -> logging.Logger:
    """Configure root logger with color support.

    Entry points may run repeatedly in one process; each call leaves a single
    PyMCorr handler on the root logger.

    Args:
        colorize: Apply ANSI colors to level names and messages
        log_level: Logging level (e.g., logging.INFO, logging.DEBUG)

    Returns:
        Configured root logger instance
    """
    rl = logging.getLogger('')

    # replace the handler of a previous call in the same process
    for old in [h for h in rl.handlers if isinstance(h.formatter, ColorfulFormatter)]:
        rl.removeHandler(old)

    h = logging.StreamHandler()
    h.setFormatter(ColorfulFormatter(fmt=LOGGING_FORMAT, colorize=colorize))

    rl.addHandler(h)
    rl.setLevel(log_level)

    return rl


class ColorfulFormatter(logging.Formatter):
    """ANSI color formatter for log messages.

    Level names are colored per level (INFO: cyan, WARNING: yellow,
    ERROR: red, CRITICAL: magenta); messages of ERROR and above are bold.
    """
    DEFAULT_COLOR: int = 39
    LOGLEVEL2COLOR: Dict[int, int] = {20: 36, 30: 33, 40: 31, 50: 35}

    _fmt: str

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None, colorize: bool = True) -> None:
        super(ColorfulFormatter, self).__init__(fmt=fmt, datefmt=datefmt)
        self.colorize = colorize
        if colorize:
            self._fmt = self._fmt.replace(
                "%(levelname)s", "\033[{col}m%(levelname)8s\033[0m"
            ).replace(
                "%(message)s", "\033[{msg}m%(message)s\033[0m"
            )
        else:
            self._fmt = self._fmt.replace("%(levelname)s", "%(levelname)8s")

    def fill_format(self, record: logging.LogRecord) -> str:
        if self.colorize:
            fmt = self._fmt.format(
                col=self.LOGLEVEL2COLOR.get(record.levelno, self.DEFAULT_COLOR),
                msg=0 if record.levelno < 40 else 1)
        else:
            fmt = self._fmt
        return fmt % record.__dict__

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        if self.usesTime():
            record.asctime = self.formatTime(record, self.datefmt)

        s = self.fill_format(record)

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)

        if record.exc_text:
            if s[-1:] != "\n":
                s = s + "\n"
            s = s + record.exc_text

        return s
