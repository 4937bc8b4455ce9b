from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "mpl"

PLAIN_FORMAT = "%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)r"
CONSOLE_FORMAT = "%(asctime)s %(levelname)s %(filename)s:%(lineno)d > %(message)s"


class Colors:
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    WHITE = "\033[97m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


class ColoredFormatter(logging.Formatter):
    """Colors the level name; used only when writing to a terminal."""

    COLORS = {
        "DEBUG": Colors.CYAN,
        "INFO": Colors.GREEN,
        "WARNING": Colors.YELLOW,
        "ERROR": Colors.RED,
        "CRITICAL": Colors.RED + Colors.BOLD,
    }

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelname, Colors.WHITE)
        return message.replace(record.levelname, f"{color}{record.levelname}{Colors.RESET}", 1)


def configure_logging(debug: bool = False, stream: TextIO | None = None) -> logging.Logger:
    """Configure and return the package logger. Leaves the root logger alone.

    Calling it again (e.g. once settings are known) replaces the previous handler.
    """
    stream = stream or sys.stderr
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
    for h in list(logger.handlers):
        logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
    else:
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(handler)
    return logger
