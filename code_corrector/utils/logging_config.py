"""
Logging setup for the corrector service.

Console output is colored by level when stderr is a terminal; the daily file
under LOG_DIR always gets the plain format.
"""
import logging
import os
import sys
from datetime import datetime

from code_corrector.core.config import LOG_DIR, LOG_LEVEL

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Loggers that must reach the root handlers
SERVICE_LOGGERS = ("code_corrector", "main", "uvicorn", "uvicorn.error", "uvicorn.access")


class ColoredFormatter(logging.Formatter):
    """Wraps each record in the ANSI color of its level."""

    COLORS = {
        logging.DEBUG: "\x1b[36m",
        logging.INFO: "\x1b[32m",
        logging.WARNING: "\x1b[33m",
        logging.ERROR: "\x1b[31m",
        logging.CRITICAL: "\x1b[31;1m",
    }
    RESET = "\x1b[0m"

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT, datefmt=DATE_FORMAT)
        self._by_level = {
            level: logging.Formatter(color + LOG_FORMAT + self.RESET, datefmt=DATE_FORMAT)
            for level, color in self.COLORS.items()
        }

    def format(self, record):
        formatter = self._by_level.get(record.levelno)
        if formatter is None:
            return super().format(record)
        return formatter.format(record)


def _log_file_path(log_dir: str) -> str:
    os.makedirs(log_dir, exist_ok=True)
    return os.path.join(log_dir, f"corrector_{datetime.now().strftime('%Y%m%d')}.log")


def setup_logging(level=None, log_dir: str = LOG_DIR, to_file: bool = True):
    """Install console (and optionally file) handlers on the root logger."""
    if level is None:
        level = LOG_LEVEL

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stderr)
    if sys.stderr.isatty():
        console_handler.setFormatter(ColoredFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    root_logger.addHandler(console_handler)

    if to_file:
        file_handler = logging.FileHandler(_log_file_path(log_dir))
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    for name in SERVICE_LOGGERS:
        service_logger = logging.getLogger(name)
        service_logger.setLevel(level)
        service_logger.propagate = True

    root_logger.info("Logging initialized (%s).", "console + file" if to_file else "console")
