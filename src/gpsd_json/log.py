"""Logging configuration for gpsd-json."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def setup_logging(log_path: Path, *, debug: bool = False) -> None:
    """Configure the package logger.

    Records go to a rotating log file. With ``debug``, protocol traffic
    (commands sent, frames received) is logged as well and echoed to stderr.
    Does nothing if the logger already has handlers.
    """
    logger = logging.getLogger("gpsd_json")
    if logger.handlers:
        return

    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    file_handler = RotatingFileHandler(log_path, maxBytes=1_000_000, backupCount=3)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    if debug:
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        logger.addHandler(console)

    logger.setLevel(logging.DEBUG if debug else logging.INFO)
