"""
logging_config.py - Log Output for Runner Scripts
==================================================
The package itself only creates `logging.getLogger(__name__)` loggers and
never attaches handlers. A script that drives the simulation (main.py, a
renderer) calls `setup_logging()` once to see them.

  INFO   construction and reset of a FluidSimulation
  DEBUG  per-frame and per-projection timings, unresolved extrapolation
"""

import logging
import sys
from typing import Optional

PACKAGE_LOGGER = "fluid2d"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-5s %(name)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def setup_logging(level: int = logging.INFO, log_file: Optional[str] = None) -> logging.Logger:
    """
    Route the fluid2d loggers to stdout, and to `log_file` when given.

    Calling it again replaces the previous handlers (closing any open log
    file) instead of stacking new ones.

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, mode="w", encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger
