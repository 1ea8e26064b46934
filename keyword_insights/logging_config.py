"""
Logging configuration for the project.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(filename)s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOGGER_ROOT = "keyword_insights"


def configure_logging(level: int = logging.INFO, verbose: bool = False) -> None:
    if verbose:
        level = logging.DEBUG
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=DATE_FORMAT)
    logging.getLogger(LOGGER_ROOT).setLevel(level)
