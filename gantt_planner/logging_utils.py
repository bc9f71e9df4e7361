"""Logger factory used by the engine modules."""
from __future__ import annotations

import logging
import os
import sys
from typing import Dict

LOG_LEVEL_ENV = "GANTT_PLANNER_LOG_LEVEL"
_LOG_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s"

_loggers: Dict[str, logging.Logger] = {}


def get_logger(name: str) -> logging.Logger:
    """Return a cached logger with a single stderr handler.

    The level is read from ``GANTT_PLANNER_LOG_LEVEL`` (default ``WARNING``)
    the first time a given name is requested.
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    level_name = os.getenv(LOG_LEVEL_ENV, "WARNING").upper()
    logger.setLevel(getattr(logging, level_name, logging.WARNING))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        logger.addHandler(handler)
        # Our handler already writes the record; avoid duplicates via root.
        logger.propagate = False

    _loggers[name] = logger
    return logger
