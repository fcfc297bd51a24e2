# Andy Zhao
"""Utilities for logging.

One package-wide logger with UTC timestamps. Set ROBUSTCV_DEBUG=1 in the
environment to get per-iteration debug output from the estimators.
"""

import logging
import os
import sys
from datetime import datetime, timezone

LOGGER_NAME = "robustcv"
DEBUG_ENV_VAR = "ROBUSTCV_DEBUG"


class UTCFormatter(logging.Formatter):
    """Formatter that renders record times in UTC."""

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.strftime("%Y-%m-%d %H:%M:%S")


def debug_enabled() -> bool:
    return os.environ.get(DEBUG_ENV_VAR, "0") == "1"


def get_logger() -> logging.Logger:
    """
    Get the main robustcv logger.

    The stream handler is attached only once, so repeated calls from every
    module share the same configuration.
    """
    logger = logging.getLogger(LOGGER_NAME)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(UTCFormatter("[%(asctime)s %(levelname)s %(filename)s line %(lineno)d] %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if debug_enabled() else logging.INFO)

    return logger
