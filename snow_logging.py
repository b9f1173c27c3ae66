# snow_logging.py — logging bootstrap for the festive snow runner
#
# Rotating file log plus console, same format everywhere. Library modules only
# call logging.getLogger("festive_snow.<part>"); handlers are installed here by
# the entry point.

from __future__ import annotations
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_MAX_BYTES = 512 * 1024
LOG_BACKUPS = 3


def setup_logging(log_path: Optional[Union[str, Path]] = "logs/festive_snow.log",
                  level: int = logging.INFO, console: bool = True) -> logging.Logger:
    logger = logging.getLogger("festive_snow")
    logger.setLevel(level)
    fmt = logging.Formatter(LOG_FORMAT)

    # Avoid duplicate handlers if called twice
    if not logger.handlers:
        if log_path:
            path = Path(log_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            fh = RotatingFileHandler(path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUPS)
            fh.setFormatter(fmt)
            logger.addHandler(fh)
        if console:
            sh = logging.StreamHandler(sys.__stdout__)
            sh.setFormatter(fmt)
            logger.addHandler(sh)
    for h in logger.handlers:
        h.setLevel(level)

    # Pipe Python warnings (e.g. Pillow deprecations) into logging
    logging.captureWarnings(True)

    def _excepthook(exctype, value, tb):
        logger.exception("Unhandled exception", exc_info=(exctype, value, tb))
    sys.excepthook = _excepthook
    return logger
