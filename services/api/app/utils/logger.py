"""Logging setup for the API process.

Modules log through `logging.getLogger(__name__)`; `setup_logger()` attaches handlers to
the `services.api` parent logger once, at startup.

    from services.api.app.utils.logger import setup_logger
    setup_logger()
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from services.api.app.config import log_file, log_level

LOGGER_NAME = "services.api"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(name: str = LOGGER_NAME) -> logging.Logger:
    """Attach a console handler, plus a rotating file handler when POS_LOG_FILE is set.

    Safe to call more than once; handlers are only added the first time.
    """

    logger = logging.getLogger(name)
    logger.setLevel(log_level())

    if logger.handlers:
        return logger

    formatter = logging.Formatter(_FORMAT, datefmt=_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    path = log_file()
    if path:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            path, maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
