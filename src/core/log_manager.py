# src/core/log_manager.py
import logging
import os
import sys

LOGGER_NAME = "flipgyaan"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

def _build_logger() -> logging.Logger:
    """
    Creates the application logger once. Level comes from LOG_LEVEL (default INFO).
    """
    log = logging.getLogger(LOGGER_NAME)
    if log.handlers:
        return log

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    log.addHandler(handler)

    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    log.setLevel(getattr(logging, level_name, logging.INFO))
    return log

logger = _build_logger()
