# Overview: Logging setup for the rfidtrack application logger.

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask


LOGGER_NAME = "rfidtrack"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s (%(filename)s:%(lineno)d)"


def configure_logging(app: Flask) -> logging.Logger:
    """
    Configure the package logger once per app.

    - Console handler always
    - Rotating file handler when LOG_FILE is set (10 MB x 5)
    - Level from LOG_LEVEL; unknown names fall back to INFO

    Service modules log through logging.getLogger(__name__), which nests under
    "rfidtrack", so they inherit these handlers.
    """
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(numeric_level)
    logger.propagate = False

    # Avoid duplicate handlers when create_app runs more than once (tests)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = app.config.get("LOG_FILE")
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5,
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    app.logger.setLevel(numeric_level)
    return logger
