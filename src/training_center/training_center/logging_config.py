from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask

LOG_FORMAT = "[%(asctime)s] %(levelname)s in %(name)s: %(message)s"


def configure_logging(app: Flask, *, level: str = "INFO", log_file: str = "") -> None:
    """Send app.logger and the package loggers to stderr, plus a rotating file when set."""
    log_level = getattr(logging, str(level).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    handlers: list[logging.Handler] = []
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    handlers.append(stream_handler)

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=5)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    package_logger = logging.getLogger(__name__.rsplit(".", 1)[0])
    for logger in (app.logger, package_logger):
        logger.setLevel(log_level)
        # create_app() may run more than once per process (tests).
        logger.handlers.clear()
        for handler in handlers:
            logger.addHandler(handler)
