from __future__ import annotations

import logging
import os
import sys
from pythonjsonlogger import jsonlogger

APP_LOGGER = "glexporter"

# Fields carried by every record; per-target logs add project/ref via `extra`
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(threadName)s %(message)s"


def setup_logging(app_name: str = APP_LOGGER) -> logging.Logger:
    """
    JSON structured logger for the exporter: stdout, plus $LOG_FILE when set.
    Safe to call more than once.
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    logger.propagate = False

    if logger.handlers:
        return logger

    formatter = jsonlogger.JsonFormatter(
        LOG_FORMAT,
        rename_fields={"asctime": "time", "levelname": "level", "threadName": "thread"},
    )

    handlers = [logging.StreamHandler(sys.stdout)]

    log_file = os.getenv("LOG_FILE")  # e.g. logs/exporter.jsonl
    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(module_name: str) -> logging.Logger:
    """Module logger nested under the application logger ("glexporter.<module>")."""
    return logging.getLogger(f"{APP_LOGGER}.{module_name.rsplit('.', 1)[-1]}")
