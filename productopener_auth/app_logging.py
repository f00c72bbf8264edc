"""Structured log output."""

import logging
from typing import Union

from pythonjsonlogger import jsonlogger


def _has_json_handler(logger: logging.Logger) -> bool:
    return any(isinstance(handler.formatter, jsonlogger.JsonFormatter)
               for handler in logger.handlers)


def setup_logger(level: Union[int, str] = logging.INFO) -> None:
    """Send JSON-formatted log records from all loggers to stderr."""
    logger = logging.getLogger()
    logger.setLevel(level)
    if _has_json_handler(logger):
        return

    logHandler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter(
        '%(asctime)s %(levelname)s %(name)s %(message)s',
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    )
    logHandler.setFormatter(formatter)
    logger.addHandler(logHandler)
