"""
Logging setup for pipeline runs (notebooks and jobs).
"""

import logging.config
from typing import Optional

from src.config import WarehouseConfig


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure the ``src`` logger hierarchy via ``dictConfig``.

    Py4J and PySpark loggers are capped at WARNING so driver chatter does not
    drown the run log.

    Args:
        level: Base log level (DEBUG, INFO, WARNING, ERROR, CRITICAL);
            defaults to ``WarehouseConfig().log_level`` (``DWH_LOG_LEVEL``)
    """
    level = level or WarehouseConfig().log_level

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "pipeline": {
                "format": "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "pipeline",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "src": {"level": level.upper(), "handlers": ["console"], "propagate": False},
            "py4j": {"level": "WARNING"},
            "pyspark": {"level": "WARNING"},
        },
    })
