"""
Logging Configuration Module

`setup_logging()` is the public hook for applications that want hashcache's
log format. The library itself never configures logging on import.
"""

import logging
import logging.config
from typing import Optional

from hashcache.config import get_settings


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure log output for hashcache and the redis client

    Args:
        level: Level of the hashcache logger; defaults to DEBUG when the
            DEBUG setting is on, INFO otherwise. With TRACE_ENABLED the
            per-command trace logger is always emitted at DEBUG.
    """
    settings = get_settings()
    log_level = level or ("DEBUG" if settings.DEBUG else "INFO")

    loggers = {
        "root": {
            "handlers": ["console"],
            "level": log_level,
            "propagate": True,
        },
        # Connection chatter from redis-py
        "redis": {
            "handlers": ["console"],
            "level": "WARNING",
            "propagate": False,
        },
        "hashcache": {
            "handlers": ["console"],
            "level": log_level,
            "propagate": False,
        },
    }
    if settings.TRACE_ENABLED:
        loggers["hashcache.trace"] = {
            "handlers": ["console"],
            "level": "DEBUG",
            "propagate": False,
        }

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "stream": "ext://sys.stdout",
                },
            },
            "loggers": loggers,
        }
    )
