"""
Logging Configuration

Stdout logging shared by the API process and the maintenance scripts.
"""

import sys
from logging.config import dictConfig
from typing import Any

from notegraph.core.config import settings

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty libraries: one INFO line per HTTP request / SQL statement otherwise
QUIET_LOGGERS = ("httpx", "sqlalchemy.engine")


def _console_logger(level: str) -> dict[str, Any]:
    return {"level": level, "handlers": ["console"], "propagate": False}


def setup_logging(level: str | None = None) -> None:
    """
    Route notegraph, uvicorn and library logs to stdout.

    ``level`` overrides the LOG_LEVEL setting for the ``notegraph`` logger
    and the root logger. Safe to call again (e.g. from a script) since
    loggers created earlier are kept.
    """
    log_level = (level or settings.LOG_LEVEL).upper()

    loggers = {
        "notegraph": _console_logger(log_level),
        "uvicorn": _console_logger("INFO"),
        "uvicorn.access": _console_logger("INFO"),
    }
    loggers.update({name: _console_logger("WARNING") for name in QUIET_LOGGERS})

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"format": LOG_FORMAT, "datefmt": DATE_FORMAT}},
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "default",
                },
            },
            "root": {"level": log_level, "handlers": ["console"]},
            "loggers": loggers,
        }
    )
