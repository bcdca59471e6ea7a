# Overview: Process-wide logging setup shared by the app factory and the CLI.

import logging
from logging.config import dictConfig


def configure_logging(level: str = "INFO") -> None:
    """
    Configure console logging for the service.

    Kept minimal so it behaves the same under a WSGI server, the flask CLI and tests.
    """
    level = (level or "INFO").upper()
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                }
            },
            "root": {"level": level, "handlers": ["console"]},
        }
    )
    logging.getLogger(__name__).debug("Logging configured at %s", level)
