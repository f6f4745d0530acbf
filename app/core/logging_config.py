"""
Application-wide logging configuration helpers.

Both the API process and the terminal dashboard call ``configure_logging`` once
at startup; everything else just does ``logging.getLogger(__name__)``.
"""
from __future__ import annotations

import logging
from logging.config import dictConfig
from typing import Iterable, Optional

# Third-party loggers that are chatty at INFO (HTTP client traces, SDK retries).
QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "urllib3")

_is_configured = False


def configure_logging(
    level: Optional[str] = None,
    quiet: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """
    Configure root and application loggers if they have not been configured yet.

    Args:
        level: Optional log level override (e.g., "DEBUG", "INFO").
        quiet: Logger names pinned to WARNING regardless of ``level``.
    """
    global _is_configured

    if _is_configured:
        return

    log_level = (level or "INFO").upper()

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "standard": {
                    "format": "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "standard",
                    "level": log_level,
                }
            },
            "loggers": {name: {"level": "WARNING"} for name in quiet},
            "root": {
                "handlers": ["console"],
                "level": log_level,
            },
        }
    )

    logging.getLogger("app").setLevel(log_level)

    _is_configured = True
