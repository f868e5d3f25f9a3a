"""
Logging configuration helpers.
Price update runs and repack planning share one process-wide format so run logs line up.
The pure pricing engine never logs; only the orchestration layer does.
"""

from __future__ import annotations

import logging

from src.common.settings import get_settings

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_LOGGING_CONFIGURED = False


def configure_logging(*, level_name: str | None = None) -> None:
    """Configure process-wide logging from environment settings."""

    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    resolved = (level_name or get_settings().LOG_LEVEL).upper()
    level = getattr(logging, resolved, logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT)
    _LOGGING_CONFIGURED = True
