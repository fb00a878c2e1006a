"""Logging configuration for the budget app.

``configure_logging()`` is called once by the entry point and every page; it
attaches a single ``StreamHandler`` to the ``budget`` logger. Other modules
only call ``get_logger("budget.<module>")``.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_ROOT_LOGGER = "budget"
_CONFIGURED = False


def _parse_level(level: int | str | None) -> int:
    if isinstance(level, int):
        return level
    if level is None:
        level = os.getenv("BUDGET_LOG_LEVEL", "INFO")
    level = str(level).strip().upper()
    if level.isdigit():
        return int(level)
    numeric = getattr(logging, level, None)
    return numeric if isinstance(numeric, int) else logging.INFO


def configure_logging(level: int | str | None = None, stream: IO[str] = sys.stderr) -> None:
    """Attach the app handler once; later calls are no-ops.

    Streamlit re-executes every page script on each interaction, so this must
    stay idempotent.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    logger = logging.getLogger(_ROOT_LOGGER)
    for h in list(logger.handlers):
        if isinstance(h, logging.NullHandler):
            logger.removeHandler(h)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s"))
    logger.setLevel(_parse_level(level))
    logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(_ROOT_LOGGER)
    if not _CONFIGURED and not root.handlers:
        root.addHandler(logging.NullHandler())
    return logging.getLogger(name)
