"""Logging setup for kbsync processes."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Handlers added by the last setup_logging call
_installed_handlers: list[logging.Handler] = []


def setup_logging(level: int | str = logging.INFO, log_file: Path | None = None) -> logging.Logger:
    """Configure the kbsync logger to output to stdout and optionally a file.

    Calling this more than once replaces the handlers installed by the
    previous call instead of stacking them.

    Args:
        level: Log level name or number.
        log_file: Optional path of a log file.

    Returns:
        The configured "kbsync" logger, to be passed to components.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    root_logger = logging.getLogger("kbsync")
    if isinstance(level, str):
        level = level.upper()
    root_logger.setLevel(level)

    while _installed_handlers:
        handler = _installed_handlers.pop()
        root_logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
        _installed_handlers.append(handler)

    return root_logger
