"""Logging setup

Console (colour) + optional file logging for the trainsurf.* hierarchy.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

APP_LOGGER = "trainsurf"

_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
    "RESET": "\033[0m",
}


class ColorFormatter(logging.Formatter):
    """Level-coloured console formatter"""

    def format(self, record: logging.LogRecord) -> str:
        color = _COLORS.get(record.levelname, "")
        reset = _COLORS["RESET"]
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname:<8}{reset}"
        return super().format(record)


def setup_logging(
    level: str = "INFO",
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Configure handlers and the trainsurf logger hierarchy

    `level` applies to trainsurf.* loggers only. Third-party loggers
    (aiohttp client and access logs) stay at WARNING or above.

    Args:
        level: DEBUG, INFO, WARNING or ERROR
        log_file: optional log file path (console only when None)
    """
    app_level = getattr(logging, level.upper(), logging.INFO)
    logging.getLogger(APP_LOGGER).setLevel(app_level)
    root = logging.getLogger()
    root.setLevel(max(app_level, logging.WARNING))
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    if sys.stdout.isatty():
        console.setFormatter(ColorFormatter(
            fmt="%(asctime)s %(levelname)s %(name)s │ %(message)s",
            datefmt="%H:%M:%S",
        ))
    else:
        console.setFormatter(logging.Formatter(
            fmt="%(asctime)s %(levelname)-8s %(name)s │ %(message)s",
            datefmt="%H:%M:%S",
        ))
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(path, encoding="utf-8")
        fh.setFormatter(logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        ))
        root.addHandler(fh)
