# src/pitlane/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "pitlane.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Request-level chatter from the calendar client; the cache logs its own summary.
QUIET_LOGGERS = ("httpx", "httpcore")


def _only_pitlane_below_error(record: logging.LogRecord) -> bool:
    """Console filter: the REPL shares stderr, so foreign loggers need ERROR to get through."""
    return record.name.startswith("pitlane.") or record.levelno >= logging.ERROR


def _level(name: object, default: int) -> int:
    level = logging.getLevelName(str(name or "").strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(settings, *, file_level: int = logging.DEBUG) -> Path:
    """
    Route pitlane logs to stderr at `settings.log_level` and everything to
    `<data_dir>/pitlane.log`. Replaces handlers from earlier calls.

    Returns the log file path.
    """
    log_file = Path(settings.data_dir) / LOG_FILE_NAME
    log_file.parent.mkdir(parents=True, exist_ok=True)

    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(_level(settings.log_level, logging.INFO))
    console.addFilter(_only_pitlane_below_error)

    to_file = logging.FileHandler(log_file, encoding="utf-8")
    to_file.setLevel(file_level)

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    root.setLevel(logging.DEBUG)
    for h in (console, to_file):
        h.setFormatter(fmt)
        root.addHandler(h)

    logging.captureWarnings(True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_file
