# src/pitlane/connectors/notifiers.py

from __future__ import annotations

import logging
import sys
from datetime import date, datetime
from typing import TextIO

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


class ConsoleNotifier:
    """Print deadline alerts into the interactive console."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def notify(self, *, task_id: int, title: str, deadline: date | None) -> None:
        stream = self._stream or sys.stdout
        due = f" (deadline {deadline.isoformat()})" if deadline else ""
        stream.write(f"\n[{_ts_local()}] [ALERT] Task #{task_id} is due today: {title}{due}\n")
        stream.flush()


class LogNotifier:
    """Headless fallback: alerts only go to the log."""

    def notify(self, *, task_id: int, title: str, deadline: date | None) -> None:
        logger.warning("Deadline alert task_id=%s title=%r deadline=%s", task_id, title, deadline)
