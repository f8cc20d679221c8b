# src/pitlane/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps storage and notification delivery swappable and makes testing easier.
"""

from datetime import date
from typing import Any, Protocol

from ..tasks.task_models import Bucket, Task


class Notifier(Protocol):
    """
    Delivery side of deadline alerts.

    Implementations may raise; the scheduler logs and drops the alert.
    """

    def notify(self, *, task_id: int, title: str, deadline: date | None) -> None: ...


class TaskRepo(Protocol):
    def count_tasks(self) -> int: ...
    def add_task(
            self,
            *,
            title: str,
            category: Bucket,
            laps_total: int,
            created_at: Any,
            deadline: date | None = None,
    ) -> int: ...
    def get_task(self, task_id: int) -> Task | None: ...
    def list_tasks(self) -> list[Task]: ...
    def list_armable_tasks(self) -> list[Task]: ...
    def save_task(self, task: Task) -> None: ...
    def delete_task(self, task_id: int) -> bool: ...


class AlarmRegistry(Protocol):
    """What the lifecycle controller needs from the notification scheduler."""

    def arm(self, task: Task) -> bool: ...
    def disarm(self, task_id: int) -> bool: ...
