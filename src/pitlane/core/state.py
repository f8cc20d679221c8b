# src/pitlane/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..calendar.calendar_store import CalendarStore
from ..schedule.schedule_cache import ScheduleCache
from ..tasks.lifecycle import LifecycleController
from ..tasks.task_scheduler import NotificationScheduler
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskStore
    calendar_store: CalendarStore
    scheduler: NotificationScheduler
    controller: LifecycleController
    schedule: ScheduleCache

    # Serializes command handling between the console and any other front end.
    lock: threading.Lock = field(default_factory=threading.Lock)
