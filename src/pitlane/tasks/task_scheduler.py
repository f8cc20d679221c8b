# src/pitlane/tasks/task_scheduler.py

from __future__ import annotations

"""
Deadline notification scheduler.

One pending one-shot timer per task id, kept in memory only:
- arm(task) re-arms idempotently (old timer cancelled first),
- disarm(task_id) cancels, safe when nothing is armed,
- rearm_all(tasks) rebuilds the whole registry after a process start.

Each alert fires once, at `notify_hour`:00 local time on the deadline date.
Timers run on their own threads; the map is guarded by a lock and a firing
timer only acts if it is still the registered one for its id.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, time

from ..core.ports import Notifier
from .task_models import Task, local_datetime

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass(slots=True)
class _Alarm:
    timer: threading.Timer
    task_id: int
    title: str
    target: datetime


class NotificationScheduler:
    def __init__(
        self,
        notifier: Notifier,
        *,
        notify_hour: int = 10,
        clock: Clock | None = None,
    ) -> None:
        self._notifier = notifier
        self._notify_at = time(hour=max(0, min(23, int(notify_hour))))
        self._clock: Clock = clock or _local_now
        self._lock = threading.Lock()
        self._alarms: dict[int, _Alarm] = {}
        self._running = False

    # ---- lifecycle ----

    def start(self) -> None:
        with self._lock:
            self._running = True
        logger.info("Notification scheduler started (notify_at=%s).", self._notify_at)

    def shutdown(self) -> None:
        with self._lock:
            self._running = False
            alarms = list(self._alarms.values())
            self._alarms.clear()
        for alarm in alarms:
            alarm.timer.cancel()
        logger.info("Notification scheduler stopped (cancelled=%d).", len(alarms))

    def pending_ids(self) -> set[int]:
        with self._lock:
            return set(self._alarms)

    def target_for(self, task: Task) -> datetime | None:
        if task.deadline is None:
            return None
        return local_datetime(task.deadline, self._notify_at, self._clock())

    # ---- registry operations ----

    def arm(self, task: Task) -> bool:
        """
        (Re)arm the alert for `task`. Returns True if a timer is now pending.

        Cancel-and-replace happens under one lock hold, so two arms for the
        same id never leave two live timers behind.
        """
        with self._lock:
            previous = self._alarms.pop(task.id, None)
            if previous is not None:
                previous.timer.cancel()

            if not self._running:
                logger.debug("Scheduler not running; skip arm task_id=%s", task.id)
                return False
            if task.deadline is None or task.is_terminal:
                return False

            target = self.target_for(task)
            if target is None:
                return False
            delay = (target - self._clock()).total_seconds()
            if delay <= 0:
                logger.debug("Deadline alert already passed task_id=%s target=%s", task.id, target)
                return False

            timer = threading.Timer(delay, self._fire, args=(task.id,))
            timer.daemon = True
            alarm = _Alarm(timer=timer, task_id=task.id, title=task.title, target=target)
            self._alarms[task.id] = alarm
            timer.start()

        logger.debug("Armed task_id=%s target=%s (in %.0fs)", task.id, target, delay)
        return True

    def disarm(self, task_id: int) -> bool:
        with self._lock:
            alarm = self._alarms.pop(int(task_id), None)
        if alarm is None:
            return False
        alarm.timer.cancel()
        logger.debug("Disarmed task_id=%s", task_id)
        return True

    def rearm_all(self, tasks: Iterable[Task]) -> int:
        """Drop every pending timer, then arm each task that still qualifies."""
        with self._lock:
            stale = list(self._alarms.values())
            self._alarms.clear()
        for alarm in stale:
            alarm.timer.cancel()

        armed = 0
        for task in tasks:
            if self.arm(task):
                armed += 1
        logger.info("Re-armed deadline alerts: %d (dropped %d).", armed, len(stale))
        return armed

    def _fire(self, task_id: int) -> None:
        current = threading.current_thread()
        with self._lock:
            alarm = self._alarms.get(task_id)
            if alarm is None or alarm.timer is not current:
                # Replaced or disarmed after this timer was already running.
                return
            del self._alarms[task_id]

        try:
            self._notifier.notify(task_id=alarm.task_id, title=alarm.title, deadline=alarm.target.date())
            logger.info("Deadline alert delivered task_id=%s", task_id)
        except Exception:
            logger.exception("Deadline alert delivery failed task_id=%s; dropped", task_id)
