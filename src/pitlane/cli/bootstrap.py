# src/pitlane/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (stores/scheduler/controller/schedule cache),
- re-arms deadline alerts, since timers never survive a restart.
"""

from __future__ import annotations

import logging

import httpx

from ..calendar.calendar_store import CalendarStore
from ..config import get_settings
from ..connectors.notifiers import LogNotifier
from ..core.ports import Notifier
from ..core.state import AppState
from ..schedule.schedule_cache import ScheduleCache
from ..schedule.schedule_client import ScheduleClient
from ..tasks.lifecycle import LifecycleController
from ..tasks.task_scheduler import NotificationScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    settings=None,
    notifier: Notifier | None = None,
    transport: httpx.BaseTransport | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore(settings.db_path)
    calendar_store = CalendarStore(settings.db_path)

    scheduler = NotificationScheduler(notifier or LogNotifier(), notify_hour=settings.notify_hour)
    scheduler.start()

    controller = LifecycleController(task_store, scheduler, rules=settings.points_rules)

    client = ScheduleClient(
        settings.schedule_endpoints,
        timeout_seconds=settings.schedule_timeout_seconds,
        transport=transport,
    )
    schedule = ScheduleCache(client, ttl_seconds=settings.schedule_ttl_hours * 3600)

    state = AppState(
        settings=settings,
        task_store=task_store,
        calendar_store=calendar_store,
        scheduler=scheduler,
        controller=controller,
        schedule=schedule,
    )

    scheduler.rearm_all(controller.armable_tasks())
    return state


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.scheduler.shutdown()
    except Exception:
        logger.exception("Scheduler shutdown failed.")

    try:
        state.schedule.close()
    except Exception:
        logger.debug("Schedule client close failed.", exc_info=True)
