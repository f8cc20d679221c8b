# src/pitlane/tasks/task_api.py

"""
Task half of the command channel.

One function per request; each returns plain data (dicts / lists) or raises
a PitlaneError subclass. Field names on this boundary are camelCase.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..core.state import AppState
from .scoring import points_summary as _points_summary

logger = logging.getLogger(__name__)

_FIELD_MAP = {
    "title": "title",
    "bucket": "bucket",
    "category": "bucket",
    "status": "status",
    "lapsTotal": "laps_total",
    "lapsDone": "laps_done",
    "deadline": "deadline",
}


def list_tasks(state: AppState) -> list[dict[str, object]]:
    return [t.to_dict() for t in state.controller.list_tasks()]


def create_task(
    state: AppState,
    *,
    title: str,
    bucket: str = "sprint",
    laps_total: object = 1,
    deadline: object = None,
) -> dict[str, int]:
    task = state.controller.create(title, bucket, laps_total, deadline)
    return {"id": task.id}


def update_task(state: AppState, task_id: int, fields: Mapping[str, Any]) -> dict[str, bool]:
    translated = {_FIELD_MAP.get(k, k): v for k, v in fields.items()}
    state.controller.update(task_id, translated)
    return {"ok": True}


def increment_lap(state: AppState, task_id: int) -> dict[str, object]:
    return state.controller.increment_lap(task_id).to_dict()


def finish_task(state: AppState, task_id: int) -> dict[str, bool]:
    state.controller.finish(task_id)
    return {"ok": True}


def dnf_task(state: AppState, task_id: int) -> dict[str, bool]:
    state.controller.dnf(task_id)
    return {"ok": True}


def delete_task(state: AppState, task_id: int) -> dict[str, bool]:
    state.controller.delete(task_id)
    return {"ok": True}


def reschedule_notifications(state: AppState) -> dict[str, object]:
    armed = state.scheduler.rearm_all(state.controller.armable_tasks())
    return {"ok": True, "armed": armed}


def points_summary(state: AppState) -> dict[str, object]:
    total, by_bucket = _points_summary(state.controller.list_tasks())
    return {"total": total, "byBucket": {b.value: pts for b, pts in by_bucket.items()}}
