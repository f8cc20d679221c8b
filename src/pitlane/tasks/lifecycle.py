# src/pitlane/tasks/lifecycle.py

from __future__ import annotations

"""
Lifecycle controller: the only writer of task state.

Every mutation is read -> build new snapshot -> single UPDATE, then the
resulting snapshot (or removal) is pushed to the alarm registry.
"""

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import date, datetime
from typing import Any

from ..core.errors import InvalidInput, NotFound, TaskAlreadyTerminal
from ..core.ports import AlarmRegistry, TaskRepo
from .scoring import PointsAward, score_dnf, score_finish
from .task_models import (
    ARCHIVE_BUCKET,
    DEFAULT_BUCKET,
    LAPS_MAX,
    LAPS_MIN,
    Bucket,
    PointsRules,
    Task,
    TaskStatus,
    clamp_int,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "bucket", "status", "laps_total", "laps_done", "deadline"})


def _local_now() -> datetime:
    return datetime.now().astimezone()


def parse_bucket(raw: object) -> Bucket:
    if isinstance(raw, Bucket):
        return raw
    try:
        return Bucket(str(raw).strip().lower())
    except ValueError:
        raise InvalidInput(f"unknown bucket: {raw!r}") from None


def parse_deadline(raw: object) -> date | None:
    """Accept a date, an ISO `YYYY-MM-DD` string, or None/'' for "no deadline"."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    s = str(raw).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise InvalidInput(f"deadline must be YYYY-MM-DD, got {raw!r}") from None


def _clean_title(raw: object) -> str:
    title = str(raw if raw is not None else "").strip()
    if not title:
        raise InvalidInput("title is required")
    return title


class LifecycleController:
    def __init__(
        self,
        store: TaskRepo,
        alarms: AlarmRegistry,
        *,
        rules: PointsRules | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._alarms = alarms
        self._rules = (rules or PointsRules()).normalized()
        self._clock = clock or _local_now
        self._lock = threading.RLock()

    @property
    def rules(self) -> PointsRules:
        return self._rules

    # ---- reads ----

    def get(self, task_id: int) -> Task:
        task = self._store.get_task(int(task_id))
        if task is None:
            raise NotFound("task", int(task_id))
        return task

    def list_tasks(self) -> list[Task]:
        return self._store.list_tasks()

    def armable_tasks(self) -> list[Task]:
        return self._store.list_armable_tasks()

    # ---- writes ----

    def create(
        self,
        title: str,
        bucket: Bucket | str = DEFAULT_BUCKET,
        laps_total: object = 1,
        deadline: object = None,
    ) -> Task:
        clean_title = _clean_title(title)
        category = parse_bucket(bucket)
        due = parse_deadline(deadline)
        laps = clamp_int(laps_total, LAPS_MIN, LAPS_MAX)

        with self._lock:
            task_id = self._store.add_task(
                title=clean_title,
                category=category,
                laps_total=laps,
                created_at=self._clock(),
                deadline=due,
            )
            task = self.get(task_id)
            self._alarms.arm(task)

        logger.info("Task created id=%s bucket=%s deadline=%s", task.id, category.value, due)
        return task

    def update(self, task_id: int, fields: Mapping[str, Any]) -> Task:
        """
        Apply only the fields present in `fields`.

        A bucket change on an active task also moves its scoring category.
        Terminal tasks accept title, laps and deadline edits only.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidInput(f"unknown fields: {', '.join(sorted(unknown))}")

        with self._lock:
            current = self.get(task_id)
            changes: dict[str, Any] = {}

            if "title" in fields:
                changes["title"] = _clean_title(fields["title"])

            if "bucket" in fields:
                bucket = parse_bucket(fields["bucket"])
                if bucket != current.category:
                    if current.is_terminal:
                        raise TaskAlreadyTerminal(current.id, current.status.value)
                    changes["category"] = bucket
                    changes["scoring_category"] = bucket

            if "status" in fields:
                try:
                    status = TaskStatus(str(fields["status"]).strip().lower())
                except ValueError:
                    raise InvalidInput(f"unknown status: {fields['status']!r}") from None
                if status.is_terminal:
                    raise InvalidInput("use finish or dnf to end a task")
                if status != current.status:
                    if current.is_terminal:
                        raise TaskAlreadyTerminal(current.id, current.status.value)
                    changes["status"] = status

            laps_total = current.laps_total
            if "laps_total" in fields:
                laps_total = clamp_int(fields["laps_total"], LAPS_MIN, LAPS_MAX)
                changes["laps_total"] = laps_total
            laps_done = fields["laps_done"] if "laps_done" in fields else current.laps_done
            if "laps_done" in fields or "laps_total" in fields:
                changes["laps_done"] = clamp_int(laps_done, 0, laps_total)

            if "deadline" in fields:
                changes["deadline"] = parse_deadline(fields["deadline"])

            updated = replace(current, **changes)
            if updated != current:
                self._store.save_task(updated)
                logger.info("Task updated id=%s fields=%s", updated.id, sorted(changes))
            self._alarms.arm(updated)
        return updated

    def increment_lap(self, task_id: int) -> Task:
        with self._lock:
            current = self.get(task_id)
            status = current.status if current.is_terminal else TaskStatus.PROGRESS
            updated = replace(
                current,
                laps_done=min(current.laps_done + 1, current.laps_total),
                status=status,
            )
            if updated != current:
                self._store.save_task(updated)
            self._alarms.arm(updated)

        logger.debug("Lap id=%s %d/%d", updated.id, updated.laps_done, updated.laps_total)
        return updated

    def finish(self, task_id: int) -> Task:
        with self._lock:
            current = self._require_active(task_id)
            finished_at = self._clock()
            award = score_finish(current, finished_at, self._rules)
            updated = self._close(current, TaskStatus.FINISH, finished_at, award)

        logger.info(
            "Task finished id=%s scoring=%s base=%s penalty=%s total=%s",
            updated.id,
            updated.scoring_category.value,
            updated.points_base,
            updated.points_penalty,
            updated.points_total,
        )
        return updated

    def dnf(self, task_id: int) -> Task:
        with self._lock:
            current = self._require_active(task_id)
            updated = self._close(current, TaskStatus.DNF, self._clock(), score_dnf(self._rules))

        logger.info("Task DNF id=%s total=%s", updated.id, updated.points_total)
        return updated

    def delete(self, task_id: int) -> bool:
        with self._lock:
            removed = self._store.delete_task(int(task_id))
            self._alarms.disarm(int(task_id))
        if removed:
            logger.info("Task deleted id=%s", task_id)
        return removed

    # ---- helpers ----

    def _require_active(self, task_id: int) -> Task:
        current = self.get(task_id)
        if current.is_terminal:
            raise TaskAlreadyTerminal(current.id, current.status.value)
        return current

    def _close(
        self,
        current: Task,
        status: TaskStatus,
        finished_at: datetime,
        award: PointsAward,
    ) -> Task:
        # scoring_category is left as-is: it freezes here.
        updated = replace(
            current,
            status=status,
            category=ARCHIVE_BUCKET,
            finished_at=finished_at,
            points_base=award.base,
            points_bonus=award.bonus,
            points_penalty=award.penalty,
            points_total=award.total,
        )
        self._store.save_task(updated)
        self._alarms.disarm(updated.id)
        return updated
