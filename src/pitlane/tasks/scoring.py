# src/pitlane/tasks/scoring.py

"""
Pure scoring functions.

Nothing here touches storage; the lifecycle controller feeds a Task snapshot
in and writes the returned award back.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from .task_models import Bucket, PointsRules, Task, local_datetime

_ONE_DAY = timedelta(days=1)


@dataclass(frozen=True, slots=True)
class PointsAward:
    base: int
    bonus: int
    penalty: int

    @property
    def total(self) -> int:
        return self.base + self.bonus + self.penalty


def deadline_start(deadline: date, tz_source: datetime) -> datetime:
    """Local midnight of `deadline`, in the timezone of `tz_source`."""
    return local_datetime(deadline, time.min, tz_source)


def late_days(deadline: date, finished_at: datetime) -> int:
    """Whole days elapsed between the start of the deadline date and `finished_at` (floored)."""
    delta = finished_at - deadline_start(deadline, finished_at)
    return math.floor(delta / _ONE_DAY)


def score_finish(task: Task, finished_at: datetime, rules: PointsRules) -> PointsAward:
    base = rules.base_for(task.scoring_category)
    penalty = 0
    if task.deadline is not None:
        if late_days(task.deadline, finished_at) >= rules.late_penalty_after_days:
            penalty = rules.late_penalty_points
    # Bonus is reserved; no rule produces it yet.
    return PointsAward(base=base, bonus=0, penalty=penalty)


def score_dnf(rules: PointsRules) -> PointsAward:
    return PointsAward(base=0, bonus=0, penalty=rules.dnf_penalty_points)


def points_summary(tasks: Iterable[Task]) -> tuple[int, dict[Bucket, int]]:
    """Total points plus per-bucket totals keyed by scoring category."""
    by_bucket = {b: 0 for b in Bucket}
    total = 0
    for t in tasks:
        by_bucket[t.scoring_category] += t.points_total
        total += t.points_total
    return total, by_bucket
