# src/pitlane/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from enum import StrEnum


class TaskStatus(StrEnum):
    """
    Task lifecycle status.

    start -> progress -> finish | dnf. Terminal states have no way out.
    """

    START = "start"
    PROGRESS = "progress"
    FINISH = "finish"
    DNF = "dnf"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.START
        try:
            return cls(raw)
        except ValueError:
            return cls.START


TERMINAL_STATUSES = frozenset({TaskStatus.FINISH, TaskStatus.DNF})


class Bucket(StrEnum):
    PRACTICE = "practice"
    QUALIFYING = "qualifying"
    SPRINT = "sprint"
    RACE = "race"
    PIT = "pit"
    PARC = "parc"


ARCHIVE_BUCKET = Bucket.PARC
DEFAULT_BUCKET = Bucket.SPRINT

LAPS_MIN = 1
LAPS_MAX = 999


def clamp_int(value: object, lo: int, hi: int) -> int:
    """Clamp anything number-like into [lo, hi]; garbage becomes `lo`."""
    try:
        n = int(float(value))  # type: ignore[arg-type]
    except (TypeError, ValueError, OverflowError):
        return lo
    return max(lo, min(hi, n))


def local_datetime(day: date, at: time, like: datetime) -> datetime:
    """
    `day` at `at`, in the same kind of timezone as `like`.

    A fixed offset taken from the system zone (what `datetime.now().astimezone()`
    returns) only describes `like` itself, so the offset for `day` is looked up
    through the system zone again. Named zones and foreign offsets are attached as-is.
    """
    naive = datetime.combine(day, at)
    tz = like.tzinfo
    if tz is None:
        return naive
    if isinstance(tz, timezone) and like.utcoffset() == like.astimezone().utcoffset():
        return naive.astimezone()
    return naive.replace(tzinfo=tz)


DEFAULT_BASE_POINTS: dict[Bucket, int] = {
    Bucket.RACE: 25,
    Bucket.SPRINT: 8,
    Bucket.QUALIFYING: 3,
    Bucket.PIT: 2,
    Bucket.PRACTICE: 1,
    Bucket.PARC: 1,
}


@dataclass(frozen=True, slots=True)
class PointsRules:
    """Injected scoring configuration."""

    base: Mapping[Bucket, int] = field(default_factory=lambda: dict(DEFAULT_BASE_POINTS))
    late_penalty_after_days: int = 3
    late_penalty_points: int = -5
    dnf_penalty_points: int = -5

    def base_for(self, bucket: Bucket) -> int:
        return int(self.base.get(bucket, 0))

    def normalized(self) -> PointsRules:
        """Copy with every bucket present and the grace period clamped to >= 0."""
        base = {b: int(self.base.get(b, DEFAULT_BASE_POINTS[b])) for b in Bucket}
        return PointsRules(
            base=base,
            late_penalty_after_days=max(0, int(self.late_penalty_after_days)),
            late_penalty_points=int(self.late_penalty_points),
            dnf_penalty_points=int(self.dnf_penalty_points),
        )


@dataclass(frozen=True, slots=True)
class Task:
    id: int
    title: str
    category: Bucket
    scoring_category: Bucket
    status: TaskStatus

    laps_total: int
    laps_done: int

    created_at: datetime
    deadline: date | None = None
    finished_at: datetime | None = None

    points_base: int = 0
    points_bonus: int = 0
    points_penalty: int = 0
    points_total: int = 0

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category.value,
            "scoringCategory": self.scoring_category.value,
            "status": self.status.value,
            "lapsTotal": self.laps_total,
            "lapsDone": self.laps_done,
            "createdAt": self.created_at.isoformat(),
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "finishedAt": self.finished_at.isoformat() if self.finished_at else None,
            "pointsBase": self.points_base,
            "pointsBonus": self.points_bonus,
            "pointsPenalty": self.points_penalty,
            "pointsTotal": self.points_total,
        }
