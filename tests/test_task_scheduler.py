# tests/test_task_scheduler.py

from __future__ import annotations

import time
from datetime import UTC, date, datetime, timedelta

from fakes import FakeClock, FakeNotifier
from pitlane.tasks.task_models import Bucket, Task, TaskStatus
from pitlane.tasks.task_scheduler import NotificationScheduler

DEADLINE = date(2026, 10, 16)


def _task(task_id: int = 1, *, deadline: date | None = DEADLINE, status: TaskStatus = TaskStatus.START) -> Task:
    return Task(
        id=task_id,
        title=f"task {task_id}",
        category=Bucket.SPRINT,
        scoring_category=Bucket.SPRINT,
        status=status,
        laps_total=1,
        laps_done=0,
        created_at=datetime(2026, 10, 1, tzinfo=UTC),
        deadline=deadline,
    )


def _clock_before_alert(seconds: float) -> FakeClock:
    """Clock positioned `seconds` before 10:00 on DEADLINE."""
    target = datetime(2026, 10, 16, 10, 0, tzinfo=UTC).timestamp()
    return FakeClock(datetime.fromtimestamp(target - seconds, tz=UTC))


def _scheduler(notifier: FakeNotifier, clock: FakeClock) -> NotificationScheduler:
    sched = NotificationScheduler(notifier, notify_hour=10, clock=clock)
    sched.start()
    return sched


def test_alert_fires_once_at_deadline_morning(notifier: FakeNotifier) -> None:
    sched = _scheduler(notifier, _clock_before_alert(0.05))
    try:
        assert sched.arm(_task()) is True
        assert notifier.fired.wait(2.0)
        time.sleep(0.05)
        assert [(a.task_id, a.title, a.deadline) for a in notifier.alerts] == [(1, "task 1", DEADLINE)]
        assert sched.pending_ids() == set()
    finally:
        sched.shutdown()


def test_target_is_local_ten_oclock(notifier: FakeNotifier) -> None:
    sched = _scheduler(notifier, FakeClock(datetime(2026, 10, 1, 8, 0, tzinfo=UTC)))
    try:
        assert sched.target_for(_task()) == datetime(2026, 10, 16, 10, 0, tzinfo=UTC)
        assert sched.target_for(_task(deadline=None)) is None
    finally:
        sched.shutdown()


def test_no_alarm_without_deadline_terminal_or_past(notifier: FakeNotifier) -> None:
    sched = _scheduler(notifier, FakeClock(datetime(2026, 10, 16, 10, 0, tzinfo=UTC)))
    try:
        assert sched.arm(_task(1, deadline=None)) is False
        assert sched.arm(_task(2, status=TaskStatus.FINISH, deadline=date(2026, 12, 1))) is False
        assert sched.arm(_task(3, status=TaskStatus.DNF, deadline=date(2026, 12, 1))) is False
        # target == now: no retroactive alert
        assert sched.arm(_task(4)) is False
        assert sched.pending_ids() == set()
    finally:
        sched.shutdown()


def test_rearm_replaces_previous_timer(notifier: FakeNotifier) -> None:
    sched = _scheduler(notifier, _clock_before_alert(0.1))
    try:
        sched.arm(_task())
        sched.arm(_task())
        sched.arm(_task())
        assert sched.pending_ids() == {1}
        assert notifier.fired.wait(2.0)
        time.sleep(0.2)
        assert len(notifier.alerts) == 1
    finally:
        sched.shutdown()


def test_arm_with_terminal_snapshot_cancels_existing_alarm(notifier: FakeNotifier) -> None:
    sched = _scheduler(notifier, _clock_before_alert(0.1))
    try:
        sched.arm(_task())
        assert sched.arm(_task(status=TaskStatus.FINISH)) is False
        assert sched.pending_ids() == set()
        time.sleep(0.3)
        assert notifier.alerts == []
    finally:
        sched.shutdown()


def test_disarm_prevents_alert_and_is_safe_when_absent(notifier: FakeNotifier) -> None:
    sched = _scheduler(notifier, _clock_before_alert(0.1))
    try:
        sched.arm(_task())
        assert sched.disarm(1) is True
        assert sched.disarm(1) is False
        assert sched.disarm(999) is False
        time.sleep(0.3)
        assert notifier.alerts == []
    finally:
        sched.shutdown()


def test_rearm_all_rebuilds_registry(notifier: FakeNotifier) -> None:
    clock = FakeClock(datetime(2026, 10, 1, 8, 0, tzinfo=UTC))
    sched = _scheduler(notifier, clock)
    try:
        sched.arm(_task(99, deadline=date(2026, 12, 24)))
        armed = sched.rearm_all(
            [
                _task(1),
                _task(2, deadline=None),
                _task(3, status=TaskStatus.DNF),
                _task(4, deadline=date(2026, 9, 1)),
                _task(5, deadline=date(2026, 11, 1)),
            ]
        )
        assert armed == 2
        assert sched.pending_ids() == {1, 5}
    finally:
        sched.shutdown()


def test_failed_delivery_is_dropped_and_slot_cleared() -> None:
    broken = FakeNotifier(fail=True)
    sched = _scheduler(broken, _clock_before_alert(0.05))
    try:
        sched.arm(_task())
        assert broken.fired.wait(2.0)
        time.sleep(0.05)
        assert sched.pending_ids() == set()
        assert sched.arm(_task(2, deadline=date(2026, 12, 1))) is True
    finally:
        sched.shutdown()


def test_shutdown_cancels_everything_and_stops_arming(notifier: FakeNotifier) -> None:
    sched = _scheduler(notifier, _clock_before_alert(0.1))
    sched.arm(_task())
    sched.shutdown()
    assert sched.pending_ids() == set()
    assert sched.arm(_task(2)) is False
    time.sleep(0.3)
    assert notifier.alerts == []


def test_target_keeps_local_hour_across_dst_change(notifier: FakeNotifier, berlin_tz) -> None:
    winter_now = datetime(2026, 3, 20, 12, 0).astimezone()
    assert winter_now.utcoffset() == timedelta(hours=1)

    sched = _scheduler(notifier, FakeClock(winter_now))
    try:
        target = sched.target_for(_task(deadline=date(2026, 4, 10)))
        assert target is not None
        assert target.astimezone().hour == 10
        assert target.utcoffset() == timedelta(hours=2)
        assert sched.arm(_task(deadline=date(2026, 4, 10))) is True
    finally:
        sched.shutdown()
