# tests/conftest.py

from __future__ import annotations

import time
from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from fakes import FakeNotifier, FeedServer, ergast_payload, race
from pitlane.cli.bootstrap import create_initial_state, shutdown_state
from pitlane.core.state import AppState
from pitlane.tasks.task_models import PointsRules

PRIMARY = "https://primary.test/f1"
BACKUP = "https://backup.test/f1"


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="pitlane-test",
        data_dir=tmp_path,
        db_path=tmp_path / "pitlane.sqlite3",
        notify_hour=10,
        schedule_endpoints=[PRIMARY, BACKUP],
        schedule_timeout_seconds=1.0,
        schedule_ttl_hours=24.0,
        points_rules=PointsRules(),
    )


@pytest.fixture()
def feed() -> FeedServer:
    payload = ergast_payload(race(21, "Sao Paulo Grand Prix", "2026-11-08", "17:00:00Z"))
    return FeedServer({"primary.test": payload, "backup.test": payload})


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def state(settings: SimpleNamespace, notifier: FakeNotifier, feed: FeedServer) -> Iterator[AppState]:
    """
    AppState wired with deterministic fakes.

    NOTE: We keep real SQLite stores and the real timer scheduler here because
    their correctness is part of what we want to test.
    """
    st = create_initial_state(settings=settings, notifier=notifier, transport=feed.transport())
    yield st
    shutdown_state(st)


@pytest.fixture()
def berlin_tz(monkeypatch) -> Iterator[None]:
    """Run with the process-local zone set to Europe/Berlin (DST on 2026-03-29)."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset() is not available on this platform")
    monkeypatch.setenv("TZ", "Europe/Berlin")
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
