# tests/test_config.py

from __future__ import annotations

from pathlib import Path

from pitlane.config import Settings
from pitlane.schedule.schedule_client import DEFAULT_ENDPOINTS
from pitlane.tasks.task_models import Bucket


def test_defaults_without_environment(monkeypatch) -> None:
    for name in (
        "PITLANE_DATA_DIR",
        "PITLANE_DB_PATH",
        "PITLANE_NOTIFY_HOUR",
        "PITLANE_SCHEDULE_ENDPOINTS",
        "PITLANE_POINTS_RACE",
        "PITLANE_LATE_PENALTY_AFTER_DAYS",
    ):
        monkeypatch.delenv(name, raising=False)

    s = Settings.from_env()
    assert s.data_dir == Path(".local/pitlane")
    assert s.db_path == Path(".local/pitlane/pitlane.sqlite3")
    assert s.notify_hour == 10
    assert s.schedule_endpoints == list(DEFAULT_ENDPOINTS)
    assert s.points_rules.base_for(Bucket.RACE) == 25
    assert s.points_rules.late_penalty_after_days == 3


def test_environment_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("PITLANE_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("PITLANE_DB_PATH", raising=False)
    monkeypatch.setenv("PITLANE_NOTIFY_HOUR", "30")
    monkeypatch.setenv("PITLANE_SCHEDULE_ENDPOINTS", "https://a.test/f1, https://b.test/f1")
    monkeypatch.setenv("PITLANE_POINTS_SPRINT", "12")
    monkeypatch.setenv("PITLANE_LATE_PENALTY_AFTER_DAYS", "-4")
    monkeypatch.setenv("PITLANE_DNF_PENALTY_POINTS", "not a number")

    s = Settings.from_env()
    assert s.db_path == tmp_path / "pitlane.sqlite3"
    assert s.notify_hour == 23
    assert s.schedule_endpoints == ["https://a.test/f1", "https://b.test/f1"]

    rules = s.points_rules
    assert rules.base_for(Bucket.SPRINT) == 12
    assert rules.late_penalty_after_days == 0
    assert rules.dnf_penalty_points == -5
