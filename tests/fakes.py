# tests/fakes.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

import httpx

from pitlane.tasks.task_models import Task


@dataclass(slots=True)
class Alert:
    task_id: int
    title: str
    deadline: date | None


class FakeNotifier:
    """
    Records delivered alerts; `fired` is set on every delivery so tests can wait on it.
    """

    def __init__(self, *, fail: bool = False) -> None:
        self.alerts: list[Alert] = []
        self.fired = threading.Event()
        self.fail = fail

    def notify(self, *, task_id: int, title: str, deadline: date | None) -> None:
        if self.fail:
            self.fired.set()
            raise RuntimeError("notification backend is down")
        self.alerts.append(Alert(task_id=task_id, title=title, deadline=deadline))
        self.fired.set()


class FakeClock:
    """Settable wall clock (datetime) for the controller and scheduler."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeEpochClock:
    """Settable time.time() replacement for the schedule cache."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@dataclass(slots=True)
class FakeAlarms:
    """AlarmRegistry that only records calls (no timers)."""

    armed: list[Task] = field(default_factory=list)
    disarmed: list[int] = field(default_factory=list)

    def arm(self, task: Task) -> bool:
        self.armed.append(task)
        return task.deadline is not None and not task.is_terminal

    def disarm(self, task_id: int) -> bool:
        self.disarmed.append(task_id)
        return True


def race(round_no: int, name: str, day: str, time: str | None = "14:00:00Z") -> dict[str, Any]:
    out: dict[str, Any] = {
        "season": day[:4],
        "round": str(round_no),
        "raceName": name,
        "Circuit": {
            "circuitId": name.lower().replace(" ", "_"),
            "circuitName": f"{name} Circuit",
            "Location": {"locality": "Monza", "country": "Italy"},
        },
        "date": day,
    }
    if time is not None:
        out["time"] = time
    return out


def ergast_payload(*races: dict[str, Any]) -> dict[str, Any]:
    return {"MRData": {"RaceTable": {"season": "2024", "Races": list(races)}}}


class FeedServer:
    """
    httpx.MockTransport handler with per-host behaviour.

    `routes[host]` is either a payload dict, an int HTTP status, or an exception
    instance to raise. Every request is recorded in `calls`.
    """

    def __init__(self, routes: dict[str, Any]) -> None:
        self.routes = routes
        self.calls: list[httpx.URL] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request.url)
        behaviour = self.routes.get(request.url.host, 404)
        if isinstance(behaviour, Exception):
            raise behaviour
        if isinstance(behaviour, int):
            return httpx.Response(behaviour, json={"error": "boom"})
        return httpx.Response(200, json=behaviour)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def hosts(self) -> list[str]:
        return [u.host for u in self.calls]
