# src/pitlane/core/errors.py

"""Exception hierarchy shared by the core and the command channel."""

from __future__ import annotations


class PitlaneError(Exception):
    """Base class for every error surfaced by the core."""


class InvalidInput(PitlaneError):
    """Structurally invalid request (empty title, unknown bucket, bad date...)."""


class NotFound(PitlaneError):
    def __init__(self, kind: str, entity_id: int) -> None:
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class TaskAlreadyTerminal(PitlaneError):
    def __init__(self, task_id: int, status: str) -> None:
        super().__init__(f"task {task_id} is already terminal ({status})")
        self.task_id = task_id
        self.status = status


class ScheduleUnavailable(PitlaneError):
    """
    Every configured upstream endpoint failed.

    `reasons` keeps one short description per attempted endpoint, in order.
    """

    def __init__(self, key: str, reasons: list[str]) -> None:
        detail = "; ".join(reasons) if reasons else "no endpoints configured"
        super().__init__(f"schedule '{key}' unavailable: {detail}")
        self.key = key
        self.reasons = list(reasons)
