# src/pitlane/cli/commands.py

from __future__ import annotations

import logging
import shlex
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..calendar import calendar_api
from ..core.errors import InvalidInput, PitlaneError, ScheduleUnavailable
from ..core.state import AppState
from ..schedule import schedule_api
from ..tasks import task_api

CommandHandler = Callable[[AppState, list[str]], str]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /tasks, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError:
            parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return handler(state, args)
        except ScheduleUnavailable as e:
            logger.info("Command /%s: %s", name, e)
            return "Race calendar is unavailable right now. Try again later."
        except PitlaneError as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _split_options(args: list[str]) -> tuple[list[str], dict[str, str]]:
    """Separate `key=value` tokens from positional words."""
    words: list[str] = []
    opts: dict[str, str] = {}
    for a in args:
        key, sep, value = a.partition("=")
        if sep and key.isidentifier():
            opts[key.lower()] = value
        else:
            words.append(a)
    return words, opts


def _task_id(args: list[str], usage: str) -> int:
    if not args:
        raise InvalidInput(f"usage: {usage}")
    try:
        return int(args[0].lstrip("#"))
    except ValueError:
        raise InvalidInput(f"not a task id: {args[0]!r}") from None


def _format_task(t: dict[str, object]) -> str:
    due = f" due {t['deadline']}" if t.get("deadline") else ""
    return (
        f"#{t['id']} [{str(t['status']).upper()}] {t['title']} "
        f"({t['category']}, laps {t['lapsDone']}/{t['lapsTotal']}{due}) pts {t['pointsTotal']}"
    )


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_tasks(state: AppState, args: list[str]) -> str:
    tasks = task_api.list_tasks(state)
    if not tasks:
        return "No tasks yet. Use /add <title> [bucket=...] [laps=N] [due=YYYY-MM-DD]."
    return "\n".join(_format_task(t) for t in tasks)


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Write report bucket=race laps=3 due=2026-10-20
    """
    words, opts = _split_options(args)
    res = task_api.create_task(
        state,
        title=" ".join(words),
        bucket=opts.get("bucket", "sprint"),
        laps_total=opts.get("laps", 1),
        deadline=opts.get("due"),
    )
    return f"Task #{res['id']} created."


def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id> title="New title" bucket=race status=progress laps=5 done=2 due=2026-10-20|none
    """
    task_id = _task_id(args, "/edit <id> key=value ...")
    _, opts = _split_options(args[1:])
    keys = {
        "title": "title",
        "bucket": "bucket",
        "status": "status",
        "laps": "lapsTotal",
        "done": "lapsDone",
        "due": "deadline",
    }
    fields: dict[str, object] = {}
    for k, v in opts.items():
        if k not in keys:
            raise InvalidInput(f"unknown field: {k}")
        fields[keys[k]] = None if k == "due" and v.lower() in ("", "none") else v
    if not fields:
        return "Nothing to change."
    task_api.update_task(state, task_id, fields)
    return f"Task #{task_id} updated."


def cmd_lap(state: AppState, args: list[str]) -> str:
    t = task_api.increment_lap(state, _task_id(args, "/lap <id>"))
    return f"Task #{t['id']}: lap {t['lapsDone']}/{t['lapsTotal']}."


def cmd_finish(state: AppState, args: list[str]) -> str:
    task_id = _task_id(args, "/finish <id>")
    task_api.finish_task(state, task_id)
    t = state.controller.get(task_id)
    return (
        f"FINISH #{t.id}: base {t.points_base}, penalty {t.points_penalty}, "
        f"total {t.points_total} ({t.scoring_category.value})."
    )


def cmd_dnf(state: AppState, args: list[str]) -> str:
    task_id = _task_id(args, "/dnf <id>")
    task_api.dnf_task(state, task_id)
    t = state.controller.get(task_id)
    return f"DNF #{t.id}: total {t.points_total}."


def cmd_del(state: AppState, args: list[str]) -> str:
    task_id = _task_id(args, "/del <id>")
    task_api.delete_task(state, task_id)
    return f"Task #{task_id} deleted."


def cmd_points(state: AppState, args: list[str]) -> str:
    summary = task_api.points_summary(state)
    by_bucket = cast(dict[str, int], summary["byBucket"])
    lines = [f"Total points: {summary['total']}"]
    for bucket, pts in by_bucket.items():
        lines.append(f"  {bucket}: {pts}")
    return "\n".join(lines)


def cmd_rearm(state: AppState, args: list[str]) -> str:
    res = task_api.reschedule_notifications(state)
    return f"Deadline alerts re-armed: {res['armed']}."


def cmd_events(state: AppState, args: list[str]) -> str:
    events = calendar_api.list_calendar_events(state)
    if not events:
        return "No calendar events."
    lines = []
    for e in events:
        when = e["startDate"]
        if e.get("startTime"):
            when = f"{when} {e['startTime']}" + (f"-{e['endTime']}" if e.get("endTime") else "")
        where = f" @ {e['location']}" if e.get("location") else ""
        lines.append(f"#{e['id']} {when} {e['title']}{where}")
    return "\n".join(lines)


def cmd_event(state: AppState, args: list[str]) -> str:
    """
    /event add 2026-10-20 Dentist start=09:30 end=10:00 at="Main st" notes="bring card"
    /event del <id>
    """
    usage = "Usage: /event add <YYYY-MM-DD> <title> [start=HH:MM] [end=HH:MM] [at=...] [notes=...] | /event del <id>"
    if not args:
        return usage

    sub = args[0].lower()
    if sub == "add":
        words, opts = _split_options(args[1:])
        if not words:
            return usage
        res = calendar_api.create_calendar_event(
            state,
            {
                "startDate": words[0],
                "title": " ".join(words[1:]),
                "startTime": opts.get("start"),
                "endTime": opts.get("end"),
                "location": opts.get("at"),
                "notes": opts.get("notes"),
            },
        )
        return f"Event #{res['id']} created."

    if sub in ("del", "delete", "rm"):
        event_id = _task_id(args[1:], "/event del <id>")
        calendar_api.delete_calendar_event(state, event_id)
        return f"Event #{event_id} deleted."

    return usage


def cmd_next(state: AppState, args: list[str]) -> str:
    gp = schedule_api.get_next_fixture(state)
    return f"Next: R{gp['round']} {gp['name']} - {gp['location']} - {gp['startsAt']}"


def cmd_schedule(state: AppState, args: list[str]) -> str:
    season = args[0] if args else datetime.now().year
    entries = schedule_api.get_schedule(state, season)
    return "\n".join(f"R{e['round']:>2} {e['date']} {e['name']} ({e['location']})" for e in entries)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("tasks", cmd_tasks, help_text="List tasks, newest first.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Create a task: /add <title> [bucket=..] [laps=N] [due=YYYY-MM-DD].")
registry.register("edit", cmd_edit, help_text="Edit a task: /edit <id> title=.. bucket=.. status=.. laps=.. done=.. due=..")
registry.register("lap", cmd_lap, help_text="Count one lap: /lap <id>.")
registry.register("finish", cmd_finish, help_text="Finish a task and score it: /finish <id>.")
registry.register("dnf", cmd_dnf, help_text="Abandon a task (DNF penalty): /dnf <id>.")
registry.register("del", cmd_del, help_text="Delete a task: /del <id>.", aliases=["rm"])
registry.register("points", cmd_points, help_text="Show points, total and per bucket.")
registry.register("rearm", cmd_rearm, help_text="Rebuild deadline alerts from stored tasks.")
registry.register("events", cmd_events, help_text="List calendar events.")
registry.register("event", cmd_event, help_text="Calendar: /event add <date> <title> ... | /event del <id>.")
registry.register("next", cmd_next, help_text="Show the next Grand Prix.")
registry.register("schedule", cmd_schedule, help_text="Season calendar: /schedule [year].")
