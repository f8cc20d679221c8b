# src/pitlane/calendar/calendar_api.py

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from ..core.errors import InvalidInput
from ..core.state import AppState

logger = logging.getLogger(__name__)

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _optional_text(fields: Mapping[str, Any], key: str) -> str | None:
    raw = fields.get(key)
    if raw is None:
        return None
    s = str(raw).strip()
    return s or None


def _optional_time(fields: Mapping[str, Any], key: str) -> str | None:
    s = _optional_text(fields, key)
    if s is not None and not _HHMM.match(s):
        raise InvalidInput(f"{key} must be HH:MM, got {s!r}")
    return s


def list_calendar_events(state: AppState) -> list[dict[str, object]]:
    return [e.to_dict() for e in state.calendar_store.list_events()]


def create_calendar_event(state: AppState, fields: Mapping[str, Any]) -> dict[str, int]:
    """
    fields: title, startDate (YYYY-MM-DD), startTime?, endTime?, location?, notes?
    """
    title = _optional_text(fields, "title")
    if not title:
        raise InvalidInput("title is required")

    raw_date = _optional_text(fields, "startDate") or _optional_text(fields, "date")
    if not raw_date:
        raise InvalidInput("startDate is required")
    try:
        start_date = date.fromisoformat(raw_date)
    except ValueError:
        raise InvalidInput(f"startDate must be YYYY-MM-DD, got {raw_date!r}") from None

    start_time = _optional_time(fields, "startTime")
    end_time = _optional_time(fields, "endTime")
    if start_time and end_time and end_time < start_time:
        raise InvalidInput("endTime is before startTime")

    event_id = state.calendar_store.add_event(
        title=title,
        start_date=start_date,
        created_at=datetime.now().astimezone(),
        start_time=start_time,
        end_time=end_time,
        location=_optional_text(fields, "location"),
        notes=_optional_text(fields, "notes"),
    )
    logger.info("Calendar event created id=%s date=%s", event_id, start_date)
    return {"id": event_id}


def delete_calendar_event(state: AppState, event_id: int) -> dict[str, bool]:
    if state.calendar_store.delete_event(event_id):
        logger.info("Calendar event deleted id=%s", event_id)
    return {"ok": True}
