# src/pitlane/calendar/calendar_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CalendarEvent:
    """A personal note pinned to one calendar date. Never edited in place."""

    id: int
    title: str
    start_date: date
    created_at: datetime
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    notes: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "title": self.title,
            "startDate": self.start_date.isoformat(),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "location": self.location,
            "notes": self.notes,
            "createdAt": self.created_at.isoformat(),
        }


class CalendarStore:
    """
    SQLite storage for calendar events.

    Shares the database file with TaskStore; owns only the calendar_events table.
    """

    def __init__(self, db_path: str | Path = "pitlane.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("CalendarStore ready db=%s", self._db_path)

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS calendar_events (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    start_date TEXT NOT NULL,
                    start_time TEXT,
                    end_time TEXT,
                    location TEXT,
                    notes TEXT,
                    created_at TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_calendar_events_date "
                "ON calendar_events(start_date, start_time)"
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_event(row: sqlite3.Row) -> CalendarEvent:
        return CalendarEvent(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            start_date=date.fromisoformat(str(row["start_date"])[:10]),
            created_at=datetime.fromisoformat(str(row["created_at"])),
            start_time=row["start_time"],
            end_time=row["end_time"],
            location=row["location"],
            notes=row["notes"],
        )

    def add_event(
        self,
        *,
        title: str,
        start_date: date,
        created_at: datetime,
        start_time: str | None = None,
        end_time: str | None = None,
        location: str | None = None,
        notes: str | None = None,
    ) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO calendar_events(
                    title, start_date, start_time, end_time, location, notes, created_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    title,
                    start_date.isoformat(),
                    start_time,
                    end_time,
                    location,
                    notes,
                    created_at.isoformat(),
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for calendar_events insert")
            logger.debug("Calendar event added id=%s date=%s", rowid, start_date)
            return int(rowid)
        finally:
            conn.close()

    def list_events(self) -> list[CalendarEvent]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT *
                FROM calendar_events
                ORDER BY start_date ASC, COALESCE(start_time, '') ASC, id ASC
                """
            ).fetchall()
            return [self._row_to_event(r) for r in rows]
        finally:
            conn.close()

    def delete_event(self, event_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM calendar_events WHERE id = ?", (int(event_id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()
