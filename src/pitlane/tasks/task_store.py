# src/pitlane/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from datetime import date, datetime
from pathlib import Path

from .task_models import DEFAULT_BUCKET, Bucket, Task, TaskStatus

logger = logging.getLogger(__name__)


def _bucket_from_db(raw: str | None) -> Bucket:
    if not raw:
        return DEFAULT_BUCKET
    try:
        return Bucket(raw)
    except ValueError:
        return DEFAULT_BUCKET


def _date_from_db(raw: str | None) -> date | None:
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        logger.warning("Ignoring malformed deadline in DB: %r", raw)
        return None


def _dt_from_db(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        return datetime.fromisoformat(str(raw))
    except ValueError:
        logger.warning("Ignoring malformed timestamp in DB: %r", raw)
        return None


class TaskStore:
    """
    SQLite task store.

    Holds rows only; lifecycle rules live in the controller. The schema is
    migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed, backfilling scoring data

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "pitlane.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    category TEXT NOT NULL,
                    status TEXT NOT NULL DEFAULT 'start',
                    laps_total INTEGER NOT NULL DEFAULT 1,
                    laps_done INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> bool:
                if name in cols:
                    return False
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                cols.add(name)
                logger.info("TaskStore migration: added column %s", name)
                return True

            add_col("deadline", "TEXT")
            add_col("finished_at", "TEXT")
            add_col("points_base", "INTEGER NOT NULL DEFAULT 0")
            add_col("points_bonus", "INTEGER NOT NULL DEFAULT 0")
            add_col("points_penalty", "INTEGER NOT NULL DEFAULT 0")
            add_col("points_total", "INTEGER NOT NULL DEFAULT 0")
            add_col("scoring_category", "TEXT")

            # Rows that predate scoring_category score under their current bucket.
            cur.execute(
                """
                UPDATE tasks
                SET scoring_category = category
                WHERE scoring_category IS NULL OR scoring_category = ''
                """
            )
            if cur.rowcount:
                logger.info("TaskStore migration: backfilled scoring_category rows=%s", cur.rowcount)

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status_deadline ON tasks(status, deadline)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        category = _bucket_from_db(row["category"])
        created_at = _dt_from_db(row["created_at"]) or datetime.fromtimestamp(0).astimezone()
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            category=category,
            scoring_category=_bucket_from_db(row["scoring_category"] or category.value),
            status=TaskStatus.from_db(row["status"]),
            laps_total=int(row["laps_total"] or 1),
            laps_done=int(row["laps_done"] or 0),
            created_at=created_at,
            deadline=_date_from_db(row["deadline"]),
            finished_at=_dt_from_db(row["finished_at"]),
            points_base=int(row["points_base"] or 0),
            points_bonus=int(row["points_bonus"] or 0),
            points_penalty=int(row["points_penalty"] or 0),
            points_total=int(row["points_total"] or 0),
        )

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(
        self,
        *,
        title: str,
        category: Bucket,
        laps_total: int,
        created_at: datetime,
        deadline: date | None = None,
    ) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(
                    title, category, scoring_category, status,
                    laps_total, laps_done, created_at, deadline,
                    points_base, points_bonus, points_penalty, points_total
                )
                VALUES (?, ?, ?, ?, ?, 0, ?, ?, 0, 0, 0, 0)
                """,
                (
                    title,
                    category.value,
                    category.value,
                    TaskStatus.START.value,
                    int(laps_total),
                    created_at.isoformat(),
                    deadline.isoformat() if deadline else None,
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)
            logger.debug("Task added id=%s category=%s deadline=%s", task_id, category.value, deadline)
            return task_id
        finally:
            conn.close()

    def get_task(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(self) -> list[Task]:
        """All tasks, newest id first."""
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM tasks ORDER BY id DESC").fetchall()
            return [self._row_to_task(r) for r in rows]
        finally:
            conn.close()

    def list_armable_tasks(self) -> list[Task]:
        """Non-terminal tasks that carry a deadline."""
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                SELECT *
                FROM tasks
                WHERE status NOT IN ('finish','dnf')
                  AND deadline IS NOT NULL AND deadline != ''
                ORDER BY deadline ASC, id ASC
                """
            ).fetchall()
            return [self._row_to_task(r) for r in rows]
        finally:
            conn.close()

    def save_task(self, task: Task) -> None:
        """Write every mutable column of `task` in a single UPDATE."""
        conn = self._get_conn()
        try:
            conn.execute(
                """
                UPDATE tasks
                SET title = ?,
                    category = ?,
                    scoring_category = ?,
                    status = ?,
                    laps_total = ?,
                    laps_done = ?,
                    deadline = ?,
                    finished_at = ?,
                    points_base = ?,
                    points_bonus = ?,
                    points_penalty = ?,
                    points_total = ?
                WHERE id = ?
                """,
                (
                    task.title,
                    task.category.value,
                    task.scoring_category.value,
                    task.status.value,
                    int(task.laps_total),
                    int(task.laps_done),
                    task.deadline.isoformat() if task.deadline else None,
                    task.finished_at.isoformat() if task.finished_at else None,
                    int(task.points_base),
                    int(task.points_bonus),
                    int(task.points_penalty),
                    int(task.points_total),
                    int(task.id),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def delete_task(self, task_id: int) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()
