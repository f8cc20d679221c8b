# src/pitlane/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Scoring rules are derived from settings and injected, never hard-coded.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .schedule.schedule_client import DEFAULT_ENDPOINTS
from .tasks.task_models import DEFAULT_BASE_POINTS, Bucket, PointsRules

ENV_PREFIX = "PITLANE"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path

    # ---- Notifications ----
    notify_hour: int

    # ---- External schedule ----
    schedule_endpoints: list[str]
    schedule_timeout_seconds: float
    schedule_ttl_hours: float

    # ---- Scoring ----
    points_base: dict[Bucket, int]
    late_penalty_after_days: int
    late_penalty_points: int
    dnf_penalty_points: int

    @property
    def points_rules(self) -> PointsRules:
        return PointsRules(
            base=dict(self.points_base),
            late_penalty_after_days=self.late_penalty_after_days,
            late_penalty_points=self.late_penalty_points,
            dnf_penalty_points=self.dnf_penalty_points,
        ).normalized()

    @staticmethod
    def from_env() -> "Settings":
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/pitlane"))

        points_base = {
            b: _env_int(_k(f"POINTS_{b.name}"), DEFAULT_BASE_POINTS[b]) for b in Bucket
        }

        return Settings(
            app_name=_env(_k("APP_NAME"), "pitlane") or "pitlane",
            log_level=_env(_k("LOG_LEVEL"), "INFO"),
            console_enabled=_env_bool(_k("CONSOLE_ENABLED"), True),
            data_dir=data_dir,
            db_path=_env_path(_k("DB_PATH"), data_dir / "pitlane.sqlite3"),
            notify_hour=max(0, min(23, _env_int(_k("NOTIFY_HOUR"), 10))),
            schedule_endpoints=_env_list(_k("SCHEDULE_ENDPOINTS"), list(DEFAULT_ENDPOINTS)),
            schedule_timeout_seconds=max(0.5, _env_float(_k("SCHEDULE_TIMEOUT_SECONDS"), 10.0)),
            schedule_ttl_hours=max(0.0, _env_float(_k("SCHEDULE_TTL_HOURS"), 24.0)),
            points_base=points_base,
            late_penalty_after_days=max(0, _env_int(_k("LATE_PENALTY_AFTER_DAYS"), 3)),
            late_penalty_points=_env_int(_k("LATE_PENALTY_POINTS"), -5),
            dnf_penalty_points=_env_int(_k("DNF_PENALTY_POINTS"), -5),
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
