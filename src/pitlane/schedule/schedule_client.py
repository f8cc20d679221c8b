# src/pitlane/schedule/schedule_client.py

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

import httpx

from .schedule_models import ScheduleEntry, parse_races

logger = logging.getLogger(__name__)

DEFAULT_ENDPOINTS: tuple[str, ...] = (
    "https://api.jolpi.ca/ergast/f1",
    "https://ergast.com/api/f1",
)


class ScheduleClient:
    """
    Thin HTTP client over an Ergast-compatible race calendar API.

    One instance knows the whole priority-ordered endpoint list; callers
    iterate `endpoints` and call `fetch_next` / `fetch_season` per base URL.
    Each request is bounded by `timeout_seconds`.
    """

    def __init__(
        self,
        endpoints: Sequence[str] = DEFAULT_ENDPOINTS,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.endpoints = [e.rstrip("/") for e in endpoints if e.strip()]
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout_seconds),
            transport=transport,
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )

    def close(self) -> None:
        self._client.close()

    def _get_json(self, url: str) -> Any:
        resp = self._client.get(url)
        resp.raise_for_status()
        return resp.json()

    def fetch_next(self, base_url: str) -> list[ScheduleEntry]:
        return parse_races(self._get_json(f"{base_url}/current/next.json"))

    def fetch_season(self, base_url: str, season: int | str) -> list[ScheduleEntry]:
        return parse_races(self._get_json(f"{base_url}/{season}.json"))
