# src/pitlane/schedule/schedule_cache.py

from __future__ import annotations

"""
TTL-bounded cache over the race calendar feed.

Reads are lazy: a fresh entry is served without network access; a stale or
missing one triggers a walk over the endpoint list in priority order. The
first well-formed, non-empty answer wins and replaces the entry. If every
endpoint fails the old entry stays in place and ScheduleUnavailable is raised.

A per-key lock keeps concurrent readers of the same key down to one fetch.
"""

import logging
import threading
import time
from collections.abc import Callable

import httpx

from ..core.errors import InvalidInput, ScheduleUnavailable
from .schedule_client import ScheduleClient
from .schedule_models import CacheEntry, ScheduleEntry, ScheduleFormatError

logger = logging.getLogger(__name__)

NEXT_KEY = "next"
SEASON_MIN = 1950
SEASON_MAX = 2100


def season_key(season: int) -> str:
    return f"season:{season}"


def normalize_season(season: object) -> int:
    try:
        value = int(str(season).strip())
    except (TypeError, ValueError):
        raise InvalidInput(f"season must be a year, got {season!r}") from None
    if not SEASON_MIN <= value <= SEASON_MAX:
        raise InvalidInput(f"season out of range: {value}")
    return value


class ScheduleCache:
    def __init__(
        self,
        client: ScheduleClient,
        *,
        ttl_seconds: float = 24 * 3600,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    # ---- public API ----

    def get_next(self) -> ScheduleEntry:
        races = self._get(NEXT_KEY, self._client.fetch_next)
        return races[0]

    def get_schedule(self, season: object) -> list[ScheduleEntry]:
        year = normalize_season(season)
        return list(self._get(season_key(year), lambda base: self._client.fetch_season(base, year)))

    def peek_next(self) -> ScheduleEntry | None:
        """Last known next fixture, ignoring freshness."""
        entry = self._entries.get(NEXT_KEY)
        return entry.data[0] if entry is not None else None

    def peek_schedule(self, season: object) -> list[ScheduleEntry] | None:
        """Last known season schedule, ignoring freshness."""
        entry = self._entries.get(season_key(normalize_season(season)))
        return list(entry.data) if entry is not None else None

    def close(self) -> None:
        self._client.close()

    # ---- internals ----

    def _fresh(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.age(self._clock()) > self._ttl:
            return None
        return entry

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def _get(self, key: str, fetch: Callable[[str], list[ScheduleEntry]]) -> list[ScheduleEntry]:
        entry = self._fresh(key)
        if entry is not None:
            return entry.data

        with self._lock_for(key):
            # Another caller may have refreshed while we waited.
            entry = self._fresh(key)
            if entry is not None:
                return entry.data

            reasons: list[str] = []
            for base_url in self._client.endpoints:
                try:
                    data = fetch(base_url)
                except httpx.TimeoutException:
                    logger.warning("Schedule endpoint timed out key=%s url=%s", key, base_url)
                    reasons.append(f"{base_url}: timeout")
                    continue
                except (httpx.HTTPError, ScheduleFormatError, ValueError) as e:
                    logger.warning("Schedule endpoint failed key=%s url=%s: %s", key, base_url, e)
                    reasons.append(f"{base_url}: {e}")
                    continue

                with self._guard:
                    self._entries[key] = CacheEntry(fetched_at=self._clock(), data=data)
                logger.info("Schedule refreshed key=%s url=%s fixtures=%d", key, base_url, len(data))
                return data

        logger.error("Schedule unavailable key=%s (%d endpoints failed)", key, len(reasons))
        raise ScheduleUnavailable(key, reasons)
