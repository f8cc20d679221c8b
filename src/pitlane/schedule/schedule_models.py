# src/pitlane/schedule/schedule_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ScheduleFormatError(ValueError):
    """Upstream answered, but not with a usable fixture list."""


@dataclass(frozen=True, slots=True)
class ScheduleEntry:
    """One race fixture, normalized from the upstream payload."""

    round: int
    name: str
    venue: str
    locality: str
    country: str
    date: date
    starts_at: datetime

    @property
    def location(self) -> str:
        return ", ".join(p for p in (self.locality, self.country) if p)

    def to_dict(self) -> dict[str, object]:
        return {
            "round": self.round,
            "name": self.name,
            "venue": self.venue,
            "locality": self.locality,
            "country": self.country,
            "location": self.location,
            "date": self.date.isoformat(),
            "startsAt": self.starts_at.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class CacheEntry(Generic[T]):
    fetched_at: float
    data: T

    def age(self, now: float) -> float:
        return now - self.fetched_at


def _text(value: Any, default: str = "") -> str:
    return str(value).strip() if value not in (None, "") else default


def parse_race(race: Any) -> ScheduleEntry:
    if not isinstance(race, dict):
        raise ScheduleFormatError("race entry is not an object")

    circuit = race.get("Circuit")
    if not isinstance(circuit, dict):
        circuit = {}
    location = circuit.get("Location")
    if not isinstance(location, dict):
        location = {}

    raw_date = _text(race.get("date"))
    try:
        day = date.fromisoformat(raw_date)
    except ValueError:
        raise ScheduleFormatError(f"bad race date: {raw_date!r}") from None

    raw_time = _text(race.get("time"), "00:00:00Z")
    try:
        starts_at = datetime.fromisoformat(f"{raw_date}T{raw_time}".replace("Z", "+00:00"))
    except ValueError:
        raise ScheduleFormatError(f"bad race time: {raw_time!r}") from None

    try:
        round_no = int(race.get("round") or 0)
    except (TypeError, ValueError):
        raise ScheduleFormatError(f"bad round: {race.get('round')!r}") from None

    return ScheduleEntry(
        round=round_no,
        name=_text(race.get("raceName"), "Grand Prix"),
        venue=_text(circuit.get("circuitName")),
        locality=_text(location.get("locality")),
        country=_text(location.get("country")),
        date=day,
        starts_at=starts_at,
    )


def parse_races(payload: Any) -> list[ScheduleEntry]:
    """
    Extract fixtures from an `MRData.RaceTable.Races` payload.

    An empty race list counts as a malformed answer.
    """
    try:
        races = payload["MRData"]["RaceTable"]["Races"]
    except (KeyError, TypeError):
        raise ScheduleFormatError("missing MRData.RaceTable.Races") from None
    if not isinstance(races, list) or not races:
        raise ScheduleFormatError("no races in response")
    return [parse_race(r) for r in races]
