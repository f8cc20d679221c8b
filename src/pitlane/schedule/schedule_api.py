# src/pitlane/schedule/schedule_api.py

from __future__ import annotations

from ..core.state import AppState


def get_next_fixture(state: AppState) -> dict[str, object]:
    return state.schedule.get_next().to_dict()


def get_schedule(state: AppState, season: object) -> list[dict[str, object]]:
    return [e.to_dict() for e in state.schedule.get_schedule(season)]
