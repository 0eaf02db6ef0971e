"""Decide whether a recurring habit is due on a given day.

Shared by the preview and the execution paths so that the number of
"scheduled" habits shown to the user always equals the set that gets completed.
"""
from __future__ import annotations

import json
from datetime import date
from typing import Any, List, Mapping, Sequence

EN_WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
CS_WEEKDAYS = ["pondělí", "úterý", "středa", "čtvrtek", "pátek", "sobota", "neděle"]

WEEKDAY_FREQUENCIES = {"weekly", "custom"}


def is_scheduled_for_day(habit: Mapping[str, Any], day: date) -> bool:
    """Return True when the habit should be done on ``day``."""
    frequency = habit.get("frequency")
    if frequency == "daily":
        return True

    if habit.get("always_show"):
        return True

    if frequency in WEEKDAY_FREQUENCIES:
        selected = {value.lower() for value in _parse_selected_days(habit.get("selected_days"))}
        weekday = day.weekday()
        if EN_WEEKDAYS[weekday] in selected or CS_WEEKDAYS[weekday] in selected:
            return True

    specific_dates = habit.get("selected_dates") or habit.get("dates")
    if isinstance(specific_dates, (list, tuple)):
        return day.isoformat() in {str(value)[:10] for value in specific_dates}
    return False


def scheduled_subset(habits: Sequence[Mapping[str, Any]], day: date) -> List[Mapping[str, Any]]:
    """Habits from ``habits`` that are due on ``day``, order preserved."""
    return [habit for habit in habits if is_scheduled_for_day(habit, day)]


def _parse_selected_days(raw: Any) -> List[str]:
    if raw is None:
        return []
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except ValueError:
            decoded = raw
        if isinstance(decoded, str):
            return [part.strip() for part in decoded.split(",") if part.strip()]
        raw = decoded
    if isinstance(raw, (list, tuple)):
        return [str(value).strip() for value in raw]
    return []
