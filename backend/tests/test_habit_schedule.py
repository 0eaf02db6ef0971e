"""Tests for the habit schedule predicate."""
from __future__ import annotations

from datetime import date, timedelta

import pytest

from app.services.habit_schedule import is_scheduled_for_day, scheduled_subset

MONDAY = date(2026, 1, 5)


def _year_from(start: date):
    return [start + timedelta(days=offset) for offset in range(365)]


def test_daily_habit_is_scheduled_every_day() -> None:
    habit = {"frequency": "daily"}
    assert all(is_scheduled_for_day(habit, day) for day in _year_from(MONDAY))


def test_always_show_wins_regardless_of_frequency() -> None:
    habit = {"frequency": "weekly", "selected_days": [], "always_show": True}
    assert all(is_scheduled_for_day(habit, day) for day in _year_from(MONDAY))


def test_weekly_monday_habit_only_on_mondays() -> None:
    habit = {"frequency": "weekly", "selected_days": ["monday"]}
    for day in _year_from(MONDAY):
        assert is_scheduled_for_day(habit, day) is (day.weekday() == 0)


@pytest.mark.parametrize(
    "selected_days",
    [
        ["Pondělí"],
        ["MONDAY", "friday"],
        '["monday", "friday"]',
        "monday, friday",
        '"pondělí"',
    ],
)
def test_selected_days_accepts_lists_json_and_csv(selected_days) -> None:
    habit = {"frequency": "custom", "selected_days": selected_days}
    assert is_scheduled_for_day(habit, MONDAY) is True
    assert is_scheduled_for_day(habit, MONDAY + timedelta(days=1)) is False


def test_weekly_without_days_is_not_scheduled() -> None:
    assert is_scheduled_for_day({"frequency": "weekly", "selected_days": None}, MONDAY) is False


def test_specific_dates_fallback() -> None:
    habit = {"frequency": "monthly", "selected_dates": ["2026-01-05", "2026-02-01"]}
    assert is_scheduled_for_day(habit, MONDAY) is True
    assert is_scheduled_for_day(habit, MONDAY + timedelta(days=1)) is False

    legacy = {"frequency": "custom", "dates": ["2026-01-05T00:00:00"]}
    assert is_scheduled_for_day(legacy, MONDAY) is True


def test_scheduled_subset_keeps_order() -> None:
    habits = [
        {"id": "h1", "frequency": "daily"},
        {"id": "h2", "frequency": "weekly", "selected_days": ["friday"]},
        {"id": "h3", "frequency": "weekly", "selected_days": ["monday"]},
    ]
    assert [habit["id"] for habit in scheduled_subset(habits, MONDAY)] == ["h1", "h3"]
