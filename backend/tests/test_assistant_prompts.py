"""Tests for assistant prompt rendering."""
from __future__ import annotations

from datetime import date

from app.services.assistant_context import UserDataSnapshot
from app.services.assistant_prompts import GOAL_COLUMNS, build_assistant_prompt, format_table


def test_format_table_escapes_cells_and_handles_empty_rows() -> None:
    table = format_table(GOAL_COLUMNS, [{"id": "g1", "title": "Run | swim", "status": "active"}])

    assert table.splitlines()[0] == "| ID | Název | Popis | Cílové datum | Status | Oblast ID |"
    assert "Run \\| swim" in table
    assert format_table(GOAL_COLUMNS, []) == "(none)"


def test_prompt_carries_date_data_and_pending_instructions() -> None:
    today = date(2026, 1, 5)
    snapshot = UserDataSnapshot(today=today, goals=[{"id": "g1", "title": "Learn Spanish"}])
    pending = [{"type": "step", "operation": "create", "data": {"title": "Zavolat zubaři"}}]

    prompt = build_assistant_prompt("udělej to v úterý", snapshot, today, pending)

    assert "Today is 2026-01-05 (Monday)." in prompt
    assert "| g1 | Learn Spanish |" in prompt
    assert "Pending instructions from the previous turn" in prompt
    assert "Zavolat zubaři" in prompt
    assert prompt.endswith("User request: udělej to v úterý")
