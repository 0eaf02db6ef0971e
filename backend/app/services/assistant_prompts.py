"""Prompt construction for the assistant oracle."""
from __future__ import annotations

import json
from datetime import date
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

from app.services.assistant_context import UserDataSnapshot

Column = Tuple[str, Callable[[Mapping[str, Any]], Any]]

# Header labels match the aliases repaired by the instruction normalizer.
AREA_COLUMNS: List[Column] = [
    ("ID", lambda row: row.get("id")),
    ("Název", lambda row: row.get("name")),
    ("Popis", lambda row: row.get("description")),
    ("Barva", lambda row: row.get("color")),
]
GOAL_COLUMNS: List[Column] = [
    ("ID", lambda row: row.get("id")),
    ("Název", lambda row: row.get("title")),
    ("Popis", lambda row: row.get("description")),
    ("Cílové datum", lambda row: row.get("target_date")),
    ("Status", lambda row: row.get("status")),
    ("Oblast ID", lambda row: row.get("area_id")),
]
METRIC_COLUMNS: List[Column] = [
    ("ID", lambda row: row.get("id")),
    ("Cíl ID", lambda row: row.get("goal_id")),
    ("Název", lambda row: row.get("name")),
    ("Typ", lambda row: row.get("type")),
    ("Jednotka", lambda row: row.get("unit")),
    ("Aktuální hodnota", lambda row: row.get("current_value")),
    ("Cílová hodnota", lambda row: row.get("target_value")),
]
HABIT_COLUMNS: List[Column] = [
    ("ID", lambda row: row.get("id")),
    ("Název", lambda row: row.get("name")),
    ("Frekvence", lambda row: row.get("frequency")),
    ("Dny", lambda row: row.get("selected_days")),
    ("Oblast ID", lambda row: row.get("area_id")),
]
STEP_COLUMNS: List[Column] = [
    ("ID", lambda row: row.get("id")),
    ("Název", lambda row: row.get("title")),
    ("Datum", lambda row: row.get("date")),
    ("Cíl ID", lambda row: row.get("goal_id")),
    ("Oblast ID", lambda row: row.get("area_id")),
    ("Důležité", lambda row: row.get("is_important")),
    ("Urgentní", lambda row: row.get("is_urgent")),
    ("Hotovo", lambda row: row.get("completed")),
]

INSTRUCTION_RULES = """\
Respond with ONE JSON object: {"message": string, "instructions": [Instruction, ...]}.
Instruction fields:
- "type": one of "goal", "step", "habit", "area", "metric"
- "operation": one of "create", "update", "complete"
- "filter" (update/complete only): {"type": "all"} or {"type": "ids", "values": [...]} or {"type": "names", "values": [...]}
- "data" (create/update only): canonical camelCase keys. goal: title, description, targetDate, areaId, status, priority.
  step: title, description, date, goalId, areaId, isImportant, isUrgent. habit: name, description, frequency,
  selectedDays, areaId. area: name, description, color. metric: name, goalId, type, unit, targetValue, currentValue.
- "date" (complete only): ISO date, defaults to today.
Rules:
- Use the IDs from the tables when the user refers to an existing entity; never invent IDs.
- A metric for a goal created in the same answer leaves goalId empty; it is bound automatically.
- Dates are ISO formatted (YYYY-MM-DD). Write "message" in the user's language.
- Do not repeat the same instruction twice. Return an empty list when nothing should change."""


def build_assistant_prompt(
    query: str,
    user_data: UserDataSnapshot,
    today: date,
    context_instructions: Optional[Sequence[Any]] = None,
) -> str:
    sections = [
        "You manage a personal goal and habit tracker. Translate the user's request into instructions.",
        f"Today is {today.isoformat()} ({today.strftime('%A')}).",
        "## Areas\n" + format_table(AREA_COLUMNS, user_data.areas),
        "## Goals\n" + format_table(GOAL_COLUMNS, user_data.goals),
        "## Metrics\n" + format_table(METRIC_COLUMNS, user_data.metrics),
        "## Habits\n" + format_table(HABIT_COLUMNS, user_data.habits),
        "## Steps (today and unfinished)\n" + format_table(STEP_COLUMNS, user_data.steps),
    ]
    if context_instructions:
        sections.append(
            "## Pending instructions from the previous turn\n"
            "The user has not confirmed these yet. Amend or replace them when the new request refers to them.\n"
            + json.dumps(list(context_instructions), ensure_ascii=False, indent=2, default=str)
        )
    sections.append(INSTRUCTION_RULES)
    sections.append(f"User request: {query}")
    return "\n\n".join(sections)


def format_table(columns: Sequence[Column], rows: Sequence[Mapping[str, Any]]) -> str:
    """Render ``rows`` as a markdown table with the given columns."""
    if not rows:
        return "(none)"
    header = "| " + " | ".join(label for label, _ in columns) + " |"
    divider = "|" + "|".join("---" for _ in columns) + "|"
    lines = [header, divider]
    for row in rows:
        lines.append("| " + " | ".join(_cell(getter(row)) for _, getter in columns) + " |")
    return "\n".join(lines)


def _cell(value: Any) -> str:
    if value is None or value == "":
        return "-"
    if isinstance(value, bool):
        return "ano" if value else "ne"
    if isinstance(value, (list, tuple)):
        value = ", ".join(str(item) for item in value)
    return str(value).replace("|", "\\|").replace("\n", " ")
