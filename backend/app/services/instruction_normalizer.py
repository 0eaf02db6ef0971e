"""Repair and deduplicate raw instruction payloads returned by the oracle."""
from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# Localized labels (as they appear in the data tables we send) and snake_case
# column names that the model sometimes echoes back instead of canonical keys.
FIELD_ALIASES: Dict[str, str] = {
    "Cíl ID": "goalId",
    "Oblast ID": "areaId",
    "Popis": "description",
    "Datum": "date",
    "Cílové datum": "targetDate",
    "Frekvence": "frequency",
    "Jednotka": "unit",
    "Typ": "type",
    "Cílová hodnota": "targetValue",
    "Aktuální hodnota": "currentValue",
    "Počáteční hodnota": "initialValue",
    "Barva": "color",
    "Ikona": "icon",
    "Důležité": "isImportant",
    "Urgentní": "isUrgent",
    "Status": "status",
    "goal_id": "goalId",
    "area_id": "areaId",
    "target_date": "targetDate",
    "is_important": "isImportant",
    "is_urgent": "isUrgent",
    "target_value": "targetValue",
    "current_value": "currentValue",
    "initial_value": "initialValue",
    "selected_days": "selectedDays",
    "always_show": "alwaysShow",
}

NAME_LABEL = "Název"
NAMED_TYPES = {"habit", "area", "metric"}

IDENTITY_FIELDS = {"step": "title", "goal": "title", "habit": "name", "area": "name", "metric": "name"}


def normalize_data(data: Any, entity_type: Optional[str] = None) -> Any:
    """Return a copy of ``data`` with known aliases renamed to canonical keys."""
    if not isinstance(data, Mapping):
        return data

    normalized: Dict[str, Any] = dict(data)
    for alias, canonical in FIELD_ALIASES.items():
        if alias in normalized:
            normalized[canonical] = normalized.pop(alias)
    if NAME_LABEL in normalized:
        canonical = "name" if entity_type in NAMED_TYPES else "title"
        normalized[canonical] = normalized.pop(NAME_LABEL)
    return normalized


def normalize_instruction(instruction: Any) -> Any:
    """Return a copy of one instruction with its ``data`` bag repaired."""
    if not isinstance(instruction, Mapping):
        return instruction
    normalized = dict(instruction)
    if isinstance(normalized.get("data"), Mapping):
        normalized["data"] = normalize_data(normalized["data"], normalized.get("type"))
    return normalized


def deduplicate_instructions(instructions: List[Any]) -> List[Any]:
    """Drop instructions that repeat an earlier one; the first occurrence wins."""
    unique: List[Any] = []
    for candidate in instructions:
        if any(_is_duplicate(kept, candidate) for kept in unique):
            continue
        unique.append(candidate)

    dropped = len(instructions) - len(unique)
    if dropped:
        logger.info("Filtered %s duplicate assistant instructions", dropped)
    return unique


def normalize_instructions(instructions: List[Any]) -> List[Any]:
    return deduplicate_instructions([normalize_instruction(item) for item in instructions])


def _is_duplicate(first: Any, second: Any) -> bool:
    if not isinstance(first, Mapping) or not isinstance(second, Mapping):
        return first == second
    if _kind(first) != _kind(second):
        return False

    entity_type, operation = _kind(first)
    if operation == "create":
        key = IDENTITY_FIELDS.get(entity_type or "", "id")
        return _data_value(first, key) == _data_value(second, key)
    if operation == "complete":
        return first.get("filter") == second.get("filter") and first.get("date") == second.get("date")
    return first == second


def _kind(instruction: Mapping[str, Any]) -> Tuple[Any, Any]:
    return instruction.get("type"), instruction.get("operation")


def _data_value(instruction: Mapping[str, Any], key: str) -> Any:
    data = instruction.get("data")
    if not isinstance(data, Mapping):
        return None
    return data.get(key)
