"""Typed view over the loosely-structured instructions produced by the oracle.

Instructions travel over the wire as plain JSON objects (the client keeps them
between the preview and the confirm call). Consumers parse them into
``Instruction`` and dispatch on ``Instruction.key``, i.e. the
``(type, operation)`` pair.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

ENTITY_TYPES = ("goal", "step", "habit", "area", "metric")
OPERATIONS = ("create", "update", "complete", "delete")
FILTER_KINDS = ("all", "ids", "names")


@dataclass(frozen=True)
class EntitySpec:
    type: str
    collection: str
    name_key: str
    identity_field: str
    update_fields: Mapping[str, str]


ENTITY_SPECS: Dict[str, EntitySpec] = {
    "goal": EntitySpec(
        type="goal",
        collection="goals",
        name_key="title",
        identity_field="title",
        update_fields={
            "title": "title",
            "description": "description",
            "targetDate": "target_date",
            "status": "status",
            "priority": "priority",
            "areaId": "area_id",
            "icon": "icon",
        },
    ),
    "step": EntitySpec(
        type="step",
        collection="steps",
        name_key="title",
        identity_field="title",
        update_fields={
            "title": "title",
            "description": "description",
            "date": "date",
            "goalId": "goal_id",
            "areaId": "area_id",
            "isImportant": "is_important",
            "isUrgent": "is_urgent",
            "completed": "completed",
        },
    ),
    "habit": EntitySpec(
        type="habit",
        collection="habits",
        name_key="name",
        identity_field="name",
        update_fields={
            "name": "name",
            "description": "description",
            "frequency": "frequency",
            "selectedDays": "selected_days",
            "alwaysShow": "always_show",
            "areaId": "area_id",
            "icon": "icon",
        },
    ),
    "area": EntitySpec(
        type="area",
        collection="areas",
        name_key="name",
        identity_field="name",
        update_fields={
            "name": "name",
            "description": "description",
            "color": "color",
            "icon": "icon",
        },
    ),
    "metric": EntitySpec(
        type="metric",
        collection="metrics",
        name_key="name",
        identity_field="name",
        update_fields={
            "name": "name",
            "description": "description",
            "type": "type",
            "unit": "unit",
            "targetValue": "target_value",
            "currentValue": "current_value",
            "initialValue": "initial_value",
            "goalId": "goal_id",
        },
    ),
}


@dataclass
class InstructionFilter:
    kind: str
    values: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, raw: Any) -> Optional["InstructionFilter"]:
        if not isinstance(raw, Mapping):
            return None
        kind = raw.get("type") or raw.get("kind")
        values = raw.get("values") or []
        if not isinstance(values, (list, tuple)):
            values = [values]
        return cls(kind=str(kind) if kind else "", values=[str(value) for value in values])

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.kind, "values": list(self.values)}

    def select(self, entities: Sequence[Mapping[str, Any]], name_key: str) -> List[Mapping[str, Any]]:
        """Return every entity the filter targets, in snapshot order.

        Names are compared exactly after trimming and case folding; an unknown
        filter kind selects nothing.
        """
        if self.kind == "all":
            return list(entities)
        if self.kind == "ids":
            wanted = {value.strip() for value in self.values}
            return [entity for entity in entities if str(entity.get("id")) in wanted]
        if self.kind == "names":
            wanted = {value.strip().casefold() for value in self.values}
            return [
                entity
                for entity in entities
                if str(entity.get(name_key) or "").strip().casefold() in wanted
            ]
        return []

    def select_one(self, entities: Sequence[Mapping[str, Any]], name_key: str) -> Optional[Mapping[str, Any]]:
        """Resolve a single target by id or name; ``all`` never resolves one."""
        if self.kind not in ("ids", "names") or not self.values:
            return None
        matches = self.select(entities, name_key)
        return matches[0] if matches else None


@dataclass
class Instruction:
    index: int
    type: Optional[str]
    operation: Optional[str]
    filter: Optional[InstructionFilter] = None
    data: Dict[str, Any] = field(default_factory=dict)
    date: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Any, index: int) -> "Instruction":
        if not isinstance(payload, Mapping):
            return cls(index=index, type=None, operation=None)
        data = payload.get("data")
        raw_date = payload.get("date")
        return cls(
            index=index,
            type=_clean_str(payload.get("type")),
            operation=_clean_str(payload.get("operation")),
            filter=InstructionFilter.from_payload(payload.get("filter")),
            data=dict(data) if isinstance(data, Mapping) else {},
            date=str(raw_date) if raw_date else None,
            raw=dict(payload),
        )

    @property
    def key(self) -> Tuple[Optional[str], Optional[str]]:
        return self.type, self.operation

    @property
    def is_valid(self) -> bool:
        return bool(self.type and self.operation)

    @property
    def spec(self) -> Optional[EntitySpec]:
        return ENTITY_SPECS.get(self.type or "")

    def select_targets(self, entities: Sequence[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
        """Entities addressed by the filter; no filter addresses nothing."""
        if self.filter is None or self.spec is None:
            return []
        return self.filter.select(entities, self.spec.name_key)

    def select_target(self, entities: Sequence[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
        if self.filter is None or self.spec is None:
            return None
        return self.filter.select_one(entities, self.spec.name_key)

    def identity_value(self) -> Optional[str]:
        spec = self.spec
        if not spec:
            return None
        value = self.data.get(spec.identity_field)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def completion_day(self, today: date) -> date:
        """Day a ``complete`` instruction applies to; raises ValueError on a bad date."""
        return parse_day(self.date) if self.date else today


def parse_instructions(payloads: Sequence[Any]) -> List[Instruction]:
    return [Instruction.from_payload(payload, index) for index, payload in enumerate(payloads)]


def parse_day(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _clean_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip().lower()
    return text or None
