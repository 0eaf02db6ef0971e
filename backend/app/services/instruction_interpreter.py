"""Dry-run preview of an instruction batch. Reads the snapshot, never writes."""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple

from app.api.schemas.assistant import Preview, PreviewItem
from app.services.assistant_context import AssistantContext, UserDataSnapshot
from app.services.habit_schedule import scheduled_subset
from app.services.instruction_model import ENTITY_TYPES, EntitySpec, Instruction

SUMMARY_SEPARATOR = ", "

PreviewHandler = Callable[[Instruction, AssistantContext, UserDataSnapshot, "BatchFacts"], PreviewItem]


class BatchFacts:
    """Batch-level facts individual handlers need to look at."""

    def __init__(self, instructions: Sequence[Instruction]) -> None:
        self.has_goal_create = any(item.key == ("goal", "create") for item in instructions)


def interpret_instructions(
    instructions: Sequence[Instruction],
    context: AssistantContext,
    user_data: UserDataSnapshot,
) -> Preview:
    facts = BatchFacts(instructions)
    items = [_interpret_one(instruction, context, user_data, facts) for instruction in instructions]
    summary = SUMMARY_SEPARATOR.join(item.summary for item in items if item.summary)
    return Preview(items=items, summary=summary)


def _interpret_one(
    instruction: Instruction,
    context: AssistantContext,
    user_data: UserDataSnapshot,
    facts: BatchFacts,
) -> PreviewItem:
    messages = context.messages
    if not instruction.is_valid:
        return _error_item(instruction, context, messages.get("error.invalid_instruction"))

    handler = PREVIEW_HANDLERS.get(instruction.key)
    if handler is None:
        return _error_item(
            instruction,
            context,
            messages.get("error.unsupported", type=instruction.type, operation=instruction.operation),
        )
    return handler(instruction, context, user_data, facts)


def _preview_habit_complete(
    instruction: Instruction, context: AssistantContext, user_data: UserDataSnapshot, facts: BatchFacts
) -> PreviewItem:
    messages = context.messages
    try:
        day = instruction.completion_day(context.today)
    except ValueError:
        return _error_item(instruction, context, messages.get("error.invalid_date", value=instruction.date))

    matched = instruction.select_targets(user_data.habits)
    scheduled = scheduled_subset(matched, day)
    base = _base_fields(instruction)

    if len(scheduled) != len(matched):
        return PreviewItem(
            **base,
            date=day.isoformat(),
            summary=messages.get(
                "preview.habit_complete_choice", scheduled=len(scheduled), total=len(matched)
            ),
            all_items=[_brief(habit, "name") for habit in matched],
            scheduled_items=[_brief(habit, "name") for habit in scheduled],
            all_count=len(matched),
            scheduled_count=len(scheduled),
            requires_choice=True,
        )

    return PreviewItem(
        **base,
        date=day.isoformat(),
        summary=messages.get(
            "preview.habit_complete", count=len(matched), noun=messages.noun("habit", len(matched))
        ),
        items=[_brief(habit, "name") for habit in matched],
        count=len(matched),
    )


def _preview_step_complete(
    instruction: Instruction, context: AssistantContext, user_data: UserDataSnapshot, facts: BatchFacts
) -> PreviewItem:
    messages = context.messages
    matched = instruction.select_targets(user_data.steps)
    return PreviewItem(
        **_base_fields(instruction),
        summary=messages.get("preview.step_complete", count=len(matched), noun=messages.noun("step", len(matched))),
        items=[_brief(step, "title") for step in matched],
        count=len(matched),
    )


def _preview_create(
    instruction: Instruction, context: AssistantContext, user_data: UserDataSnapshot, facts: BatchFacts
) -> PreviewItem:
    messages = context.messages
    name = instruction.identity_value()
    if name is None:
        return _error_item(instruction, context, messages.missing_identity(instruction.type))

    if instruction.type == "metric" and not instruction.data.get("goalId") and not facts.has_goal_create:
        return _error_item(instruction, context, messages.get("error.metric_without_goal"))

    return PreviewItem(
        **_base_fields(instruction),
        summary=messages.get("preview.create", entity=messages.entity(instruction.type), name=name),
        target_name=name,
        data=dict(instruction.data),
    )


def _preview_update(
    instruction: Instruction, context: AssistantContext, user_data: UserDataSnapshot, facts: BatchFacts
) -> PreviewItem:
    messages = context.messages
    spec = instruction.spec
    target = instruction.select_target(user_data.collection(spec.collection))
    if target is None:
        return _error_item(instruction, context, messages.get("error.not_found", entity=messages.entity(instruction.type)))

    diff = compute_diff(spec, target, instruction.data)
    phrases = describe_changes(diff, context, user_data)
    name = str(target.get(spec.name_key) or "")
    entity = messages.entity(instruction.type)
    if phrases:
        summary = messages.get("preview.update_changes", entity=entity, name=name, changes=", ".join(phrases))
    else:
        summary = messages.get("preview.update", entity=entity, name=name)

    return PreviewItem(
        **_base_fields(instruction),
        summary=summary,
        target_id=str(target.get("id")),
        target_name=name,
        current_data={key: change["from"] for key, change in diff.items()},
        new_data={key: instruction.data[key] for key in spec.update_fields if key in instruction.data},
        changes=[{"field": key, **change} for key, change in diff.items()],
    )


def compute_diff(spec: EntitySpec, current: Mapping[str, Any], data: Mapping[str, Any]) -> Dict[str, Dict[str, Any]]:
    """Canonical keys in ``data`` whose value differs from the entity's current one."""
    diff: Dict[str, Dict[str, Any]] = {}
    for key, column in spec.update_fields.items():
        if key not in data:
            continue
        old_value = current.get(column)
        if _comparable(old_value) != _comparable(data[key]):
            diff[key] = {"from": old_value, "to": data[key]}
    return diff


def describe_changes(
    diff: Mapping[str, Mapping[str, Any]],
    context: AssistantContext,
    user_data: UserDataSnapshot,
    *,
    past: bool = False,
) -> List[str]:
    messages = context.messages
    phrases: List[str] = []
    for key, change in diff.items():
        value = change["to"]
        if key == "goalId":
            goal = user_data.find("goals", value)
            phrases.append(messages.change("assign_goal", past=past, value=goal["title"] if goal else value))
        elif key == "areaId":
            area = user_data.find("areas", value)
            phrases.append(messages.change("assign_area", past=past, value=area["name"] if area else value))
        elif key in ("title", "name"):
            phrases.append(messages.change("rename", past=past, value=value))
        elif key in ("date", "targetDate"):
            phrases.append(messages.change("change_date", past=past, value=value))
        elif key == "description":
            phrases.append(messages.change("change_description", past=past))
        else:
            phrases.append(messages.change("set_field", past=past, field=key, value=value))
    return phrases


def _comparable(value: Any) -> Any:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return float(text)
        except ValueError:
            return text
    return value


def _error_item(instruction: Instruction, context: AssistantContext, error: str) -> PreviewItem:
    return PreviewItem(
        **_base_fields(instruction),
        summary=context.messages.get("preview.error", error=error),
        error=error,
        data=dict(instruction.data) or None,
    )


def _base_fields(instruction: Instruction) -> Dict[str, Any]:
    return {"index": instruction.index, "type": instruction.type, "operation": instruction.operation}


def _brief(entity: Mapping[str, Any], name_key: str) -> Dict[str, Any]:
    return {"id": entity.get("id"), name_key: entity.get(name_key)}


def _build_handlers() -> Dict[Tuple[str, str], PreviewHandler]:
    handlers: Dict[Tuple[str, str], PreviewHandler] = {
        ("habit", "complete"): _preview_habit_complete,
        ("step", "complete"): _preview_step_complete,
    }
    for entity_type in ENTITY_TYPES:
        handlers[(entity_type, "create")] = _preview_create
        handlers[(entity_type, "update")] = _preview_update
    return handlers


PREVIEW_HANDLERS: Dict[Tuple[str, str], PreviewHandler] = _build_handlers()
