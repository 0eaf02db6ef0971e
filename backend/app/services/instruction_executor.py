"""Apply a confirmed instruction batch through the assistant store.

Instructions run one after another, each inside its own failure boundary; the
batch is not transactional and partial application is reported as such.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.api.schemas.assistant import CHOICE_ALL, CHOICE_SCHEDULED, ExecutionResult
from app.services import assistant_store
from app.services.assistant_context import AssistantContext, UserDataSnapshot
from app.services.habit_schedule import scheduled_subset
from app.services.instruction_interpreter import compute_diff, describe_changes
from app.services.instruction_model import ENTITY_TYPES, Instruction

logger = logging.getLogger(__name__)

# Resolved by name at call time so the store can be swapped in tests.
UPDATERS = {
    "goal": ("update_goal_fields", assistant_store.serialize_goal),
    "step": ("update_daily_step_fields", assistant_store.serialize_step),
    "habit": ("update_habit_fields", assistant_store.serialize_habit),
    "area": ("update_area_fields", assistant_store.serialize_area),
    "metric": ("update_goal_metric_fields", assistant_store.serialize_metric),
}


@dataclass
class ExecutionReport:
    results: List[ExecutionResult]
    success: bool
    message: str
    succeeded: int
    failed: int


def execute_instructions(
    db: Session,
    instructions: Sequence[Instruction],
    context: AssistantContext,
    user_data: UserDataSnapshot,
    user_choices: Optional[Mapping[int, str]] = None,
) -> ExecutionReport:
    executor = InstructionExecutor(db, context, user_data, user_choices or {})
    results = executor.run(instructions)
    return summarize_results(results, context)


def summarize_results(results: Sequence[ExecutionResult], context: AssistantContext) -> ExecutionReport:
    messages = context.messages
    succeeded = sum(1 for result in results if result.success)
    failed = len(results) - succeeded

    if succeeded and not failed:
        message = messages.get("summary.all_succeeded", count=succeeded, noun=messages.noun("action", succeeded))
    elif succeeded:
        message = messages.get(
            "summary.mixed",
            succeeded=succeeded,
            succeeded_noun=messages.noun("action", succeeded),
            failed=failed,
            failed_noun=messages.noun("action", failed),
        )
    else:
        message = messages.get("summary.all_failed")

    return ExecutionReport(
        results=list(results),
        success=succeeded > 0,
        message=message,
        succeeded=succeeded,
        failed=failed,
    )


class InstructionExecutor:
    def __init__(
        self,
        db: Session,
        context: AssistantContext,
        user_data: UserDataSnapshot,
        user_choices: Mapping[int, str],
    ) -> None:
        self.db = db
        self.context = context
        self.user_data = user_data
        self.user_choices = user_choices
        self.messages = context.messages

    def run(self, instructions: Sequence[Instruction]) -> List[ExecutionResult]:
        anchor_index, dependents = find_goal_bound_metrics(instructions)
        deferred = {metric.index for metric in dependents}

        results: List[ExecutionResult] = []
        for instruction in instructions:
            if instruction.index in deferred:
                continue
            result = self.execute_one(instruction)
            results.append(result)
            if instruction.index == anchor_index:
                results.extend(self._run_bound_metrics(result, dependents))
        return results

    def execute_one(self, instruction: Instruction) -> ExecutionResult:
        if not instruction.is_valid:
            return self._failure(instruction, self.messages.get("error.invalid_instruction"))

        handler = EXECUTION_HANDLERS.get(instruction.key)
        if handler is None:
            return self._failure(
                instruction,
                self.messages.get("error.unsupported", type=instruction.type, operation=instruction.operation),
            )

        try:
            return handler(self, instruction)
        except Exception as exc:
            self.db.rollback()
            logger.exception(
                "Assistant instruction %s (%s/%s) failed: %s",
                instruction.index,
                instruction.type,
                instruction.operation,
                instruction.raw,
            )
            return self._failure(instruction, self.messages.get("error.execution", error=str(exc)), error=str(exc))

    # --- handlers -------------------------------------------------------------

    def complete_habits(self, instruction: Instruction) -> ExecutionResult:
        try:
            day = instruction.completion_day(self.context.today)
        except ValueError:
            return self._failure(instruction, self.messages.get("error.invalid_date", value=instruction.date))

        # Re-derived from the live snapshot; the preview may be stale by now.
        matched = instruction.select_targets(self.user_data.habits)
        scheduled = scheduled_subset(matched, day)
        requires_choice = len(scheduled) != len(matched)
        choice = self.user_choices.get(instruction.index)
        if choice == CHOICE_SCHEDULED:
            targets, applied_choice = scheduled, CHOICE_SCHEDULED
        else:
            targets, applied_choice = matched, CHOICE_ALL
        defaulted = requires_choice and choice is None

        completed: List[Dict[str, Any]] = []
        failed: List[Dict[str, Any]] = []
        for habit in targets:
            entry = {"id": habit.get("id"), "name": habit.get("name")}
            try:
                assistant_store.toggle_habit_completion(
                    self.db, self.context.user_id, habit["id"], day, completed=True
                )
            except Exception as exc:
                self.db.rollback()
                logger.warning("Failed to complete habit %s for %s: %s", habit.get("id"), day, exc)
                failed.append({**entry, "error": str(exc)})
                continue
            completed.append(entry)

        message = self.messages.get(
            "result.habit_complete", count=len(completed), noun=self.messages.noun("habit", len(completed))
        )
        if failed:
            message += self.messages.get("result.habit_complete_failed", count=len(failed))
        if defaulted:
            message += self.messages.get("result.choice_defaulted")

        data: Dict[str, Any] = {
            "date": day.isoformat(),
            "choice": applied_choice,
            "completed": completed,
            "failed": failed,
        }
        if defaulted:
            data["choiceDefaulted"] = True

        success = not (targets and not completed)
        return self._result(instruction, success, message, data=data, error=None if success else failed[0]["error"])

    def complete_steps(self, instruction: Instruction) -> ExecutionResult:
        matched = instruction.select_targets(self.user_data.steps)
        completed: List[Dict[str, Any]] = []
        failed: List[Dict[str, Any]] = []
        for step in matched:
            entry = {"id": step.get("id"), "title": step.get("title")}
            try:
                updated = assistant_store.update_daily_step_fields(
                    self.db, step["id"], self.context.user_id, {"completed": True}
                )
            except Exception as exc:
                self.db.rollback()
                logger.warning("Failed to complete step %s: %s", step.get("id"), exc)
                failed.append({**entry, "error": str(exc)})
                continue
            (completed if updated is not None else failed).append(entry)

        success = not (matched and not completed)
        message = self.messages.get(
            "result.step_complete", count=len(completed), noun=self.messages.noun("step", len(completed))
        )
        return self._result(instruction, success, message, data={"completed": completed, "failed": failed})

    def create_entity(self, instruction: Instruction) -> ExecutionResult:
        name = instruction.identity_value()
        if name is None:
            return self._failure(instruction, self.messages.missing_identity(instruction.type))

        creator = CREATORS[instruction.type]
        data = instruction.data
        if instruction.type == "metric" and not data.get("goalId"):
            return self._failure(instruction, self.messages.get("error.metric_without_goal"))

        payload = creator(self, name, data)
        message = self.messages.get("result.create", entity=self.messages.entity(instruction.type), name=name)
        return self._result(instruction, True, message, data=payload)

    def update_entity(self, instruction: Instruction) -> ExecutionResult:
        spec = instruction.spec
        target = instruction.select_target(self.user_data.collection(spec.collection))
        entity_name = self.messages.entity(instruction.type)
        if target is None:
            return self._failure(instruction, self.messages.get("error.not_found", entity=entity_name))

        # Partial update: only keys present in data are written.
        updates = {
            column: instruction.data[key] for key, column in spec.update_fields.items() if key in instruction.data
        }
        updater_name, serializer = UPDATERS[instruction.type]
        updater = getattr(assistant_store, updater_name)
        updated = updater(self.db, target["id"], self.context.user_id, updates)
        if updated is None:
            return self._failure(instruction, self.messages.get("error.not_found", entity=entity_name))

        diff = compute_diff(spec, target, instruction.data)
        phrases = describe_changes(diff, self.context, self.user_data, past=True)
        name = str(getattr(updated, spec.name_key, None) or target.get(spec.name_key) or "")
        if phrases:
            message = self.messages.get(
                "result.update_changes", entity=entity_name, name=name, changes=", ".join(phrases)
            )
        else:
            message = self.messages.get("result.update", entity=entity_name, name=name)
        return self._result(instruction, True, message, data=serializer(updated))

    # --- creators -------------------------------------------------------------

    def _create_goal(self, title: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        goal = assistant_store.create_goal(
            self.db,
            user_id=self.context.user_id,
            title=title,
            description=data.get("description"),
            target_date=data.get("targetDate"),
            area_id=data.get("areaId"),
            icon=data.get("icon"),
            status=data.get("status") or "active",
            priority=data.get("priority") or "meaningful",
        )
        return assistant_store.serialize_goal(goal)

    def _create_step(self, title: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        step = assistant_store.create_daily_step(
            self.db,
            user_id=self.context.user_id,
            title=title,
            day=data.get("date") or self.context.today,
            description=data.get("description"),
            goal_id=data.get("goalId"),
            area_id=data.get("areaId"),
            is_important=bool(data.get("isImportant")),
            is_urgent=bool(data.get("isUrgent")),
        )
        return assistant_store.serialize_step(step)

    def _create_habit(self, name: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        habit = assistant_store.create_habit(
            self.db,
            user_id=self.context.user_id,
            name=name,
            start_date=self.context.today,
            description=data.get("description"),
            frequency=data.get("frequency"),
            selected_days=data.get("selectedDays"),
            area_id=data.get("areaId"),
            icon=data.get("icon"),
        )
        return assistant_store.serialize_habit(habit)

    def _create_area(self, name: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        area = assistant_store.create_area(
            self.db,
            self.context.user_id,
            name,
            description=data.get("description"),
            color=data.get("color"),
            icon=data.get("icon"),
        )
        return assistant_store.serialize_area(area)

    def _create_metric(self, name: str, data: Mapping[str, Any]) -> Dict[str, Any]:
        metric = assistant_store.create_goal_metric(
            self.db,
            user_id=self.context.user_id,
            goal_id=data.get("goalId"),
            name=name,
            type=data.get("type"),
            unit=data.get("unit"),
            target_value=data.get("targetValue"),
            current_value=data.get("currentValue"),
            initial_value=data.get("initialValue"),
            description=data.get("description"),
        )
        return assistant_store.serialize_metric(metric)

    # --- helpers --------------------------------------------------------------

    def _run_bound_metrics(
        self, goal_result: ExecutionResult, dependents: Sequence[Instruction]
    ) -> List[ExecutionResult]:
        results: List[ExecutionResult] = []
        goal_id = (goal_result.data or {}).get("id") if goal_result.success else None
        for metric in dependents:
            if goal_id is None:
                result = self._failure(metric, self.messages.get("error.metric_goal_failed"))
            else:
                bound = replace(metric, data={**metric.data, "goalId": goal_id})
                result = self.execute_one(bound)
            results.append(result.model_copy(update={"synthetic": True, "source_index": goal_result.index}))
        return results

    def _result(
        self,
        instruction: Instruction,
        success: bool,
        message: str,
        *,
        data: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
    ) -> ExecutionResult:
        return ExecutionResult(
            index=instruction.index,
            type=instruction.type,
            operation=instruction.operation,
            success=success,
            message=message,
            data=data,
            error=error,
        )

    def _failure(self, instruction: Instruction, message: str, *, error: Optional[str] = None) -> ExecutionResult:
        return self._result(instruction, False, message, error=error or message)


def find_goal_bound_metrics(instructions: Sequence[Instruction]) -> Tuple[Optional[int], List[Instruction]]:
    """Locate metric creates that must bind to the batch's first goal create.

    Returns the goal instruction's index and the dependent metric instructions,
    or ``(None, [])`` when the batch creates no goal.
    """
    anchor = next((item for item in instructions if item.key == ("goal", "create")), None)
    if anchor is None:
        return None, []
    dependents = [
        item for item in instructions if item.key == ("metric", "create") and not item.data.get("goalId")
    ]
    return anchor.index, dependents


ExecutionHandler = Callable[[InstructionExecutor, Instruction], ExecutionResult]
Creator = Callable[[InstructionExecutor, str, Mapping[str, Any]], Dict[str, Any]]

CREATORS: Dict[str, Creator] = {
    "goal": InstructionExecutor._create_goal,
    "step": InstructionExecutor._create_step,
    "habit": InstructionExecutor._create_habit,
    "area": InstructionExecutor._create_area,
    "metric": InstructionExecutor._create_metric,
}


def _build_handlers() -> Dict[Tuple[str, str], ExecutionHandler]:
    handlers: Dict[Tuple[str, str], ExecutionHandler] = {
        ("habit", "complete"): InstructionExecutor.complete_habits,
        ("step", "complete"): InstructionExecutor.complete_steps,
    }
    for entity_type in ENTITY_TYPES:
        handlers[(entity_type, "create")] = InstructionExecutor.create_entity
        handlers[(entity_type, "update")] = InstructionExecutor.update_entity
    return handlers


EXECUTION_HANDLERS: Dict[Tuple[str, str], ExecutionHandler] = _build_handlers()
