"""Request-level orchestration of the assistant: propose, then confirm.

Propose reads the user's data, asks the oracle for instructions and returns a
preview without writing anything. Confirm executes the instructions the client
sends back. No state is kept on the server between the two calls.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.schemas.assistant import AssistantResponse
from app.core.config import settings
from app.db.models.agent_action_log import AgentActionLog
from app.observability.metrics import log_counts, log_metric, timed
from app.observability.tracing import annotate, trace
from app.services import assistant_oracle, assistant_store
from app.services.assistant_context import AssistantContext, UserDataSnapshot
from app.services.assistant_prompts import build_assistant_prompt
from app.services.entity_matcher import find_matching_goal_and_area
from app.services.instruction_executor import ExecutionReport, execute_instructions
from app.services.instruction_interpreter import interpret_instructions
from app.services.instruction_model import Instruction, parse_instructions
from app.services.instruction_normalizer import normalize_instruction, normalize_instructions
from app.services.llm_json import OracleResponseError, extract_json_object
from app.services.user_service import get_or_create_user, resolve_locale

logger = logging.getLogger(__name__)

EXECUTED_ACTION_TYPE = "assistant_instructions_executed"


class AssistantRequestError(ValueError):
    """The request itself is unusable (translated to HTTP 400)."""


def _today() -> date:
    return datetime.now(timezone.utc).date()


def load_user_data(db: Session, user_id: UUID, today: date) -> UserDataSnapshot:
    """Read and serialize everything the assistant may refer to."""
    return UserDataSnapshot(
        today=today,
        goals=[assistant_store.serialize_goal(goal) for goal in assistant_store.get_goals_by_user_id(db, user_id)],
        habits=[assistant_store.serialize_habit(habit) for habit in assistant_store.get_habits_by_user_id(db, user_id)],
        areas=[assistant_store.serialize_area(area) for area in assistant_store.get_areas_by_user_id(db, user_id)],
        steps=[
            assistant_store.serialize_step(step)
            for step in assistant_store.get_daily_steps_by_user_id(db, user_id, day=today, include_open=True)
        ],
        metrics=[
            assistant_store.serialize_metric(metric)
            for metric in assistant_store.get_goal_metrics_by_user_id(db, user_id)
        ],
    )


def enrich_step_instructions(
    instructions: Sequence[Any], query: str, user_data: UserDataSnapshot
) -> List[Any]:
    """Fill unset goal/area references on step instructions from the query text.

    Creates fill empty values; updates only fill keys that are absent, so an
    explicit ``null`` in an update still clears the reference.
    """
    match = find_matching_goal_and_area(query, user_data.goals, user_data.areas)
    if not match.found:
        return list(instructions)

    logger.debug(
        "Matched query to goal=%s (%.1f) area=%s (%.1f)",
        match.goal_id,
        match.goal_score,
        match.area_id,
        match.area_score,
    )
    enriched: List[Any] = []
    for instruction in instructions:
        if not isinstance(instruction, Mapping) or instruction.get("type") != "step":
            enriched.append(instruction)
            continue
        operation = instruction.get("operation")
        if operation not in ("create", "update"):
            enriched.append(instruction)
            continue

        data: Dict[str, Any] = dict(instruction.get("data") or {})
        for key, value in (("goalId", match.goal_id), ("areaId", match.area_id)):
            if value is None:
                continue
            if operation == "create" and not data.get(key):
                data[key] = value
            elif operation == "update" and key not in data:
                data[key] = value
        enriched.append({**instruction, "data": data})
    return enriched


def propose_instructions(
    db: Session,
    *,
    user_id: UUID,
    query: Optional[str],
    context_instructions: Optional[Sequence[Any]] = None,
    locale: Optional[str] = None,
    request_id: Optional[str] = None,
) -> AssistantResponse:
    query = (query or "").strip()
    if not query:
        raise AssistantRequestError("Query is required")

    context = _prepare_context(db, user_id, locale, request_id)
    messages = context.messages
    base_metadata = {"route": "/assistant/execute", "phase": "propose", "query_length": len(query)}

    with trace("assistant.propose", metadata=base_metadata, user_id=str(user_id), request_id=request_id) as span:
        user_data = load_user_data(db, user_id, context.today)
        prompt = build_assistant_prompt(query, user_data, context.today, context_instructions)

        with timed("assistant.oracle", metadata={"user_id": str(user_id)}):
            reply = assistant_oracle.generate_reply(prompt)
        annotate(span, {**base_metadata, "model": reply.model})

        try:
            parsed = extract_json_object(reply.text)
        except OracleResponseError as exc:
            logger.warning("Assistant reply from %s was not valid JSON: %s", reply.model, exc)
            log_metric("assistant.oracle.invalid_json", 1, metadata={"model": reply.model})
            return AssistantResponse(
                success=False,
                message=messages.get("propose.invalid_json"),
                error=str(exc),
                debug=_debug_payload(reply.text, reply.model),
            )

        raw_instructions = parsed.get("instructions")
        oracle_message = parsed.get("message") if isinstance(parsed.get("message"), str) else None
        if not isinstance(raw_instructions, list):
            logger.warning("Assistant reply from %s has no instructions list", reply.model)
            return AssistantResponse(
                success=False,
                message=oracle_message or messages.get("propose.invalid_format"),
                error="Invalid instructions format",
                debug=_debug_payload(reply.text, reply.model),
            )

        normalized = normalize_instructions(raw_instructions)
        enriched = enrich_step_instructions(normalized, query, user_data)
        preview = interpret_instructions(parse_instructions(enriched), context, user_data)
        requires_confirmation = bool(enriched) and bool(preview.items)

        counts = {
            "instructions": len(enriched),
            "duplicates_dropped": len(raw_instructions) - len(normalized),
            "preview_errors": sum(1 for item in preview.items if item.error),
        }
        annotate(span, {**base_metadata, "model": reply.model, **counts})
        log_counts("assistant.propose", counts, metadata={"user_id": str(user_id)})

    return AssistantResponse(
        success=True,
        message=oracle_message or messages.get("propose.default"),
        preview=preview,
        instructions=enriched,
        requires_confirmation=requires_confirmation,
    )


def confirm_instructions(
    db: Session,
    *,
    user_id: UUID,
    pending_actions: Any,
    user_choices: Optional[Mapping[int, str]] = None,
    locale: Optional[str] = None,
    request_id: Optional[str] = None,
) -> AssistantResponse:
    if not isinstance(pending_actions, list):
        raise AssistantRequestError("pendingActions must be a list of instructions")

    context = _prepare_context(db, user_id, locale, request_id)
    base_metadata = {"route": "/assistant/execute", "phase": "confirm", "instructions": len(pending_actions)}

    with trace("assistant.confirm", metadata=base_metadata, user_id=str(user_id), request_id=request_id) as span:
        user_data = load_user_data(db, user_id, context.today)
        # Field repair only: userChoices and results are keyed by the submitted positions.
        instructions = parse_instructions([normalize_instruction(item) for item in pending_actions])
        with timed("assistant.execute", metadata={"user_id": str(user_id)}):
            report = execute_instructions(db, instructions, context, user_data, user_choices)

        counts = {"succeeded": report.succeeded, "failed": report.failed}
        annotate(span, {**base_metadata, **counts})
        log_counts("assistant.confirm", counts, metadata={"user_id": str(user_id)})
        _record_execution(db, context, instructions, report)

    return AssistantResponse(
        success=report.success,
        message=report.message,
        actions=report.results,
        succeeded=report.succeeded,
        failed=report.failed,
    )


def _prepare_context(
    db: Session, user_id: UUID, locale: Optional[str], request_id: Optional[str]
) -> AssistantContext:
    user = get_or_create_user(db, user_id, locale=locale)
    # Store writes commit one by one; the user row has to exist before them.
    db.commit()
    return AssistantContext(
        user_id=user_id,
        today=_today(),
        locale=resolve_locale(user, locale, settings.assistant_locale),
        request_id=request_id,
    )


def _record_execution(
    db: Session,
    context: AssistantContext,
    instructions: Sequence[Instruction],
    report: ExecutionReport,
) -> None:
    log_entry = AgentActionLog(
        user_id=context.user_id,
        action_type=EXECUTED_ACTION_TYPE,
        action_payload={
            "request_id": context.request_id,
            "succeeded": report.succeeded,
            "failed": report.failed,
            "instructions": [instruction.raw for instruction in instructions],
            "results": [
                {
                    "index": result.index,
                    "type": result.type,
                    "operation": result.operation,
                    "success": result.success,
                    "synthetic": result.synthetic,
                }
                for result in report.results
            ],
        },
        reason=report.message,
    )
    db.add(log_entry)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Failed to record assistant execution for user %s", context.user_id, exc_info=True)


def _debug_payload(raw_text: str, model: str) -> Optional[Dict[str, Any]]:
    if settings.is_production:
        return None
    return {
        "model": model,
        "responsePreview": (raw_text or "")[: settings.assistant_debug_preview_chars],
        "responseLength": len(raw_text or ""),
    }
