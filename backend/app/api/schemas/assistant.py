"""Pydantic schemas for the assistant API."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CHOICE_ALL = "all"
CHOICE_SCHEDULED = "scheduled"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PreviewItem(CamelModel):
    index: int
    type: Optional[str] = None
    operation: Optional[str] = None
    summary: str
    target_id: Optional[str] = None
    target_name: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    date: Optional[str] = None
    items: Optional[List[Dict[str, Any]]] = None
    count: Optional[int] = None
    all_items: Optional[List[Dict[str, Any]]] = None
    scheduled_items: Optional[List[Dict[str, Any]]] = None
    all_count: Optional[int] = None
    scheduled_count: Optional[int] = None
    requires_choice: Optional[bool] = None
    current_data: Optional[Dict[str, Any]] = None
    new_data: Optional[Dict[str, Any]] = None
    changes: Optional[List[Dict[str, Any]]] = None


class Preview(CamelModel):
    items: List[PreviewItem] = Field(default_factory=list)
    summary: str = ""


class ExecutionResult(CamelModel):
    index: Optional[int] = None
    type: Optional[str] = None
    operation: Optional[str] = None
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    synthetic: bool = False
    source_index: Optional[int] = None


class AssistantExecuteRequest(CamelModel):
    user_id: UUID
    query: Optional[str] = None
    confirm: bool = False
    # Shape is checked by the route so a bad list yields 400 instead of 422.
    pending_actions: Any = None
    user_choices: Optional[Dict[int, str]] = None
    context_instructions: Any = None
    locale: Optional[str] = Field(default=None, max_length=10)

    @field_validator("user_choices", mode="before")
    @classmethod
    def _parse_choice_keys(cls, value: Any) -> Any:
        """Object keys arrive as strings; keep the numeric ones."""
        if value is None or not isinstance(value, dict):
            return value
        parsed: Dict[int, str] = {}
        for key, choice in value.items():
            try:
                index = int(key)
            except (TypeError, ValueError):
                continue
            parsed[index] = choice if isinstance(choice, str) else CHOICE_ALL
        return parsed


class AssistantResponse(CamelModel):
    success: bool
    message: str
    preview: Optional[Preview] = None
    instructions: Optional[List[Any]] = None
    requires_confirmation: Optional[bool] = None
    actions: Optional[List[ExecutionResult]] = None
    succeeded: Optional[int] = None
    failed: Optional[int] = None
    error: Optional[str] = None
    debug: Optional[Dict[str, Any]] = None
