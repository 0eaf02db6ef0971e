"""Per-request state shared by the assistant interpreter and executor."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from functools import cached_property
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from app.services.assistant_messages import Messages


@dataclass
class UserDataSnapshot:
    """Serialized view of the user's entities, read once per request."""

    today: date
    goals: List[Dict[str, Any]] = field(default_factory=list)
    habits: List[Dict[str, Any]] = field(default_factory=list)
    areas: List[Dict[str, Any]] = field(default_factory=list)
    steps: List[Dict[str, Any]] = field(default_factory=list)
    metrics: List[Dict[str, Any]] = field(default_factory=list)

    def collection(self, name: str) -> List[Dict[str, Any]]:
        return getattr(self, name, [])

    def find(self, collection: str, entity_id: Any) -> Optional[Mapping[str, Any]]:
        if entity_id in (None, ""):
            return None
        wanted = str(entity_id)
        for entity in self.collection(collection):
            if str(entity.get("id")) == wanted:
                return entity
        return None


@dataclass
class AssistantContext:
    user_id: UUID
    today: date
    locale: str = "cs"
    request_id: Optional[str] = None

    @cached_property
    def messages(self) -> Messages:
        return Messages(self.locale)
