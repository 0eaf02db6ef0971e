"""Declarative base plus the tracker tables the assistant reads and writes."""

from app.db.base import Base
from app.db.models import (
    AgentActionLog,
    Area,
    DailyStep,
    Goal,
    GoalMetric,
    Habit,
    HabitCompletion,
    User,
)

__all__ = [
    "AgentActionLog",
    "Area",
    "Base",
    "DailyStep",
    "Goal",
    "GoalMetric",
    "Habit",
    "HabitCompletion",
    "User",
]
