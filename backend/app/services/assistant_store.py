"""Single-entity data access used by the assistant.

Every mutating helper commits its own change and rolls the session back before
re-raising on failure, so one failed write never poisons the next one.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Type
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models.area import Area
from app.db.models.daily_step import DailyStep
from app.db.models.goal import Goal
from app.db.models.goal_metric import GoalMetric
from app.db.models.habit import Habit, HabitCompletion

logger = logging.getLogger(__name__)

UUID_COLUMNS = {"goal_id", "area_id"}
DATE_COLUMNS = {"date", "target_date"}
FLOAT_COLUMNS = {"target_value", "current_value", "initial_value"}
BOOL_COLUMNS = {"is_important", "is_urgent", "completed", "always_show"}


# --- readers -----------------------------------------------------------------


def get_goals_by_user_id(db: Session, user_id: UUID) -> List[Goal]:
    return db.query(Goal).filter(Goal.user_id == user_id).order_by(Goal.created_at.asc()).all()


def get_habits_by_user_id(db: Session, user_id: UUID) -> List[Habit]:
    return db.query(Habit).filter(Habit.user_id == user_id).order_by(Habit.created_at.asc()).all()


def get_areas_by_user_id(db: Session, user_id: UUID) -> List[Area]:
    return db.query(Area).filter(Area.user_id == user_id).order_by(Area.name.asc()).all()


def get_goal_metrics_by_user_id(db: Session, user_id: UUID) -> List[GoalMetric]:
    return (
        db.query(GoalMetric)
        .filter(GoalMetric.user_id == user_id)
        .order_by(GoalMetric.created_at.asc())
        .all()
    )


def get_daily_steps_by_user_id(
    db: Session,
    user_id: UUID,
    *,
    day: Optional[date] = None,
    include_open: bool = False,
) -> List[DailyStep]:
    """Steps planned for ``day``, optionally together with every unfinished step."""
    query = db.query(DailyStep).filter(DailyStep.user_id == user_id)
    conditions = []
    if day is not None:
        conditions.append(DailyStep.date == day)
    if include_open:
        conditions.append(DailyStep.completed.is_(False))
    if conditions:
        query = query.filter(or_(*conditions))
    return query.order_by(DailyStep.date.asc(), DailyStep.created_at.asc()).all()


# --- writers -----------------------------------------------------------------


def create_goal(
    db: Session,
    *,
    user_id: UUID,
    title: str,
    description: Optional[str] = None,
    target_date: Any = None,
    area_id: Any = None,
    icon: Optional[str] = None,
    status: str = "active",
    priority: str = "meaningful",
    category: str = "medium-term",
) -> Goal:
    goal = Goal(
        user_id=user_id,
        title=title,
        description=description,
        target_date=_to_date(target_date),
        area_id=_to_uuid(area_id),
        icon=icon or "Target",
        status=status,
        priority=priority,
        category=category,
        goal_type="outcome",
        progress_percentage=0,
    )
    return _persist(db, goal)


def create_daily_step(
    db: Session,
    *,
    user_id: UUID,
    title: str,
    day: Any,
    description: Optional[str] = None,
    goal_id: Any = None,
    area_id: Any = None,
    is_important: bool = False,
    is_urgent: bool = False,
) -> DailyStep:
    step = DailyStep(
        user_id=user_id,
        title=title,
        description=description,
        date=_to_date(day),
        goal_id=_to_uuid(goal_id),
        area_id=_to_uuid(area_id),
        is_important=bool(is_important),
        is_urgent=bool(is_urgent),
        completed=False,
    )
    return _persist(db, step)


def create_goal_metric(
    db: Session,
    *,
    user_id: UUID,
    goal_id: Any,
    name: str,
    type: Optional[str] = None,
    unit: Optional[str] = None,
    target_value: Any = None,
    current_value: Any = None,
    initial_value: Any = None,
    description: Optional[str] = None,
) -> GoalMetric:
    goal_uuid = _to_uuid(goal_id)
    if goal_uuid is None:
        raise ValueError("goal_id is required for a metric")
    metric = GoalMetric(
        user_id=user_id,
        goal_id=goal_uuid,
        name=name,
        description=description,
        type=type or "number",
        unit=unit,
        target_value=_to_float(target_value),
        current_value=_to_float(current_value) or 0.0,
        initial_value=_to_float(initial_value) or 0.0,
        incremental_value=1.0,
    )
    return _persist(db, metric)


def create_habit(
    db: Session,
    *,
    user_id: UUID,
    name: str,
    start_date: date,
    description: Optional[str] = None,
    frequency: Optional[str] = None,
    selected_days: Any = None,
    area_id: Any = None,
    icon: Optional[str] = None,
) -> Habit:
    habit = Habit(
        user_id=user_id,
        name=name,
        description=description or name,
        frequency=frequency or "daily",
        selected_days=selected_days,
        area_id=_to_uuid(area_id),
        icon=icon,
        streak=0,
        max_streak=0,
        start_date=start_date,
    )
    return _persist(db, habit)


def create_area(
    db: Session,
    user_id: UUID,
    name: str,
    description: Optional[str] = None,
    color: Optional[str] = None,
    icon: Optional[str] = None,
) -> Area:
    area = Area(user_id=user_id, name=name, description=description, color=color or "#3B82F6", icon=icon)
    return _persist(db, area)


def toggle_habit_completion(
    db: Session,
    user_id: UUID,
    habit_id: Any,
    day: date,
    *,
    completed: Optional[bool] = None,
) -> bool:
    """Flip (or force, when ``completed`` is given) a habit's completion for ``day``.

    Returns the completion state after the call.
    """
    habit_uuid = _to_uuid(habit_id)
    existing = (
        db.query(HabitCompletion)
        .filter(HabitCompletion.habit_id == habit_uuid, HabitCompletion.completion_date == day)
        .one_or_none()
    )
    target_state = existing is None if completed is None else completed
    if target_state and existing is None:
        db.add(HabitCompletion(user_id=user_id, habit_id=habit_uuid, completion_date=day))
    elif not target_state and existing is not None:
        db.delete(existing)
    else:
        return target_state
    _commit(db)
    return target_state


def update_daily_step_fields(db: Session, step_id: Any, user_id: UUID, updates: Dict[str, Any]) -> Optional[DailyStep]:
    fields = dict(updates)
    if "completed" in fields:
        fields["completed_at"] = datetime.now(timezone.utc) if fields["completed"] else None
    return _update_fields(db, DailyStep, step_id, user_id, fields)


def update_goal_fields(db: Session, goal_id: Any, user_id: UUID, updates: Dict[str, Any]) -> Optional[Goal]:
    return _update_fields(db, Goal, goal_id, user_id, updates)


def update_habit_fields(db: Session, habit_id: Any, user_id: UUID, updates: Dict[str, Any]) -> Optional[Habit]:
    return _update_fields(db, Habit, habit_id, user_id, updates)


def update_area_fields(db: Session, area_id: Any, user_id: UUID, updates: Dict[str, Any]) -> Optional[Area]:
    return _update_fields(db, Area, area_id, user_id, updates)


def update_goal_metric_fields(
    db: Session, metric_id: Any, user_id: UUID, updates: Dict[str, Any]
) -> Optional[GoalMetric]:
    return _update_fields(db, GoalMetric, metric_id, user_id, updates)


# --- serialization -----------------------------------------------------------


def serialize_goal(goal: Goal) -> Dict[str, Any]:
    return {
        "id": str(goal.id),
        "title": goal.title,
        "description": goal.description,
        "target_date": _iso(goal.target_date),
        "status": goal.status,
        "priority": goal.priority,
        "category": goal.category,
        "area_id": _str_or_none(goal.area_id),
        "icon": goal.icon,
    }


def serialize_habit(habit: Habit) -> Dict[str, Any]:
    return {
        "id": str(habit.id),
        "name": habit.name,
        "description": habit.description,
        "frequency": habit.frequency,
        "selected_days": habit.selected_days,
        "selected_dates": habit.selected_dates,
        "always_show": bool(habit.always_show),
        "area_id": _str_or_none(habit.area_id),
        "icon": habit.icon,
    }


def serialize_area(area: Area) -> Dict[str, Any]:
    return {
        "id": str(area.id),
        "name": area.name,
        "description": area.description,
        "color": area.color,
        "icon": area.icon,
    }


def serialize_step(step: DailyStep) -> Dict[str, Any]:
    return {
        "id": str(step.id),
        "title": step.title,
        "description": step.description,
        "date": _iso(step.date),
        "completed": bool(step.completed),
        "goal_id": _str_or_none(step.goal_id),
        "area_id": _str_or_none(step.area_id),
        "is_important": bool(step.is_important),
        "is_urgent": bool(step.is_urgent),
    }


def serialize_metric(metric: GoalMetric) -> Dict[str, Any]:
    return {
        "id": str(metric.id),
        "goal_id": _str_or_none(metric.goal_id),
        "name": metric.name,
        "description": metric.description,
        "type": metric.type,
        "unit": metric.unit,
        "target_value": metric.target_value,
        "current_value": metric.current_value,
        "initial_value": metric.initial_value,
        "incremental_value": metric.incremental_value,
    }


# --- helpers -----------------------------------------------------------------


def _update_fields(db: Session, model: Type[Any], entity_id: Any, user_id: UUID, updates: Dict[str, Any]):
    entity = db.get(model, _to_uuid(entity_id))
    if entity is None or entity.user_id != user_id:
        return None
    # Coerce everything first so a bad value leaves the row untouched.
    coerced = {column: _coerce_column(column, value) for column, value in updates.items()}
    for column, value in coerced.items():
        setattr(entity, column, value)
    return _persist(db, entity)


def _persist(db: Session, entity):
    db.add(entity)
    _commit(db)
    db.refresh(entity)
    return entity


def _commit(db: Session) -> None:
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Assistant store write failed; session rolled back")
        raise


def _coerce_column(column: str, value: Any) -> Any:
    if column in UUID_COLUMNS:
        return _to_uuid(value)
    if column in DATE_COLUMNS:
        return _to_date(value)
    if column in FLOAT_COLUMNS:
        return _to_float(value)
    if column in BOOL_COLUMNS:
        return bool(value)
    return value


def _to_uuid(value: Any) -> Optional[UUID]:
    if value in (None, ""):
        return None
    if isinstance(value, UUID):
        return value
    return UUID(str(value))


def _to_date(value: Any) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


def _to_float(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    return float(value)


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value else None


def _str_or_none(value: Any) -> Optional[str]:
    return str(value) if value else None
