"""ORM models exposed for metadata discovery."""
from app.db.models.agent_action_log import AgentActionLog
from app.db.models.area import Area
from app.db.models.daily_step import DailyStep
from app.db.models.goal import Goal
from app.db.models.goal_metric import GoalMetric
from app.db.models.habit import Habit, HabitCompletion
from app.db.models.user import User

__all__ = [
    "AgentActionLog",
    "Area",
    "DailyStep",
    "Goal",
    "GoalMetric",
    "Habit",
    "HabitCompletion",
    "User",
]
