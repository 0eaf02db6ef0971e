"""Goal metric ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, Float, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class GoalMetric(Base):
    __tablename__ = "goal_metrics"
    __table_args__ = (
        Index("ix_goal_metrics_user_id", "user_id"),
        Index("ix_goal_metrics_goal_id", "goal_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    goal_id = Column(UUID(as_uuid=True), ForeignKey("goals.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    # number, currency, percentage, distance, time, weight or custom
    type = Column(String(length=50), nullable=False, default="number")
    unit = Column(String(length=50), nullable=True)
    target_value = Column(Float, nullable=True)
    current_value = Column(Float, nullable=False, default=0)
    initial_value = Column(Float, nullable=False, default=0)
    incremental_value = Column(Float, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
