"""Daily step ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Text, func, text as sa_text
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class DailyStep(Base):
    __tablename__ = "daily_steps"
    __table_args__ = (
        Index("ix_daily_steps_user_id", "user_id"),
        Index("ix_daily_steps_goal_id", "goal_id"),
        Index("ix_daily_steps_date", "date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    goal_id = Column(UUID(as_uuid=True), ForeignKey("goals.id", ondelete="SET NULL"), nullable=True)
    area_id = Column(UUID(as_uuid=True), ForeignKey("areas.id", ondelete="SET NULL"), nullable=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=True)
    completed = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    is_important = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    is_urgent = Column(Boolean, nullable=False, server_default=sa_text("false"), default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
