"""Area ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class Area(Base):
    __tablename__ = "areas"
    __table_args__ = (Index("ix_areas_user_id", "user_id"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    color = Column(String(length=20), nullable=False, default="#3B82F6")
    icon = Column(String(length=50), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
