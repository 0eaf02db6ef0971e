"""User ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Column, DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    # Language of assistant replies; falls back to settings.assistant_locale.
    locale = Column(String(length=10), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
