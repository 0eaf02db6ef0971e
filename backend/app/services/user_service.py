"""Helpers for working with users."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.user import User


def get_or_create_user(db: Session, user_id: UUID, *, locale: Optional[str] = None) -> User:
    """Fetch an existing user or create a new row safely.

    A requested locale is stored on the user the first time one is seen.
    """
    user = db.get(User, user_id)
    if user:
        if locale and not user.locale:
            user.locale = locale
            db.flush()
        return user

    user = User(id=user_id, locale=locale)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def resolve_locale(user: Optional[User], requested: Optional[str], default: str) -> str:
    """Request override first, then the user's stored locale, then the default."""
    if requested:
        return requested
    if user is not None and user.locale:
        return user.locale
    return default
