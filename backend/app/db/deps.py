"""FastAPI dependencies for database access."""
from __future__ import annotations

from typing import Iterator

from sqlalchemy.orm import Session


def get_db() -> Iterator[Session]:
    """Yield a request-scoped session and always close it."""
    # Imported lazily so test suites can override get_db without a Postgres driver.
    from app.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
