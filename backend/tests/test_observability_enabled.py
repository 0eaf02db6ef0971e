from __future__ import annotations

import json
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.deps import get_db
from app.db.models.agent_action_log import AgentActionLog
from app.db.models.area import Area
from app.db.models.daily_step import DailyStep
from app.db.models.goal import Goal
from app.db.models.goal_metric import GoalMetric
from app.db.models.habit import Habit, HabitCompletion
from app.db.models.user import User
from app.main import app
from app.observability import client as client_module
from app.services import assistant_oracle
from app.services.assistant_oracle import OracleReply


class _DummyTrace:
    def __init__(self, name=None, metadata=None, **kwargs):
        self.name = name
        self.metadata = metadata or {}
        self.ended = False

    def update(self, metadata=None, **kwargs):
        if metadata:
            self.metadata = metadata

    def end(self):
        self.ended = True


class _DummyOpik:
    instances: list["_DummyOpik"] = []

    def __init__(self, *args, **kwargs):
        self.traces = []
        _DummyOpik.instances.append(self)

    def trace(self, **kwargs):
        trace = _DummyTrace(name=kwargs.get("name"), metadata=kwargs.get("metadata"))
        self.traces.append(trace)
        return trace


@pytest.fixture()
def sqlite_override():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_fk(conn, record):  # pragma: no cover - sqlite setup
        cursor = conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    for model in (User, Area, Goal, GoalMetric, DailyStep, Habit, HabitCompletion, AgentActionLog):
        model.__table__.create(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    return override_get_db


def test_assistant_pipeline_traced_when_opik_enabled(monkeypatch, sqlite_override):
    monkeypatch.setattr(client_module.settings, "opik_enabled", True)
    monkeypatch.setattr(client_module.settings, "opik_api_key", "test-key")
    monkeypatch.setattr(client_module, "Opik", _DummyOpik)
    client_module.reset_opik_client()
    _DummyOpik.instances.clear()

    reply = json.dumps({"message": "ok", "instructions": [{"type": "area", "operation": "create", "data": {"name": "Práce"}}]})
    monkeypatch.setattr(assistant_oracle, "generate_reply", lambda prompt, models=None: OracleReply(reply, "fake-model"))
    app.dependency_overrides[get_db] = sqlite_override

    try:
        with TestClient(app) as test_client:
            resp = test_client.post(
                "/assistant/execute",
                json={"user_id": str(uuid4()), "query": "založ oblast Práce"},
            )
            assert resp.status_code == 200
    finally:
        app.dependency_overrides.clear()
        client_module.reset_opik_client()

    traces = _DummyOpik.instances[0].traces
    propose = next(trace for trace in traces if trace.name == "assistant.propose")
    assert propose.ended is True
    assert propose.metadata["model"] == "fake-model"
    assert propose.metadata["instructions"] == 1
    assert any(trace.name == "metric:assistant.propose.instructions" for trace in traces)
