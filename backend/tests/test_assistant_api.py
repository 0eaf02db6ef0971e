from __future__ import annotations

import json
from datetime import date
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
from app.services import assistant_oracle, assistant_pipeline, assistant_store
from app.services.assistant_oracle import OracleReply, OracleUnavailableError

MONDAY = date(2026, 1, 5)


@pytest.fixture()
def client(monkeypatch):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
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

    monkeypatch.setattr(assistant_pipeline, "_today", lambda: MONDAY)
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client, TestingSessionLocal
    app.dependency_overrides.clear()


def _oracle_returns(monkeypatch, text, prompts=None):
    def fake_generate_reply(prompt, models=None):
        if prompts is not None:
            prompts.append(prompt)
        return OracleReply(text=text, model="fake-model")

    monkeypatch.setattr(assistant_oracle, "generate_reply", fake_generate_reply)


def _seed_habits(session_factory, user_id):
    with session_factory() as db:
        db.add(User(id=user_id))
        db.flush()
        db.add_all(
            [
                Habit(user_id=user_id, name="Meditace", frequency="daily"),
                Habit(user_id=user_id, name="Běh", frequency="weekly", selected_days=["friday"]),
                Habit(user_id=user_id, name="Plavání", frequency="weekly", selected_days=["monday"]),
            ]
        )
        db.commit()


def test_complete_all_habits_preview_then_confirm_scheduled(client, monkeypatch):
    test_client, session_factory = client
    user_id = uuid4()
    _seed_habits(session_factory, user_id)
    _oracle_returns(
        monkeypatch,
        json.dumps(
            {
                "message": "Označím návyky jako hotové.",
                "instructions": [{"type": "habit", "operation": "complete", "filter": {"type": "all"}}],
            }
        ),
    )

    response = test_client.post(
        "/assistant/execute", json={"user_id": str(user_id), "query": "dokonči všechny návyky"}
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["requiresConfirmation"] is True
    item = body["preview"]["items"][0]
    assert item["requiresChoice"] is True
    assert item["scheduledCount"] == 2
    assert item["allCount"] == 3
    assert "items" not in item

    confirm = test_client.post(
        "/assistant/execute",
        json={
            "user_id": str(user_id),
            "confirm": True,
            "pendingActions": body["instructions"],
            "userChoices": {"0": "scheduled"},
        },
    )
    assert confirm.status_code == 200
    result = confirm.json()
    assert result["success"] is True
    assert result["actions"][0]["data"]["choice"] == "scheduled"

    with session_factory() as db:
        names = {
            habit.name
            for habit in db.query(Habit).join(HabitCompletion, HabitCompletion.habit_id == Habit.id).all()
        }
        assert names == {"Meditace", "Plavání"}
        log = db.query(AgentActionLog).one()
        assert log.action_type == "assistant_instructions_executed"
        assert log.action_payload["succeeded"] == 1


def test_create_step_preview_then_confirm(client, monkeypatch):
    test_client, session_factory = client
    user_id = uuid4()
    reply = (
        "Tady je návrh:\n```json\n"
        + json.dumps(
            {
                "message": "Vytvořím krok.",
                "instructions": [{"type": "step", "operation": "create", "data": {"Název": "Zavolat zubaři"}}],
            },
            ensure_ascii=False,
        )
        + "\n```"
    )
    _oracle_returns(monkeypatch, reply)

    response = test_client.post(
        "/assistant/execute", json={"user_id": str(user_id), "query": "vytvoř krok Zavolat zubaři"}
    )
    body = response.json()
    assert response.status_code == 200
    assert len(body["preview"]["items"]) == 1
    item = body["preview"]["items"][0]
    assert (item["type"], item["operation"]) == ("step", "create")
    assert "error" not in item
    assert body["instructions"][0]["data"] == {"title": "Zavolat zubaři"}

    calls = []
    original = assistant_store.create_daily_step

    def spy(db, **kwargs):
        calls.append(kwargs)
        return original(db, **kwargs)

    monkeypatch.setattr(assistant_store, "create_daily_step", spy)
    confirm = test_client.post(
        "/assistant/execute",
        json={"user_id": str(user_id), "confirm": True, "pendingActions": body["instructions"]},
    )
    result = confirm.json()
    assert confirm.status_code == 200
    assert len(calls) == 1
    assert len(result["actions"]) == 1
    assert result["actions"][0]["success"] is True
    assert result["actions"][0]["data"]["title"] == "Zavolat zubaři"
    assert result["message"] == "Provedl jsem 1 akci."

    with session_factory() as db:
        assert db.query(DailyStep).one().date == MONDAY


def test_step_is_enriched_with_matched_goal(client, monkeypatch):
    test_client, session_factory = client
    user_id = uuid4()
    with session_factory() as db:
        db.add(User(id=user_id))
        db.flush()
        goal = Goal(user_id=user_id, title="Learn Spanish")
        db.add(goal)
        db.commit()
        goal_id = str(goal.id)
    _oracle_returns(
        monkeypatch,
        json.dumps({"message": "ok", "instructions": [{"type": "step", "operation": "create", "data": {"title": "Slovíčka"}}]}),
    )

    response = test_client.post(
        "/assistant/execute", json={"user_id": str(user_id), "query": "practice for learn spanish today"}
    )

    assert response.json()["instructions"][0]["data"]["goalId"] == goal_id


def test_context_instructions_reach_the_prompt(client, monkeypatch):
    test_client, _ = client
    prompts = []
    _oracle_returns(monkeypatch, '{"message": "ok", "instructions": []}', prompts)

    response = test_client.post(
        "/assistant/execute",
        json={
            "user_id": str(uuid4()),
            "query": "radši v úterý",
            "contextInstructions": [{"type": "step", "operation": "create", "data": {"title": "Zavolat zubaři"}}],
        },
    )

    body = response.json()
    assert body["success"] is True
    assert body["requiresConfirmation"] is False
    assert "Zavolat zubaři" in prompts[0]


def test_blank_query_returns_400(client):
    test_client, _ = client

    response = test_client.post("/assistant/execute", json={"user_id": str(uuid4()), "query": "  "})

    assert response.status_code == 400
    assert response.json() == {"error": "Query is required"}


def test_confirm_without_pending_actions_returns_400(client):
    test_client, _ = client

    response = test_client.post("/assistant/execute", json={"user_id": str(uuid4()), "confirm": True})

    assert response.status_code == 400
    assert "pendingActions" in response.json()["error"]


def test_unparseable_reply_is_soft_failure_with_debug(client, monkeypatch):
    test_client, _ = client
    _oracle_returns(monkeypatch, "Sorry, I cannot help with that.")

    response = test_client.post("/assistant/execute", json={"user_id": str(uuid4()), "query": "něco"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is False
    assert body["message"].startswith("Nepodařilo se zpracovat odpověď")
    assert body["debug"]["model"] == "fake-model"


def test_debug_hidden_in_production(client, monkeypatch):
    test_client, _ = client
    monkeypatch.setattr(assistant_pipeline.settings, "environment", "production")
    _oracle_returns(monkeypatch, "not json")

    body = test_client.post("/assistant/execute", json={"user_id": str(uuid4()), "query": "něco"}).json()

    assert body["success"] is False
    assert "debug" not in body


def test_missing_instructions_uses_oracle_message(client, monkeypatch):
    test_client, _ = client
    _oracle_returns(monkeypatch, '{"message": "Nerozumím, upřesněte prosím."}')

    body = test_client.post("/assistant/execute", json={"user_id": str(uuid4()), "query": "hm"}).json()

    assert body["success"] is False
    assert body["message"] == "Nerozumím, upřesněte prosím."
    assert body["error"] == "Invalid instructions format"


def test_oracle_outage_returns_500(client, monkeypatch):
    test_client, _ = client

    def unavailable(prompt, models=None):
        raise OracleUnavailableError("All assistant models failed: m1: down")

    monkeypatch.setattr(assistant_oracle, "generate_reply", unavailable)

    response = test_client.post("/assistant/execute", json={"user_id": str(uuid4()), "query": "ahoj"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Internal server error"
    assert "m1: down" in body["message"]
    assert "details" in body


def test_english_locale_override(client, monkeypatch):
    test_client, _ = client
    _oracle_returns(
        monkeypatch,
        json.dumps({"instructions": [{"type": "goal", "operation": "create", "data": {"title": "Run a marathon"}}]}),
    )

    body = test_client.post(
        "/assistant/execute",
        json={"userId": str(uuid4()), "query": "create goal run a marathon", "locale": "en"},
    ).json()

    assert body["message"] == "Here are the changes I prepared:"
    assert body["preview"]["summary"] == 'Create goal: "Run a marathon"'


def test_confirm_keeps_one_result_per_pending_action_and_choice_positions(client):
    test_client, session_factory = client
    user_id = uuid4()
    _seed_habits(session_factory, user_id)

    response = test_client.post(
        "/assistant/execute",
        json={
            "user_id": str(user_id),
            "confirm": True,
            "pendingActions": [{}, {}, {"type": "habit", "operation": "complete", "filter": {"type": "all"}}],
            "userChoices": {"2": "scheduled"},
        },
    )

    assert response.status_code == 200
    actions = response.json()["actions"]
    assert [action["success"] for action in actions] == [False, False, True]
    assert actions[2]["data"]["choice"] == "scheduled"
    assert "choiceDefaulted" not in actions[2]["data"]

    with session_factory() as db:
        names = {
            habit.name
            for habit in db.query(Habit).join(HabitCompletion, HabitCompletion.habit_id == Habit.id).all()
        }
        assert names == {"Meditace", "Plavání"}
