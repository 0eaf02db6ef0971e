"""Tests for the OpenAI-backed oracle and its model fallback."""
from __future__ import annotations

from types import SimpleNamespace

import openai
import pytest

from app.services import assistant_oracle
from app.services.assistant_oracle import OracleUnavailableError, generate_reply


class _FakeCompletions:
    def __init__(self, outcomes):
        self.outcomes = outcomes
        self.models = []

    def create(self, *, model, **kwargs):
        self.models.append(model)
        outcome = self.outcomes[model]
        if isinstance(outcome, Exception):
            raise outcome
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=outcome))])


@pytest.fixture()
def fake_openai(monkeypatch):
    def install(outcomes):
        completions = _FakeCompletions(outcomes)
        monkeypatch.setattr(
            assistant_oracle.openai,
            "OpenAI",
            lambda api_key: SimpleNamespace(chat=SimpleNamespace(completions=completions)),
        )
        return completions

    monkeypatch.setattr(assistant_oracle.settings, "openai_api_key", "sk-test")
    return install


def test_missing_api_key_raises_immediately(monkeypatch) -> None:
    monkeypatch.setattr(assistant_oracle.settings, "openai_api_key", None)

    with pytest.raises(OracleUnavailableError):
        generate_reply("hello", models=["gpt-4o-mini"])


def test_first_successful_model_wins(fake_openai) -> None:
    completions = fake_openai({"primary": '{"message": "ok"}', "backup": '{"message": "unused"}'})

    reply = generate_reply("hello", models=["primary", "backup"])

    assert reply.text == '{"message": "ok"}'
    assert reply.model == "primary"
    assert completions.models == ["primary"]


def test_falls_back_after_transport_error_and_empty_reply(fake_openai) -> None:
    completions = fake_openai(
        {
            "primary": openai.OpenAIError("rate limited"),
            "secondary": "",
            "tertiary": '{"instructions": []}',
        }
    )

    reply = generate_reply("hello", models=["primary", "secondary", "tertiary"])

    assert reply.model == "tertiary"
    assert completions.models == ["primary", "secondary", "tertiary"]


def test_all_models_failing_accumulates_attempts(fake_openai) -> None:
    fake_openai({"primary": openai.OpenAIError("down"), "backup": openai.OpenAIError("also down")})

    with pytest.raises(OracleUnavailableError) as excinfo:
        generate_reply("hello", models=["primary", "backup"])

    assert [model for model, _ in excinfo.value.attempts] == ["primary", "backup"]
    assert "also down" in str(excinfo.value)
