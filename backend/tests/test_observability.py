"""Tests ensuring observability wiring is safe by default."""
from __future__ import annotations

import importlib

from app.observability import client as client_module


def test_app_import_succeeds_when_opik_is_disabled(monkeypatch) -> None:
    monkeypatch.setenv("OPIK_ENABLED", "false")
    monkeypatch.delenv("OPIK_API_KEY", raising=False)

    import app.core.config as core_config
    import app.main as main_module

    importlib.reload(core_config)
    importlib.reload(client_module)
    reloaded_app = importlib.reload(main_module)

    assert hasattr(reloaded_app, "app")
    assert client_module.get_opik_client() is None


def test_enabled_without_api_key_stays_disabled(monkeypatch) -> None:
    monkeypatch.setattr(client_module.settings, "opik_enabled", True)
    monkeypatch.setattr(client_module.settings, "opik_api_key", None)
    client_module.reset_opik_client()

    assert client_module.init_opik() is None

    client_module.reset_opik_client()
