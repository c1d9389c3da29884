"""Tests for application wiring.

Tests cover:
- The database engine is bound to the Settings passed to create_app,
  not to ambient environment variables
- The LLM gateway takes its limits and environment from Settings
"""

import httpx
from fastapi.testclient import TestClient

from relay.app import create_app, create_llm_gateway
from tests.helpers import FakeGateway, make_settings


class TestCreateApp:
    def test_database_url_taken_from_settings(self, tmp_path, monkeypatch):
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'env.db'}")
        settings = make_settings(DATABASE_URL=f"sqlite:///{tmp_path / 'settings.db'}")

        app = create_app(settings=settings, llm_gateway=FakeGateway())

        engine = app.state.session_factory.kw["bind"]
        assert engine.url.database == str(tmp_path / "settings.db")
        engine.dispose()

    def test_startup_checks_settings_database(self, tmp_path):
        settings = make_settings(DATABASE_URL=f"sqlite:///{tmp_path / 'settings.db'}")
        app = create_app(settings=settings, llm_gateway=FakeGateway())

        with TestClient(app) as client:
            assert client.get("/health").status_code == 200

        assert (tmp_path / "settings.db").exists()
        app.state.session_factory.kw["bind"].dispose()


class TestCreateLLMGateway:
    def test_gateway_uses_settings(self):
        settings = make_settings(
            RELAY_ENV="staging",
            OPENROUTER_MODEL="test/model",
            LLM_TIMEOUT_S=5,
            LLM_MAX_TOKENS=200,
        )

        gateway = create_llm_gateway(httpx.AsyncClient(), settings)

        assert gateway.env == "staging"
        assert gateway.model_name == "test/model"
        assert gateway.timeout_s == 5
        assert gateway.max_tokens == 200
        assert gateway.is_configured is True
