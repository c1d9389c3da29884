"""Pytest configuration and fixtures for Relay tests.

Test isolation strategy:
- Every test gets a fresh in-memory SQLite database (StaticPool, one shared
  connection) with the schema created from the ORM models
- The LLM gateway is replaced by FakeGateway unless a test exercises the
  real gateway with respx
- Auth tests mint tokens with the same TokenService the app uses
"""

import sys
from collections.abc import Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from relay.app import add_request_id_middleware, create_app
from relay.auth.gate import AuthGate
from relay.auth.tokens import TokenService
from relay.config import Settings, clear_settings_cache
from relay.db.engine import create_db_engine
from relay.db.models import Base
from relay.db.session import create_session_factory
from relay.services.chats import ChatStore
from relay.services.users import UserStore
from tests.helpers import FakeGateway, make_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Generator[None, None, None]:
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """Fresh in-memory database with the schema created."""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    return create_session_factory(engine)


@pytest.fixture
def user_store(session_factory) -> UserStore:
    return UserStore(session_factory)


@pytest.fixture
def chat_store(session_factory) -> ChatStore:
    return ChatStore(session_factory)


@pytest.fixture
def token_service(settings: Settings) -> TokenService:
    return TokenService(settings.jwt_secret, settings.jwt_expires_in_s)


@pytest.fixture
def auth_gate(token_service: TokenService, user_store: UserStore) -> AuthGate:
    return AuthGate(token_service, user_store)


@pytest.fixture
def fake_gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def app(settings: Settings, session_factory, fake_gateway: FakeGateway):
    """Full app (auth + CORS + request-id) wired to the test database."""
    app = create_app(settings=settings, session_factory=session_factory, llm_gateway=fake_gateway)
    add_request_id_middleware(app, log_requests=False)
    return app


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    with TestClient(app) as client:
        yield client
