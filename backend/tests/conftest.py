"""Shared test fixtures for backend tests."""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from medreport.core.config import Settings, get_settings
from medreport.core.database import enable_foreign_keys, get_session
from medreport.core.sessions import SessionStore, get_session_store
from medreport.services.llm.base import BaseLLMProvider

# In-memory SQLite with StaticPool so all connections (including threads) share one DB
test_engine = enable_foreign_keys(
    create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
)


def get_test_session():
    with Session(test_engine) as session:
        yield session


@pytest.fixture(autouse=True)
def setup_test_db():
    """Create all tables before each test, drop after."""
    import medreport.models  # noqa: F401 - register models
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


class FakeProvider(BaseLLMProvider):
    """Records every call and answers with a fixed reply, or raises ``error`` if set."""

    def __init__(self, reply: str = "Hello from the model"):
        self.reply = reply
        self.error: Exception | None = None
        self.calls: list[dict] = []

    async def send(self, history: list[dict], parts: list[dict]) -> str:
        self.calls.append({"history": history, "parts": parts})
        if self.error is not None:
            raise self.error
        return self.reply


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        gemini_api_key="test-key",
        db_path=tmp_path / "test.db",
        upload_dir=tmp_path / "uploads",
    )


@pytest.fixture
def client(fake_provider, test_settings):
    """FastAPI TestClient with all external deps patched."""
    store = SessionStore()
    with (
        patch("medreport.core.database.engine", test_engine),
        patch("medreport.main.settings", test_settings),
        patch("medreport.main.get_llm_provider", return_value=fake_provider),
    ):
        from medreport.main import app

        app.dependency_overrides[get_session] = get_test_session
        app.dependency_overrides[get_settings] = lambda: test_settings
        app.dependency_overrides[get_session_store] = lambda: store

        with TestClient(app) as c:
            yield c

        app.dependency_overrides.clear()


@pytest.fixture
def register_and_login(client):
    """Create an account and log the test client in as it."""
    def _login(username="alice", password="s3cret-pass"):
        client.post(
            "/api/auth/register",
            json={"username": username, "password": password, "confirm_password": password},
        )
        response = client.post("/api/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200
        return response.json()

    return _login
