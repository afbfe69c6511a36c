"""
Shared fixtures: temp-dir-backed stores and a client bound to them
"""
import os

# Must be set before studymate modules read their configuration
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["REDIS_URL"] = "redis://127.0.0.1:1/0"
os.environ.pop("HUGGINGFACE_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from studymate.db import init_db
from studymate.main import app
from studymate.services.cache import cache


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """No real remote calls and no cached summaries leaking between tests."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr("studymate.services.inference.HUGGINGFACE_API_KEY", "")
    cache.clear_pattern("summary:*")
    yield
    cache.clear_pattern("summary:*")


@pytest.fixture
def client(tmp_path):
    init_db(app, tmp_path)
    return TestClient(app)


@pytest.fixture
def register_user(client):
    def _register(email="student@example.com", password="secret123", name="Test Student"):
        response = client.post("/api/auth/register", json={"name": name, "email": email, "password": password})
        assert response.status_code == 201, response.text
        return response.json()
    return _register


@pytest.fixture
def auth_headers(register_user):
    token = register_user()["token"]
    return {"Authorization": f"Bearer {token}"}
