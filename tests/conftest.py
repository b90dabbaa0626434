"""
Shared fixtures.

No MongoDB server is needed: the database is backed by mongomock-motor,
an in-memory stand-in for the Motor client.
"""
import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from config import Settings
from main import create_app
from services.database import Database


@pytest.fixture
def settings():
    return Settings(
        jwt_secret="test-secret",
        bcrypt_rounds=4,
        rate_limit_enabled=False,
        static_dir="__no_static_dir__",
    )


@pytest.fixture
def database():
    return Database(AsyncMongoMockClient(), "expense_tracker_test")


@pytest.fixture
def client(settings, database):
    app = create_app(settings, database)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Signs a user up through the API and returns (user, auth headers)."""
    def _register(username="alice", email=None, password="secret123"):
        response = client.post(
            "/api/auth/signup",
            json={"username": username, "email": email or f"{username}@example.com", "password": password},
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}
    return _register
