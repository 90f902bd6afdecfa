"""Fixtures for exercising the HTTP and websocket surface."""

import pytest
from fastapi.testclient import TestClient

from main import create_app


@pytest.fixture
def client():
    # Entering the client runs the lifespan hook and keeps REST calls and
    # websockets on one event loop.
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def login(client, default_password):
    """Return a factory producing a bearer token for a seeded user."""

    def _login(user) -> str:
        response = client.post(
            "/auth/token",
            data={"username": user.email, "password": default_password},
        )
        assert response.status_code == 200, response.text
        return response.json()["access_token"]

    return _login


@pytest.fixture
def auth_headers(login):
    def _auth_headers(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {login(user)}"}

    return _auth_headers
