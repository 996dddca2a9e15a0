"""
Shared fixtures: every test app gets its own SQLite file, log directory
and a recording mailer instead of SendGrid.
"""

import itertools

import pytest
from fastapi.testclient import TestClient

from funnelflow.config import Settings
from funnelflow.main import create_app
from funnelflow.utils.security import pwd_context

TEST_SECRET = "test-secret-key-for-jwt-signing-0123456789"
TEST_PASSWORD = "Secret#123"

# minimum sha256_crypt cost keeps registration/login fast in tests
pwd_context.update(sha256_crypt__default_rounds=1000)


class RecordingMailer:
    """Stores reset tokens instead of sending mail"""

    def __init__(self):
        self.sent = []

    async def send_password_reset(self, account, token):
        self.sent.append({"username": account.username, "email": account.email, "token": token})
        return True


@pytest.fixture
def make_client(tmp_path):
    """Factory: build an app with optional Settings overrides and start its lifespan"""
    counter = itertools.count()
    clients = []

    def _make(**overrides):
        values = {
            "AUTH_SECRET_KEY": TEST_SECRET,
            "DATABASE_URL": f"sqlite+aiosqlite:///{tmp_path / f'test_{next(counter)}.db'}",
            "LOG_DIR": str(tmp_path / "log"),
            "LOG_PRINT": "0",
        }
        values.update(overrides)
        app = create_app(Settings(**values))
        app.state.mailer = RecordingMailer()
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def signup(client):
    """Register + login; returns {"id", "username", "headers"}"""

    def _signup(username, password=TEST_PASSWORD, email=None):
        body = {"username": username, "password": password}
        if email:
            body["email"] = email
        response = client.post("/api/auth/register", json=body)
        assert response.status_code == 201, response.text

        response = client.post("/api/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        data = response.json()
        return {
            "id": data["user"]["id"],
            "username": data["user"]["username"],
            "headers": {"Authorization": f"Bearer {data['accessToken']}"},
        }

    return _signup
