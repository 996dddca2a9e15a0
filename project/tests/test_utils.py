"""
Helpers: logging, mail, password hashing, JWT signer
"""

import asyncio
import datetime
import os
from types import SimpleNamespace

import pytest
from jwt import ExpiredSignatureError, InvalidTokenError

from funnelflow.config import Settings
from funnelflow.utils.log import Log
from funnelflow.utils.mailer import Mailer
from funnelflow.utils.security import hash_password, verify_password, generate_reset_token
from funnelflow.utils.tokens import TokenSigner

SECRET = "unit-test-secret-key-0123456789abcdef"


class TestLog:

    def test_sync_log_writes_daily_file(self, tmp_path):
        log = Log(str(tmp_path), log_print=False)
        log.log_info_sync("startup", "hello", {"port": 8000})

        now = datetime.datetime.now()
        path = os.path.join(str(tmp_path), f"{now.year}", f"{now:%m}", f"{now:%d}.log")
        with open(path, encoding="utf-8") as f:
            content = f.read()
        assert "startup: hello" in content
        assert "8000" in content

    def test_async_log_writes_daily_file(self, tmp_path):
        log = Log(str(tmp_path), log_print=False)

        async def write():
            await log.log_error("lead", "boom", {"id": 5})
            await log.shutdown()

        asyncio.run(write())

        now = datetime.datetime.now()
        path = os.path.join(str(tmp_path), f"{now.year}", f"{now:%m}", f"{now:%d}.log")
        with open(path, encoding="utf-8") as f:
            assert "lead: ERROR: boom" in f.read()

    def test_safe_serialize_hides_secrets(self, tmp_path):
        log = Log(str(tmp_path))
        account = SimpleNamespace(id=1, username="alice", password="hash", reset_token="tok", _private=1)
        assert log.safe_serialize(account) == {"id": 1, "username": "alice"}

    def test_safe_serialize_nested(self, tmp_path):
        log = Log(str(tmp_path))
        moment = datetime.datetime(2025, 1, 2, 3, 4, 5)
        data = {"items": (1, "a"), "at": moment, "obj": object()}
        assert log.safe_serialize(data) == {"items": [1, "a"], "at": "2025-01-02T03:04:05", "obj": "<object>"}


class TestMailer:

    def make(self, api_key=""):
        return Mailer(api_key, "noreply@funnelflow.live", "FunnelFlow", "https://funnelflow.live/reset-password.html")

    def test_reset_link(self):
        link = self.make().build_reset_link("abc123")
        assert link == "https://funnelflow.live/reset-password.html?token=abc123"

    def test_without_api_key_nothing_is_sent(self):
        mailer = self.make()
        account = SimpleNamespace(username="alice", email=None)
        assert asyncio.run(mailer.send_password_reset(account, "tok")) is False

    def test_sends_to_email_when_present(self, monkeypatch):
        mailer = self.make(api_key="SG.key")
        calls = []

        def fake_send(to_email, subject, html_content):
            calls.append((to_email, subject, html_content))
            return True

        monkeypatch.setattr(mailer, "_send_email", fake_send)
        account = SimpleNamespace(username="alice", email="alice@example.com")

        assert asyncio.run(mailer.send_password_reset(account, "tok")) is True
        to_email, subject, html_content = calls[0]
        assert to_email == "alice@example.com"
        assert "token=tok" in html_content

    def test_falls_back_to_username(self, monkeypatch):
        mailer = self.make(api_key="SG.key")
        calls = []
        monkeypatch.setattr(mailer, "_send_email", lambda to, subject, html: calls.append(to) or True)

        asyncio.run(mailer.send_password_reset(SimpleNamespace(username="bob@example.com", email=None), "tok"))
        assert calls == ["bob@example.com"]

    def test_delivery_failure_returns_false(self, monkeypatch):
        mailer = self.make(api_key="SG.key")

        def failing(*args):
            raise RuntimeError("HTTP 401")

        monkeypatch.setattr(mailer, "_send_email", failing)
        account = SimpleNamespace(username="alice", email="alice@example.com")
        assert asyncio.run(mailer.send_password_reset(account, "tok")) is False


class TestSecurity:

    def test_hash_is_salted_and_verifies(self):
        first = hash_password("Secret#123")
        second = hash_password("Secret#123")
        assert first != second
        assert "Secret#123" not in first
        assert verify_password("Secret#123", first)
        assert not verify_password("Secret#124", first)
        assert not verify_password("Secret#123", "")

    def test_reset_tokens_are_random_hex(self):
        tokens = {generate_reset_token() for _ in range(10)}
        assert len(tokens) == 10
        assert all(len(token) == 64 and int(token, 16) >= 0 for token in tokens)


class TestTokenSigner:

    def test_round_trip(self):
        signer = TokenSigner(SECRET, expire_minutes=5)
        payload = signer.decode_token(signer.create_access_token({"sub": "42"}))
        assert payload["sub"] == "42"
        assert "exp" in payload

    def test_expired(self):
        signer = TokenSigner(SECRET)
        token = signer.create_access_token({"sub": "1"}, expires_delta=datetime.timedelta(minutes=-1))
        with pytest.raises(ExpiredSignatureError):
            signer.decode_token(token)

    def test_wrong_secret(self):
        token = TokenSigner(SECRET).create_access_token({"sub": "1"})
        with pytest.raises(InvalidTokenError):
            TokenSigner("another-secret-key-0123456789abcdef").decode_token(token)


class TestSettings:

    def test_cors_origins_comma_separated(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example,")
        settings = Settings(_env_file=None, AUTH_SECRET_KEY=SECRET)
        assert settings.CORS_ORIGINS == ["https://a.example", "https://b.example"]

    def test_cors_origins_json(self, monkeypatch):
        monkeypatch.setenv("CORS_ORIGINS", '["https://a.example"]')
        settings = Settings(_env_file=None, AUTH_SECRET_KEY=SECRET)
        assert settings.CORS_ORIGINS == ["https://a.example"]

    def test_cors_origins_default(self, monkeypatch):
        monkeypatch.delenv("CORS_ORIGINS", raising=False)
        settings = Settings(_env_file=None, AUTH_SECRET_KEY=SECRET)
        assert "https://funnelflow.live" in settings.CORS_ORIGINS
