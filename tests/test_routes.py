"""Tests for the HTTP routes.

Covers:
- POST /create: validation errors, expiry resolution, encryption at rest
- GET /s/{token}: unknown tokens, first-access notification, burned state
- POST /s/{token}/reveal: atomic burn, lost race, expired links
- /c/{token}: 404, access report, webhook set/test, owner burn
- GET /health and the security headers on every response
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient

from nullvault.access import AccessRecord
from nullvault.config import settings
from nullvault.db.engine import get_session
from nullvault.events import event_bus
from nullvault.main import SECURITY_HEADERS, app
from nullvault.models.access_log import AccessLog
from nullvault.models.secret import Secret
from nullvault.routes.create import clean_note, resolve_expiry
from nullvault.routes.control import clean_webhook_url
from nullvault.schemas.events import EventType
from nullvault.security.encryption import content_encryptor
from nullvault.security.rate_limiter import limit_create, limit_public

CHROME = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 Chrome/125.0"

# ── Helpers ──────────────────────────────────────────────────────────


def _secret(**overrides) -> Secret:
    public_token = overrides.pop("public_token", "pub-token")
    fields = {
        "id": 7,
        "public_token": public_token,
        "control_token": "ctl-token",
        "content": content_encryptor.encrypt("hunter2", aad=public_token),
        "note": None,
        "template": "default",
        "webhook_url": None,
        "burned": False,
        "burned_at": None,
        "expires_at": None,
        "burn_on_reveal": True,
        "created_at": 1_700_000_000,
    }
    fields.update(overrides)
    return Secret(**fields)


def _log(ts: int, ip: str, ua: str = CHROME, **overrides) -> AccessLog:
    fields = {
        "secret_id": 7,
        "accessed_at": ts,
        "ip_address": ip,
        "user_agent": ua,
        "location": None,
        "org": None,
        "referer": None,
        "request_path": "/s/pub-token",
        "reveal_attempted": False,
        "reveal_succeeded": False,
    }
    fields.update(overrides)
    return AccessLog(**fields)


def _emitted(mock_emit: AsyncMock) -> list:
    return [c.args[0] for c in mock_emit.call_args_list]


async def _allow() -> None:
    return None


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture
def mock_db():
    """Override the DB session and rate-limit dependencies."""
    session = MagicMock()
    session.flush = AsyncMock()
    session.execute = AsyncMock()

    async def fake_get():
        yield session

    app.dependency_overrides[get_session] = fake_get
    app.dependency_overrides[limit_public] = _allow
    app.dependency_overrides[limit_create] = _allow
    yield session
    app.dependency_overrides.clear()


@pytest.fixture
def mock_emit():
    with patch.object(event_bus, "emit", new_callable=AsyncMock) as emit:
        yield emit


@pytest.fixture
def client(mock_db, mock_emit):
    """Test client without lifespan: no database, worker or cleanup task."""
    return TestClient(app)


@pytest.fixture
def public_mocks():
    """Patch the query and recording functions used by the public routes."""
    with (
        patch("nullvault.routes.secret.get_secret_by_public_token", new_callable=AsyncMock) as mock_get,
        patch("nullvault.routes.secret.count_access_logs", new_callable=AsyncMock) as mock_count,
        patch("nullvault.routes.secret.burn_if_available", new_callable=AsyncMock) as mock_burn,
        patch("nullvault.routes.secret.record_access", new_callable=AsyncMock) as mock_record,
    ):
        mock_count.return_value = 0
        mock_burn.return_value = True
        mock_record.return_value = AccessRecord(ip="203.0.113.8", geo=None)
        yield {"get": mock_get, "count": mock_count, "burn": mock_burn, "record": mock_record}


@pytest.fixture
def control_mocks():
    """Patch the query and webhook functions used by the control routes."""
    with (
        patch("nullvault.routes.control.get_secret_by_control_token", new_callable=AsyncMock) as mock_get,
        patch("nullvault.routes.control.get_access_logs", new_callable=AsyncMock) as mock_logs,
        patch("nullvault.routes.control.set_webhook_url", new_callable=AsyncMock) as mock_set,
        patch("nullvault.routes.control.burn_if_available", new_callable=AsyncMock) as mock_burn,
        patch("nullvault.routes.control.fire_webhook", new_callable=AsyncMock) as mock_fire,
    ):
        mock_get.return_value = _secret()
        mock_logs.return_value = []
        mock_burn.return_value = True
        mock_fire.return_value = True
        yield {"get": mock_get, "logs": mock_logs, "set": mock_set, "burn": mock_burn, "fire": mock_fire}


# ── Create ───────────────────────────────────────────────────────────


class TestCreate:
    def test_creates_secret(self, client, mock_db, mock_emit):
        with patch("nullvault.routes.create.unix_now", return_value=1_000_000):
            resp = client.post("/create", json={"content": "  hunter2  ", "template": "crypto", "note": " db "})

        assert resp.status_code == 201
        body = resp.json()
        assert body["publicUrl"].startswith(f"{settings.base_url}/s/")
        assert body["controlUrl"].startswith(f"{settings.base_url}/c/")
        assert body["publicUrl"].rsplit("/", 1)[1] != body["controlUrl"].rsplit("/", 1)[1]
        assert body["expiresAt"] == 1_000_000 + settings.default_expiry_days * 86400

        stored = mock_db.add.call_args.args[0]
        assert stored.template == "crypto"
        assert stored.note == "db"
        assert stored.content != "hunter2"
        assert content_encryptor.decrypt(stored.content, aad=stored.public_token) == "hunter2"
        assert _emitted(mock_emit)[0].event_type == EventType.SECRET_CREATED

    def test_never_expires(self, client):
        resp = client.post("/create", json={"content": "x", "expiryDays": 0})
        assert resp.status_code == 201
        assert resp.json()["expiresAt"] is None

    def test_unknown_template_falls_back(self, client, mock_db):
        client.post("/create", json={"content": "x", "template": "nope"})
        assert mock_db.add.call_args.args[0].template == "default"

    @pytest.mark.parametrize("content", [None, "", "   \n"])
    def test_content_required(self, client, content):
        resp = client.post("/create", json={"content": content})
        assert resp.status_code == 400
        assert resp.json() == {"error": "content is required."}

    def test_content_too_long(self, client):
        resp = client.post("/create", json={"content": "a" * (settings.max_content_length + 1)})
        assert resp.status_code == 400
        assert resp.json() == {"error": f"content must be {settings.max_content_length} characters or fewer."}

    def test_invalid_body(self, client):
        resp = client.post("/create", content=b"not json", headers={"Content-Type": "application/json"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request body."}

    def test_rate_limited(self, client):
        async def _deny() -> None:
            raise HTTPException(status_code=429, detail="Too many requests.", headers={"Retry-After": "30"})

        app.dependency_overrides[limit_create] = _deny
        resp = client.post("/create", json={"content": "x"})
        assert resp.status_code == 429
        assert resp.json() == {"error": "Too many requests."}
        assert resp.headers["Retry-After"] == "30"


class TestCreateHelpers:
    def test_resolve_expiry(self):
        assert resolve_expiry(None, 0) == settings.default_expiry_days * 86400
        assert resolve_expiry(1.5, 100) == 100 + 129600
        assert resolve_expiry(0, 100) is None
        assert resolve_expiry(-3, 100) is None

    def test_clean_note(self):
        assert clean_note(None) is None
        assert clean_note("   ") is None
        assert len(clean_note("n" * 1000)) == settings.max_note_length


# ── Public page ──────────────────────────────────────────────────────


class TestViewSecret:
    def test_unknown_token(self, client, public_mocks, mock_emit):
        public_mocks["get"].return_value = None
        resp = client.get("/s/missing")
        assert resp.status_code == 200
        assert resp.json() == {"state": "unavailable", "template": "default", "token": ""}
        public_mocks["record"].assert_not_awaited()
        mock_emit.assert_not_awaited()

    def test_available(self, client, public_mocks, mock_emit):
        public_mocks["get"].return_value = _secret(template="banking")
        resp = client.get("/s/pub-token")

        assert resp.json() == {"state": "available", "template": "banking", "token": "pub-token"}
        public_mocks["record"].assert_awaited_once()
        event = _emitted(mock_emit)[0]
        assert event.event_type == EventType.SECRET_VIEWED
        assert event.data == {"first_access": True}

    def test_first_access_notifies_webhook(self, client, public_mocks, mock_emit):
        public_mocks["get"].return_value = _secret(webhook_url="https://hooks.example.net/x")
        client.get("/s/pub-token", headers={"User-Agent": CHROME})

        data = _emitted(mock_emit)[0].data
        assert data["event"] == "first_access"
        assert "webhook_url" not in data
        assert data["ip"] == "203.0.113.8"
        assert data["userAgent"] == CHROME

    def test_later_views_do_not_notify(self, client, public_mocks, mock_emit):
        public_mocks["get"].return_value = _secret(webhook_url="https://hooks.example.net/x")
        public_mocks["count"].return_value = 3
        client.get("/s/pub-token")
        assert _emitted(mock_emit)[0].data == {"first_access": False}

    def test_burned(self, client, public_mocks):
        public_mocks["get"].return_value = _secret(burned=True, burned_at=1_700_000_100)
        assert client.get("/s/pub-token").json()["state"] == "burned"

    def test_expired(self, client, public_mocks):
        public_mocks["get"].return_value = _secret(expires_at=1)
        assert client.get("/s/pub-token").json()["state"] == "burned"

    def test_security_headers(self, client, public_mocks):
        public_mocks["get"].return_value = None
        resp = client.get("/s/missing")
        for name, value in SECURITY_HEADERS.items():
            assert resp.headers[name] == value


class TestRevealSecret:
    def test_reveal_burns(self, client, public_mocks, mock_emit):
        public_mocks["get"].return_value = _secret()
        resp = client.post("/s/pub-token/reveal")

        assert resp.json() == {
            "state": "revealed",
            "template": "default",
            "token": "pub-token",
            "content": "hunter2",
            "burnsOnReveal": True,
        }
        public_mocks["burn"].assert_awaited_once()
        assert public_mocks["record"].call_args.kwargs == {"reveal_attempted": True, "reveal_succeeded": True}
        assert [e.event_type for e in _emitted(mock_emit)] == [EventType.SECRET_REVEALED, EventType.SECRET_BURNED]
        assert _emitted(mock_emit)[0].data["revealed"] is True
        assert "webhook_url" not in _emitted(mock_emit)[0].data

    def test_lost_burn_race(self, client, public_mocks, mock_emit):
        public_mocks["get"].return_value = _secret()
        public_mocks["burn"].return_value = False
        body = client.post("/s/pub-token/reveal").json()

        assert body["state"] == "burned"
        assert "content" not in body
        assert public_mocks["record"].call_args.kwargs == {"reveal_attempted": True, "reveal_succeeded": False}
        assert [e.event_type for e in _emitted(mock_emit)] == [EventType.SECRET_REVEAL_ATTEMPTED]

    def test_reusable_secret_not_burned(self, client, public_mocks, mock_emit):
        public_mocks["get"].return_value = _secret(burn_on_reveal=False)
        body = client.post("/s/pub-token/reveal").json()

        assert body["state"] == "revealed"
        assert body["content"] == "hunter2"
        assert body["burnsOnReveal"] is False
        public_mocks["burn"].assert_not_awaited()
        assert [e.event_type for e in _emitted(mock_emit)] == [EventType.SECRET_REVEALED]

    def test_already_burned(self, client, public_mocks):
        public_mocks["get"].return_value = _secret(burned=True, burned_at=1_700_000_100)
        body = client.post("/s/pub-token/reveal").json()
        assert body["state"] == "burned"
        public_mocks["burn"].assert_not_awaited()
        public_mocks["record"].assert_awaited_once()

    def test_expired(self, client, public_mocks):
        public_mocks["get"].return_value = _secret(expires_at=1)
        assert client.post("/s/pub-token/reveal").json()["state"] == "burned"
        public_mocks["burn"].assert_not_awaited()

    def test_unknown_token(self, client, public_mocks):
        public_mocks["get"].return_value = None
        assert client.post("/s/missing/reveal").json()["state"] == "unavailable"
        public_mocks["record"].assert_not_awaited()


# ── Control panel ────────────────────────────────────────────────────


class TestControlPanel:
    def test_404(self, client, control_mocks):
        control_mocks["get"].return_value = None
        resp = client.get("/c/nope")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Control panel not found."}

    def test_empty_history(self, client, control_mocks, mock_emit):
        body = client.get("/c/ctl-token").json()

        assert body["publicUrl"] == f"{settings.base_url}/s/pub-token"
        assert body["controlUrl"] == f"{settings.base_url}/c/ctl-token"
        assert body["stats"] == {"totalViews": 0, "revealAttempts": 0, "revealSuccesses": 0, "uniqueIps": 0}
        assert body["narrative"] == "No access events have been recorded for this link yet."
        assert body["retentionDays"] == settings.retention_days
        assert body["labelMeta"]["first_visit"] == {"text": "First visit", "color": "green"}
        assert _emitted(mock_emit)[0].event_type == EventType.CONTROL_VIEWED

    def test_report(self, client, control_mocks):
        control_mocks["logs"].return_value = [
            _log(1_700_000_030, "203.0.113.8", org="Comcast Cable", reveal_attempted=True, reveal_succeeded=True),
            _log(1_700_000_000, "203.0.113.8", ua="TelegramBot (like TwitterBot)", org="Telegram Messenger"),
        ]
        body = client.get("/c/ctl-token").json()

        assert body["stats"]["totalViews"] == 2
        assert body["stats"]["revealSuccesses"] == 1
        assert body["logs"][0]["labels"] == ["repeat_visit_same_ip", "rapid_revisit"]
        assert body["logs"][1]["labels"] == ["first_visit", "non_browser_user_agent"]
        assert body["logs"][0]["ipMasked"] == "203.0.113.xxx"
        assert body["logs"][0]["accessedAtDisplay"] == "2023-11-14 22:13:50"
        assert len(body["uniqueIpLogs"]) == 1
        assert body["uniqueIpLogs"][0]["networkType"] == "Residential / ISP"
        assert body["hints"][0]["type"] == "multi_ua_same_ip"
        assert body["narrative"].endswith("with certainty.")


class TestWebhook:
    def test_set(self, client, control_mocks, mock_emit):
        resp = client.post("/c/ctl-token/webhook", json={"webhookUrl": "https://hooks.example.net/x"})
        assert resp.json() == {"ok": True, "webhookUrl": "https://hooks.example.net/x"}
        assert control_mocks["set"].call_args.args[1:] == (7, "https://hooks.example.net/x")
        assert _emitted(mock_emit)[0].data == {"configured": True}

    def test_non_http_clears(self, client, control_mocks):
        resp = client.post("/c/ctl-token/webhook", json={"webhookUrl": "javascript:alert(1)"})
        assert resp.json() == {"ok": True, "webhookUrl": None}
        assert control_mocks["set"].call_args.args[1:] == (7, None)

    def test_clean_webhook_url(self):
        assert clean_webhook_url(None) is None
        assert clean_webhook_url("ftp://x") is None
        assert len(clean_webhook_url("https://" + "a" * 1000)) == settings.webhook.webhook_max_url_length

    def test_ping_without_url(self, client, control_mocks):
        resp = client.post("/c/ctl-token/webhook/test")
        assert resp.status_code == 400
        assert resp.json() == {"error": "No webhook URL configured."}
        control_mocks["fire"].assert_not_awaited()

    def test_ping(self, client, control_mocks):
        control_mocks["get"].return_value = _secret(webhook_url="https://hooks.example.net/x")
        resp = client.post("/c/ctl-token/webhook/test")
        assert resp.json() == {"ok": True}
        url, data = control_mocks["fire"].call_args.args
        assert url == "https://hooks.example.net/x"
        assert data["test"] is True

    def test_ping_failure(self, client, control_mocks):
        control_mocks["get"].return_value = _secret(webhook_url="https://hooks.example.net/x")
        control_mocks["fire"].return_value = False
        resp = client.post("/c/ctl-token/webhook/test")
        assert resp.status_code == 502
        assert resp.json() == {"error": "Test failed."}


class TestOwnerBurn:
    def test_burn(self, client, control_mocks, mock_emit):
        assert client.post("/c/ctl-token/burn").json() == {"ok": True}
        event = _emitted(mock_emit)[0]
        assert event.event_type == EventType.SECRET_BURNED
        assert event.data == {"reason": "owner"}

    def test_burn_is_idempotent(self, client, control_mocks, mock_emit):
        control_mocks["burn"].return_value = False
        assert client.post("/c/ctl-token/burn").json() == {"ok": True}
        mock_emit.assert_not_awaited()


# ── Health ───────────────────────────────────────────────────────────


class TestHealth:
    def test_ok(self, client):
        with patch("nullvault.routes.health.ping_database", new_callable=AsyncMock, return_value=True):
            resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"status": "ok"}

    def test_db_down(self, client):
        with patch("nullvault.routes.health.ping_database", new_callable=AsyncMock, return_value=False):
            resp = client.get("/health")
        assert resp.status_code == 500
        assert resp.json() == {"status": "error"}
