"""
Tests for the FastAPI routes: webhook dispatcher, admin routes, fallback.
"""

import json
import time
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from fastapi.testclient import TestClient

from filerelay.main import app
from filerelay.telegram_bot.telegram_api import TelegramAPIError

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"
UPDATE = {
    "update_id": 1,
    "message": {"message_id": 1, "chat": {"id": 456}, "text": "https://example.com/cat.png"},
}


@pytest.fixture
def client():
    """Test client with startup/shutdown hooks executed."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def spawn():
    with patch("filerelay.main.spawn_update_task") as mock_spawn:
        yield mock_spawn


class TestWebhookEndpoint:

    def test_valid_secret_acknowledged_and_spawned(self, client, spawn):
        response = client.post("/endpoint", json=UPDATE, headers={SECRET_HEADER: "test-secret"})

        assert response.status_code == 200
        assert response.text == "Ok"
        spawn.assert_called_once()
        update_data, pipeline = spawn.call_args.args
        assert update_data == UPDATE
        assert pipeline is app.state.pipeline

    def test_missing_secret_rejected(self, client, spawn):
        response = client.post("/endpoint", json=UPDATE)

        assert response.status_code == 403
        spawn.assert_not_called()

    def test_wrong_secret_rejected(self, client, spawn):
        response = client.post("/endpoint", json=UPDATE, headers={SECRET_HEADER: "guess"})

        assert response.status_code == 403
        assert response.text == "Unauthorized"
        spawn.assert_not_called()

    def test_update_without_message_acknowledged(self, client, spawn):
        response = client.post(
            "/endpoint",
            json={"update_id": 2, "callback_query": {"id": "x"}},
            headers={SECRET_HEADER: "test-secret"},
        )

        assert response.status_code == 200
        assert response.text == "Ok"
        spawn.assert_not_called()

    def test_invalid_json_acknowledged(self, client, spawn):
        response = client.post(
            "/endpoint",
            content=b"{not json",
            headers={SECRET_HEADER: "test-secret", "Content-Type": "application/json"},
        )

        assert response.status_code == 200
        assert response.text == "Ok"
        spawn.assert_not_called()

    def test_acknowledged_even_when_pipeline_fails(self, client):
        """The response never waits for, or depends on, the relay outcome."""
        failing = AsyncMock(side_effect=RuntimeError("boom"))
        app.state.pipeline.process = failing

        response = client.post("/endpoint", json=UPDATE, headers={SECRET_HEADER: "test-secret"})

        assert response.status_code == 200
        assert response.text == "Ok"

        # The relay runs on the app loop after the response was sent
        for _ in range(200):
            if failing.await_count:
                break
            time.sleep(0.01)
        failing.assert_awaited_once_with(456, "https://example.com/cat.png")

    def test_shutdown_cancels_in_flight_relays(self):
        with patch("filerelay.main.cancel_background_tasks", new_callable=AsyncMock) as cancel:
            with TestClient(app):
                cancel.assert_not_awaited()

        cancel.assert_awaited_once()


class TestSetWebhook:

    def test_registers_request_host(self, client):
        api = app.state.telegram_api
        with patch.object(api, "set_webhook", AsyncMock(return_value={"ok": True, "result": True})) as set_webhook:
            response = client.get("/setwebhook")

        assert response.status_code == 200
        assert response.text == "Webhook registered successfully!"
        set_webhook.assert_awaited_once_with("http://testserver/endpoint", secret_token="test-secret")

    def test_post_also_accepted(self, client):
        api = app.state.telegram_api
        with patch.object(api, "set_webhook", AsyncMock(return_value={"ok": True})):
            response = client.post("/setwebhook")

        assert response.status_code == 200

    def test_failure_returns_json_dump(self, client):
        failure = {"ok": False, "error_code": 400, "description": "Bad Request: bad webhook"}
        api = app.state.telegram_api
        with patch.object(api, "set_webhook", AsyncMock(return_value=failure)):
            response = client.get("/setwebhook")

        assert response.status_code == 500
        assert response.text == f"Failed to register webhook: {json.dumps(failure, indent=2)}"

    def test_transport_error_returns_500(self, client):
        api = app.state.telegram_api
        error = httpx.ConnectError("connection refused")
        with patch.object(api, "set_webhook", AsyncMock(side_effect=error)):
            response = client.get("/setwebhook")

        assert response.status_code == 500
        assert "connection refused" in response.text


class TestUnregisterWebhook:

    def test_clears_webhook(self, client):
        api = app.state.telegram_api
        with patch.object(api, "set_webhook", AsyncMock(return_value={"ok": True})) as set_webhook:
            response = client.get("/unregisterwebhook")

        assert response.status_code == 200
        assert response.text == "Webhook unregistered successfully!"
        set_webhook.assert_awaited_once_with("")

    def test_failure_returns_json_dump(self, client):
        failure = {"ok": False, "error_code": 401, "description": "Unauthorized"}
        api = app.state.telegram_api
        with patch.object(api, "set_webhook", AsyncMock(return_value=failure)):
            response = client.post("/unregisterwebhook")

        assert response.status_code == 500
        assert response.text.startswith("Failed to unregister webhook: {")
        assert '"description": "Unauthorized"' in response.text

    def test_unparseable_reply_returns_500(self, client):
        api = app.state.telegram_api
        error = TelegramAPIError("Failed to set webhook: HTTP 502")
        with patch.object(api, "set_webhook", AsyncMock(side_effect=error)):
            response = client.get("/unregisterwebhook")

        assert response.status_code == 500


class TestFallback:

    @pytest.mark.parametrize("method,path", [
        ("GET", "/"),
        ("GET", "/docs"),
        ("POST", "/something/else"),
        ("GET", "/endpoint"),
    ])
    def test_no_handler(self, client, method, path):
        response = client.request(method, path)

        assert response.status_code == 200
        assert response.text == "No handler for this request"
