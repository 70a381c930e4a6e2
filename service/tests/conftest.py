"""
Shared fixtures.

Settings are read from the environment, so fake credentials are set
before any test imports filerelay.main.
"""

import os

import httpx
import pytest

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456789:TEST-TOKEN")
os.environ.setdefault("TELEGRAM_WEBHOOK_SECRET", "test-secret")

from filerelay.config import Settings  # noqa: E402


@pytest.fixture
def settings() -> Settings:
    return Settings(
        telegram_bot_token="123456789:TEST-TOKEN",
        telegram_webhook_secret="test-secret",
        _env_file=None,
    )


@pytest.fixture
def mock_client():
    """
    Factory for an httpx.AsyncClient backed by MockTransport.

    Returns (client, requests): every request the handler served is
    appended to requests.
    """
    def make(handler):
        requests: list[httpx.Request] = []

        def record(request: httpx.Request):
            requests.append(request)
            return handler(request)

        return httpx.AsyncClient(transport=httpx.MockTransport(record)), requests

    return make
