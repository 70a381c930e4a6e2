"""
Telegram Bot API client.

Thin wrapper around the Bot API methods the relay needs:
- sendMessage for replies and error notices
- sendPhoto / sendVideo / sendAudio / sendDocument via one parameterized upload
- setWebhook for the admin routes

Every call is a single attempt. There is no retry logic here.
"""

import httpx
from typing import Optional, Dict, Any

from filerelay.config import Settings
from filerelay.services.classifier import UploadKind


class TelegramAPIError(Exception):
    """Bot API replied with ok=false or with something that is not JSON."""


class TelegramAPI:
    """
    Client for the Telegram Bot API.

    Shares the process-wide httpx.AsyncClient so connection pooling is
    reused between resource downloads and uploads.
    """

    def __init__(self, settings: Settings, client: httpx.AsyncClient):
        self.settings = settings
        self.client = client

    def method_url(self, method: str) -> str:
        """Full URL for a Bot API method (token is part of the path)."""
        base = self.settings.telegram_api_base.rstrip("/")
        return f"{base}/bot{self.settings.telegram_bot_token}/{method}"

    async def send_message(self, chat_id: int, text: str) -> None:
        """
        Send a plain text message.

        Args:
            chat_id: Telegram chat ID
            text: Message text
        """
        response = await self.client.post(
            self.method_url("sendMessage"),
            json={"chat_id": chat_id, "text": text}
        )
        result = _parse_result(response, "Failed to send message")
        if not result.get("ok"):
            raise TelegramAPIError(f"Failed to send message: {result.get('description')}")

    async def send_file(
        self,
        chat_id: int,
        kind: UploadKind,
        data: bytes,
        file_name: str
    ) -> None:
        """
        Upload a file with the Bot API method matching kind.

        Args:
            chat_id: Telegram chat ID
            kind: Target media kind (selects method and form field)
            data: File content
            file_name: Filename shown in Telegram

        Raises:
            TelegramAPIError: if Telegram rejects the upload
        """
        response = await self.client.post(
            self.method_url(kind.method),
            data={"chat_id": str(chat_id)},
            files={kind.field: (file_name, data)}
        )
        result = _parse_result(response, f"Failed to send {kind.value}")
        if not result.get("ok"):
            raise TelegramAPIError(f"Failed to send {kind.value}: {result.get('description')}")

    async def set_webhook(self, url: str, secret_token: Optional[str] = None) -> Dict[str, Any]:
        """
        Call setWebhook. An empty url removes the webhook.

        Returns:
            Raw Bot API response; callers inspect "ok" themselves
        """
        payload: Dict[str, Any] = {"url": url}
        if secret_token:
            payload["secret_token"] = secret_token

        response = await self.client.post(self.method_url("setWebhook"), json=payload)
        return _parse_result(response, "Failed to set webhook")


def _parse_result(response: httpx.Response, error_prefix: str) -> Dict[str, Any]:
    try:
        result = response.json()
    except ValueError:
        raise TelegramAPIError(f"{error_prefix}: HTTP {response.status_code}")
    if not isinstance(result, dict):
        raise TelegramAPIError(f"{error_prefix}: HTTP {response.status_code}")
    return result
