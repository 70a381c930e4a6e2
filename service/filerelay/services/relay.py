"""
URL-to-Telegram relay pipeline.

Pipeline stages (strictly in order):
1. Validate the message text as an absolute URL
2. Fetch the resource (streamed GET)
3. Size gate on the declared Content-Length, before reading the body
4. Read the body into memory
5. Derive the display name from the URL path
6. Classify (photo / video / audio / document)
7. Upload with the matching Bot API method

Every failure after stage 1 is turned into a chat notice at the pipeline
boundary. Nothing is raised back to the webhook dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

import httpx

from filerelay.services.classifier import UploadKind, classify
from filerelay.telegram_bot.logging_config import bot_logger as logger
from filerelay.utils.urls import display_name_from_url, is_valid_url

if TYPE_CHECKING:
    from filerelay.telegram_bot.telegram_api import TelegramAPI

MAX_FILE_SIZE = 50 * 1024 * 1024  # Bot API upload limit

INVALID_URL_MESSAGE = "Please send a valid URL to download the file."
FILE_TOO_LARGE_MESSAGE = "The file is too large to send (maximum: 50 MB)."


class DownloadError(Exception):
    """Remote server answered with a non-2xx status."""


class FileTooLargeError(Exception):
    """Declared Content-Length is over MAX_FILE_SIZE."""

    def __init__(self, content_length: int):
        super().__init__(f"Declared size {content_length} exceeds {MAX_FILE_SIZE} bytes")
        self.content_length = content_length


@dataclass
class FetchedResource:
    """A downloaded resource and the metadata its server declared."""
    data: bytes
    file_name: str
    media_type: Optional[str] = None
    content_length: Optional[int] = None


@dataclass(frozen=True)
class RelayOutcome:
    """Result of one pipeline run: either a delivered upload or a chat notice."""
    kind: Optional[UploadKind] = None
    notice: Optional[str] = None

    @classmethod
    def delivered(cls, kind: UploadKind) -> "RelayOutcome":
        return cls(kind=kind)

    @classmethod
    def notify(cls, text: str) -> "RelayOutcome":
        return cls(notice=text)


def parse_content_length(value: Optional[str]) -> Optional[int]:
    """Declared length in bytes; None when absent or unparseable."""
    if value is None:
        return None
    try:
        length = int(value.strip())
    except ValueError:
        return None
    return length if length >= 0 else None


class RelayPipeline:
    """Fetches URLs sent to the bot and re-uploads them to the chat."""

    def __init__(self, api: TelegramAPI, client: httpx.AsyncClient) -> None:
        self._api = api
        self._client = client

    async def process(self, chat_id: int, text: Optional[str]) -> None:
        """Run the pipeline and send the resulting notice, if any, to the chat."""
        outcome = await self.run(chat_id, text)
        if outcome.notice is not None:
            await self._api.send_message(chat_id, outcome.notice)

    async def run(self, chat_id: int, text: Optional[str]) -> RelayOutcome:
        """Run all pipeline stages and map every failure to a notice."""

        # Stage 1: URL validation (guidance message, not an error)
        if not is_valid_url(text):
            logger.info(f"Chat {chat_id}: message is not a URL")
            return RelayOutcome.notify(INVALID_URL_MESSAGE)

        url = text.strip()
        try:
            # Stages 2-5
            resource = await self.fetch(url)

            # Stage 6
            kind = classify(resource.media_type, resource.file_name)
            logger.info(
                f"Chat {chat_id}: relaying {resource.file_name} "
                f"({resource.media_type or 'no content-type'}, {len(resource.data)} bytes) as {kind.value}"
            )

            # Stage 7
            await self._api.send_file(chat_id, kind, resource.data, resource.file_name)
        except FileTooLargeError as e:
            logger.info(f"Chat {chat_id}: {e}")
            return RelayOutcome.notify(FILE_TOO_LARGE_MESSAGE)
        except Exception as e:
            # httpx timeouts usually carry an empty message
            reason = str(e) or type(e).__name__
            logger.warning(f"Chat {chat_id}: relay failed: {reason}")
            return RelayOutcome.notify(f"Error: {reason}")

        return RelayOutcome.delivered(kind)

    async def fetch(self, url: str) -> FetchedResource:
        """
        Download url into memory.

        The body is only read after the declared size passed the gate.
        Missing or unparseable Content-Length is treated as unknown and allowed.

        Raises:
            DownloadError: non-2xx response
            FileTooLargeError: declared size over MAX_FILE_SIZE
        """
        async with self._client.stream("GET", url, follow_redirects=True) as response:
            if not response.is_success:
                raise DownloadError(f"Failed to download file: {response.reason_phrase}")

            content_length = parse_content_length(response.headers.get("content-length"))
            if content_length is not None and content_length > MAX_FILE_SIZE:
                raise FileTooLargeError(content_length)

            data = await response.aread()

        return FetchedResource(
            data=data,
            file_name=display_name_from_url(url),
            media_type=response.headers.get("content-type"),
            content_length=content_length,
        )
