"""
Webhook update handling.

The FastAPI webhook route acknowledges Telegram immediately and hands the
update to spawn_update_task(), which runs the relay pipeline in the
background (fire-and-forget for fast 200 OK).
"""

import asyncio
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from filerelay.schemas import TelegramUpdate
from .logging_config import bot_logger as logger

if TYPE_CHECKING:
    from filerelay.services.relay import RelayPipeline


# Strong references to running tasks; asyncio only keeps weak ones
_background_tasks: set[asyncio.Task] = set()


async def handle_telegram_update(update_data: Any, pipeline: "RelayPipeline") -> None:
    """
    Process one webhook update.

    Only updates carrying a "message" are relayed; everything else is ignored.
    """
    try:
        update = TelegramUpdate.model_validate(update_data)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed update: {e.error_count()} validation error(s)")
        return

    if update.message is None:
        logger.debug(f"Ignoring update {update.update_id} without message")
        return

    await pipeline.process(update.message.chat.id, update.message.text)


def spawn_update_task(update_data: Any, pipeline: "RelayPipeline") -> asyncio.Task:
    """Schedule handle_telegram_update() without waiting for it."""
    task = asyncio.create_task(handle_telegram_update(update_data, pipeline))
    _background_tasks.add(task)
    task.add_done_callback(_on_update_task_done)
    return task


def _on_update_task_done(task: asyncio.Task) -> None:
    _background_tasks.discard(task)

    if task.cancelled():
        logger.warning("Update task cancelled before completion")
        return

    exc = task.exception()
    if exc is not None:
        # Usually the chat notice itself could not be delivered
        logger.error(f"Failed to process update: {exc}", exc_info=exc)


async def cancel_background_tasks() -> None:
    """Cancel update tasks still running (called on shutdown, before the HTTP client closes)."""
    pending = list(_background_tasks)
    if not pending:
        return

    logger.info(f"Cancelling {len(pending)} in-flight update task(s)")
    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)
