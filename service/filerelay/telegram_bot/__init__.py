"""
Telegram side of the URL file relay.

ARCHITECTURE: webhook in, Bot API out.
- main.py receives the webhook and checks the secret token
- bot.py spawns the relay pipeline in the background
- services/relay.py fetches and classifies the resource
- telegram_api.py uploads it with sendPhoto/sendVideo/sendAudio/sendDocument
"""

from .bot import cancel_background_tasks, handle_telegram_update, spawn_update_task
from .telegram_api import TelegramAPI, TelegramAPIError

__all__ = [
    "cancel_background_tasks",
    "handle_telegram_update",
    "spawn_update_task",
    "TelegramAPI",
    "TelegramAPIError",
]
