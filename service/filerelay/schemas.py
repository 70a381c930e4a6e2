from pydantic import BaseModel
from typing import Optional


# Inbound webhook models (only the fields the relay consumes)

class TelegramChat(BaseModel):
    id: int


class TelegramMessage(BaseModel):
    chat: TelegramChat
    text: Optional[str] = None  # absent for photos, stickers, voice...


class TelegramUpdate(BaseModel):
    update_id: Optional[int] = None
    message: Optional[TelegramMessage] = None
