from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Telegram
    telegram_bot_token: str
    telegram_webhook_secret: str
    telegram_api_base: str = "https://api.telegram.org"

    # Public base URL for /setwebhook (empty: derive from the incoming request)
    webhook_base_url: str = ""

    # Outbound HTTP (resource fetch + Bot API calls)
    http_timeout_seconds: float = 60.0

    # Environment
    environment: str = "development"
    log_level: str = "INFO"

    @field_validator("telegram_bot_token", "telegram_webhook_secret")
    @classmethod
    def require_non_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be empty")
        return v.strip()

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        frozen = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
