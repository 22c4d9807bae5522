# notification_sync/core/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent.parent
ENV_FILE = BASE_DIR / ".env"

class Settings(BaseSettings):
    NOTIFICATIONS_API_URL: str = "http://localhost:5555/api/v1"
    NOTIFICATIONS_API_TOKEN: Optional[str] = None
    # Общий таймаут одного HTTP-запроса, в секундах
    NOTIFICATIONS_REQUEST_TIMEOUT: float = 20.0
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=ENV_FILE,
        env_file_encoding='utf-8',
        extra='ignore'
    )

settings = Settings()
