# funnelflow/config.py

import json
from typing import Annotated, List
from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """
    Настройки приложения (.env / переменные окружения).
    Объект создаётся явно и передаётся в create_app(), глобального экземпляра нет.
    """
    AUTH_SECRET_KEY: str
    AUTH_ALGORITHM: str = "HS256"
    AUTH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30   # 30 дней

    DATABASE_URL: str = "sqlite+aiosqlite:///./funnelflow.db"

    # в окружении: список через запятую или JSON-массив
    CORS_ORIGINS: Annotated[List[str], NoDecode] = ["https://funnelflow.live", "http://localhost:3000"]
    APP_ENV: str = "production"     # development показывает детали ошибок БД

    # Сброс пароля
    RESET_TOKEN_EXPIRE_MINUTES: int = 60
    RESET_LINK_BASE: str = "https://funnelflow.live/reset-password.html"

    # Почта (SendGrid)
    SENDGRID_API_KEY: str = ""
    MAIL_FROM_EMAIL: str = "noreply@funnelflow.live"
    MAIL_FROM_NAME: str = "FunnelFlow"

    LOG_DIR: str = "log"
    LOG_PRINT: str = "0"

    HOST: str = "127.0.0.1"
    PORT: int = 8000

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore"
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def split_origins(cls, value):
        if isinstance(value, str):
            text = value.strip()
            if text.startswith("["):
                return json.loads(text)
            return [origin.strip() for origin in text.split(",") if origin.strip()]
        return value

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("dev", "development")
