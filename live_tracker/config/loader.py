# live_tracker/config/loader.py
"""
Загрузчик конфигурации хаба.
Единственный источник истины — config/config.json.
Адрес сервиса и уровень логирования переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    env_path = os.getenv("LIVE_TRACKER_CONFIG")
    if env_path:
        return Path(env_path)
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь без ключей-комментариев."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    return {k: v for k, v in data.items() if not k.startswith("_comment_")}


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки."""
    PROJECT_NAME: str = "live_tracker"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"


class DeploymentSettings(BaseModel):
    """Адрес, на котором слушает хаб."""
    PRESENCE_HUB_HOST: str = "0.0.0.0"
    PRESENCE_HUB_PORT: int = 3000


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: str = "logs/live_tracker.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760

    @field_validator("LOG_FORMAT")
    @classmethod
    def check_format(cls, v: str) -> str:
        """Допустимы только json и colored."""
        if v not in ("json", "colored"):
            raise ValueError(f"Неизвестный формат логов: {v}")
        return v


class HubSettings(BaseModel):
    """
    Параметры хаба присутствия.

    Интервалы в секундах, окно rate-limit в миллисекундах.
    """
    REGISTRATION_TIMEOUT: float = Field(default=30.0, gt=0)
    LOCATION_TTL: float = Field(default=300.0, gt=0)
    JANITOR_INTERVAL: float = Field(default=60.0, gt=0)
    RATE_LIMIT_WINDOW_MS: int = Field(default=1000, gt=0)
    RATE_LIMIT_MAX_REQUESTS: int = Field(default=10, gt=0)
    MAX_SESSIONS: int = Field(default=1000, gt=0)
    DEFAULT_DISPLAY_NAME: str = "Anonymous"

    @property
    def location_ttl_ms(self) -> int:
        """TTL локации в миллисекундах."""
        return int(self.LOCATION_TTL * 1000)


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    system: SystemSettings = Field(default_factory=SystemSettings)
    deployment: DeploymentSettings = Field(default_factory=DeploymentSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    hub: HubSettings = Field(default_factory=HubSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Хост, порт и уровень логов переопределяются из переменных окружения.
        """
        data = load_config_json()
        log_level = os.getenv("LOG_LEVEL", data.get("LOG_LEVEL", "INFO"))

        return cls(
            system=SystemSettings(
                PROJECT_NAME=data.get("PROJECT_NAME", "live_tracker"),
                VERSION=data.get("VERSION", "1.0.0"),
                DEBUG=data.get("DEBUG", False),
                LOG_LEVEL=log_level,
                ENVIRONMENT=os.getenv("ENVIRONMENT", data.get("ENVIRONMENT", "development")),
            ),
            deployment=DeploymentSettings(
                PRESENCE_HUB_HOST=os.getenv("HOST", data.get("PRESENCE_HUB_HOST", "0.0.0.0")),
                PRESENCE_HUB_PORT=int(os.getenv("PORT", data.get("PRESENCE_HUB_PORT", 3000))),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=log_level,
                LOG_TO_FILE=data.get("LOG_TO_FILE", False),
                LOG_FILE_PATH=data.get("LOG_FILE_PATH", "logs/live_tracker.log"),
                LOG_FORMAT=data.get("LOG_FORMAT", "colored"),
                LOG_MAX_BYTES=data.get("LOG_MAX_BYTES", 10485760),
            ),
            hub=HubSettings(
                REGISTRATION_TIMEOUT=data.get("REGISTRATION_TIMEOUT", 30.0),
                LOCATION_TTL=data.get("LOCATION_TTL", 300.0),
                JANITOR_INTERVAL=data.get("JANITOR_INTERVAL", 60.0),
                RATE_LIMIT_WINDOW_MS=data.get("RATE_LIMIT_WINDOW_MS", 1000),
                RATE_LIMIT_MAX_REQUESTS=data.get("RATE_LIMIT_MAX_REQUESTS", 10),
                MAX_SESSIONS=int(os.getenv("MAX_SESSIONS", data.get("MAX_SESSIONS", 1000))),
                DEFAULT_DISPLAY_NAME=data.get("DEFAULT_DISPLAY_NAME", "Anonymous"),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
