# src/config/loader.py
"""
Загрузчик конфигурации проекта.
Единственный источник истины: config/config.json.
Секретные данные и адреса сервисов переопределяются из переменных окружения.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.common.constants import PeerService


# =============================================================================
# ОПРЕДЕЛЕНИЕ ПУТЕЙ
# =============================================================================

def get_project_root() -> Path:
    """Возвращает корневую директорию проекта."""
    return Path(__file__).parent.parent.parent


def get_config_path() -> Path:
    """Возвращает путь к файлу конфигурации."""
    return get_project_root() / "config" / "config.json"


def load_config_json() -> dict[str, Any]:
    """Загружает config.json и возвращает словарь."""
    config_path = get_config_path()
    if not config_path.exists():
        raise FileNotFoundError(f"Файл конфигурации не найден: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        return json.load(f)


# =============================================================================
# PYDANTIC МОДЕЛИ КОНФИГУРАЦИИ
# =============================================================================

class SystemSettings(BaseModel):
    """Системные настройки и идентичность текущего сервиса."""
    PROJECT_NAME: str = "autoparts"
    VERSION: str = "1.0.0"
    DEBUG: bool = True
    ENVIRONMENT: str = "development"
    # Имя сервиса для заголовка X-Service-Name
    SERVICE_IDENTITY: str = PeerService.USER.value
    # Короткое имя сервиса для конверта событий
    SERVICE_SLUG: str = "user-service"
    SERVICE_DESCRIPTION: str = ""
    SERVICE_PORT: int = 8000


class LoggingSettings(BaseModel):
    """Настройки логирования."""
    LOG_LEVEL: str = "DEBUG"
    LOG_TO_FILE: bool = True
    LOG_FILE_PATH: str = "logs/app.log"
    LOG_FORMAT: str = "colored"
    LOG_MAX_BYTES: int = 10485760
    LOG_BACKUP_COUNT: int = 5


class RedisSettings(BaseModel):
    """Настройки Redis (брокер Pub/Sub)."""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_PASSWORD: str = ""
    REDIS_MAX_CONNECTIONS: int = 50

    @field_validator("REDIS_PASSWORD", mode="before")
    @classmethod
    def get_from_env(cls, v: str) -> str:
        """Получает пароль из переменных окружения."""
        if not v:
            return os.getenv("REDIS_PASSWORD", "")
        return v

    @property
    def url(self) -> str:
        """Возвращает URL для подключения к Redis."""
        auth = f":{self.REDIS_PASSWORD}@" if self.REDIS_PASSWORD else ""
        return f"redis://{auth}{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"


class EventSettings(BaseModel):
    """Настройки шины доменных событий."""
    EVENTS_CHANNEL_PREFIX: str = "autoparts.events"
    EVENTS_RESUBSCRIBE_DELAY: float = Field(default=5.0, gt=0)

    @property
    def subscribe_pattern(self) -> str:
        """Паттерн для подписки на все события платформы."""
        return f"{self.EVENTS_CHANNEL_PREFIX}.*"


class ServiceClientSettings(BaseModel):
    """Адреса сервисов и политика межсервисных вызовов."""
    AUTH_SERVICE_URL: str = "http://auth-service:8000"
    USER_SERVICE_URL: str = "http://user-service:8000"
    BIDDING_SERVICE_URL: str = "http://bidding-service:8000"
    ORDER_SERVICE_URL: str = "http://order-service:8000"
    PAYMENT_SERVICE_URL: str = "http://payment-service:8000"
    ANALYTICS_SERVICE_URL: str = "http://analytics-service:8000"
    VIN_OCR_SERVICE_URL: str = "http://vin-ocr-service:8000"
    NOTIFICATION_SERVICE_URL: str = "http://notification-service:8000"
    SERVICE_CLIENT_TIMEOUT: float = 30.0
    SERVICE_CLIENT_RETRY_ATTEMPTS: int = Field(default=3, ge=1)
    SERVICE_CLIENT_RETRY_DELAY: float = Field(default=1.0, ge=0.0)
    ANALYTICS_TIMEOUT: float = 5.0


class TrustSettings(BaseModel):
    """Список доверенных сервисов. Загружается один раз при старте."""
    model_config = ConfigDict(frozen=True)

    TRUSTED_SERVICES: frozenset[str] = Field(
        default_factory=lambda: frozenset(s.value for s in PeerService)
    )

    @field_validator("TRUSTED_SERVICES", mode="before")
    @classmethod
    def to_frozenset(cls, v: Any) -> frozenset[str]:
        """Список из config.json превращается в неизменяемое множество."""
        if v is None:
            return frozenset(s.value for s in PeerService)
        return frozenset(v)


# =============================================================================
# ГЛАВНЫЙ КЛАСС НАСТРОЕК
# =============================================================================

class Settings(BaseSettings):
    """
    Главный класс настроек приложения.
    Агрегирует все секции конфигурации.
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    system: SystemSettings = Field(default_factory=SystemSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    events: EventSettings = Field(default_factory=EventSettings)
    services: ServiceClientSettings = Field(default_factory=ServiceClientSettings)
    trust: TrustSettings = Field(default_factory=TrustSettings)

    @classmethod
    def from_config_json(cls) -> "Settings":
        """
        Создаёт объект Settings из config.json.
        Секреты и адреса переопределяются из переменных окружения.
        """
        config_data = load_config_json()

        # Фильтруем комментарии (ключи, начинающиеся с _comment_)
        filtered_data = {k: v for k, v in config_data.items() if not k.startswith("_comment_")}

        def env_or_config(key: str, default: Any) -> Any:
            return os.getenv(key, filtered_data.get(key, default))

        return cls(
            system=SystemSettings(
                PROJECT_NAME=filtered_data.get("PROJECT_NAME", "autoparts"),
                VERSION=filtered_data.get("VERSION", "1.0.0"),
                DEBUG=filtered_data.get("DEBUG", True),
                ENVIRONMENT=env_or_config("ENVIRONMENT", "development"),
                SERVICE_IDENTITY=env_or_config("SERVICE_IDENTITY", PeerService.USER.value),
                SERVICE_SLUG=env_or_config("SERVICE_SLUG", "user-service"),
                SERVICE_DESCRIPTION=filtered_data.get("SERVICE_DESCRIPTION", ""),
                SERVICE_PORT=int(env_or_config("SERVICE_PORT", 8000)),
            ),
            logging=LoggingSettings(
                LOG_LEVEL=env_or_config("LOG_LEVEL", "DEBUG"),
                LOG_TO_FILE=filtered_data.get("LOG_TO_FILE", True),
                LOG_FILE_PATH=filtered_data.get("LOG_FILE_PATH", "logs/app.log"),
                LOG_FORMAT=filtered_data.get("LOG_FORMAT", "json"),
                LOG_MAX_BYTES=filtered_data.get("LOG_MAX_BYTES", 10485760),
                LOG_BACKUP_COUNT=filtered_data.get("LOG_BACKUP_COUNT", 5),
            ),
            redis=RedisSettings(
                REDIS_HOST=env_or_config("REDIS_HOST", "localhost"),
                REDIS_PORT=int(env_or_config("REDIS_PORT", 6379)),
                REDIS_DB=filtered_data.get("REDIS_DB", 0),
                REDIS_PASSWORD=env_or_config("REDIS_PASSWORD", ""),
                REDIS_MAX_CONNECTIONS=filtered_data.get("REDIS_MAX_CONNECTIONS", 50),
            ),
            events=EventSettings(
                EVENTS_CHANNEL_PREFIX=filtered_data.get("EVENTS_CHANNEL_PREFIX", "autoparts.events"),
                EVENTS_RESUBSCRIBE_DELAY=filtered_data.get("EVENTS_RESUBSCRIBE_DELAY", 5.0),
            ),
            services=ServiceClientSettings(
                AUTH_SERVICE_URL=env_or_config("AUTH_SERVICE_URL", "http://auth-service:8000"),
                USER_SERVICE_URL=env_or_config("USER_SERVICE_URL", "http://user-service:8000"),
                BIDDING_SERVICE_URL=env_or_config("BIDDING_SERVICE_URL", "http://bidding-service:8000"),
                ORDER_SERVICE_URL=env_or_config("ORDER_SERVICE_URL", "http://order-service:8000"),
                PAYMENT_SERVICE_URL=env_or_config("PAYMENT_SERVICE_URL", "http://payment-service:8000"),
                ANALYTICS_SERVICE_URL=env_or_config("ANALYTICS_SERVICE_URL", "http://analytics-service:8000"),
                VIN_OCR_SERVICE_URL=env_or_config("VIN_OCR_SERVICE_URL", "http://vin-ocr-service:8000"),
                NOTIFICATION_SERVICE_URL=env_or_config(
                    "NOTIFICATION_SERVICE_URL", "http://notification-service:8000"
                ),
                SERVICE_CLIENT_TIMEOUT=float(filtered_data.get("SERVICE_CLIENT_TIMEOUT", 30.0)),
                SERVICE_CLIENT_RETRY_ATTEMPTS=filtered_data.get("SERVICE_CLIENT_RETRY_ATTEMPTS", 3),
                SERVICE_CLIENT_RETRY_DELAY=float(filtered_data.get("SERVICE_CLIENT_RETRY_DELAY", 1.0)),
                ANALYTICS_TIMEOUT=float(filtered_data.get("ANALYTICS_TIMEOUT", 5.0)),
            ),
            trust=TrustSettings(
                TRUSTED_SERVICES=filtered_data.get("TRUSTED_SERVICES"),
            ),
        )


@lru_cache()
def get_settings() -> Settings:
    """
    Возвращает синглтон настроек приложения.
    Использует кэширование для производительности.
    """
    from dotenv import load_dotenv

    # Загружаем .env файл
    env_path = get_project_root() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    return Settings.from_config_json()


# Экспорт синглтона для удобного импорта
settings = get_settings()
