# tests/conftest.py
"""
Общие фикстуры и настройки для тестов.
"""

from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest

# Устанавливаем переменные окружения перед импортом модулей
os.environ.setdefault("REDIS_PASSWORD", "")
os.environ.setdefault("ENVIRONMENT", "test")

from src.common.constants import VerificationStatus  # noqa: E402
from src.shared.models.profile import CustomerProfile  # noqa: E402


# =============================================================================
# ФИКСТУРЫ КОНФИГУРАЦИИ
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Корневая директория проекта."""
    return Path(__file__).parent.parent


@pytest.fixture(scope="session")
def config_path(project_root: Path) -> Path:
    """Путь к файлу конфигурации."""
    return project_root / "config" / "config.json"


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Мок конфигурации для тестов."""
    return {
        "_comment_test": "тестовая конфигурация",
        "PROJECT_NAME": "autoparts_test",
        "VERSION": "1.0.0-test",
        "DEBUG": False,
        "ENVIRONMENT": "test",
        "SERVICE_IDENTITY": "Order Service",
        "SERVICE_SLUG": "order-service",
        "SERVICE_PORT": 8010,
        "LOG_LEVEL": "INFO",
        "LOG_TO_FILE": False,
        "LOG_FORMAT": "colored",
        "REDIS_HOST": "localhost",
        "REDIS_PORT": 6379,
        "REDIS_DB": 1,
        "EVENTS_CHANNEL_PREFIX": "test.events",
        "USER_SERVICE_URL": "http://users.test:9000",
        "SERVICE_CLIENT_TIMEOUT": 10.0,
        "SERVICE_CLIENT_RETRY_ATTEMPTS": 2,
        "SERVICE_CLIENT_RETRY_DELAY": 0.5,
        "ANALYTICS_TIMEOUT": 2.0,
        "TRUSTED_SERVICES": ["Auth Service", "Order Service"],
    }


# =============================================================================
# ФИКСТУРЫ ИНФРАСТРУКТУРЫ (МОКИ)
# =============================================================================

@pytest.fixture
def mock_redis() -> MagicMock:
    """Мок RedisClient (подключён, PUBLISH доходит до одного подписчика)."""
    redis = MagicMock()
    redis.is_connected = True
    redis.publish = AsyncMock(return_value=1)
    redis.health_check = AsyncMock(return_value=True)
    return redis


@pytest.fixture
def mock_event_bus() -> AsyncMock:
    """Мок шины событий."""
    event_bus = AsyncMock()
    event_bus.publish = AsyncMock(return_value=True)
    event_bus.publish_event = AsyncMock(return_value=True)
    return event_bus


@pytest.fixture
def reset_globals() -> Generator[None, None, None]:
    """Сбрасывает синглтоны инфраструктуры до и после теста."""
    import src.infra.event_bus as event_bus_module
    import src.services.users.dependencies as users_deps
    from src.infra.redis_client import RedisClient

    def _reset() -> None:
        RedisClient._instance = None
        RedisClient._client = None
        event_bus_module._event_bus = None
        users_deps._repository = None
        users_deps._analytics = None
        users_deps._profile_service = None

    _reset()
    yield
    _reset()


# =============================================================================
# ФИКСТУРЫ МОДЕЛЕЙ
# =============================================================================

@pytest.fixture
def sample_profile() -> CustomerProfile:
    """Пример профиля клиента."""
    return CustomerProfile(
        id=7,
        user_id=42,
        company_name="Запчасти Плюс",
        industry="automotive",
        company_size="11-50",
        verification_status=VerificationStatus.PENDING,
        created_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
        updated_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def registration_payload() -> dict[str, Any]:
    """Данные события user.registered от Auth Service."""
    return {
        "user_id": 42,
        "email": "buyer@example.com",
        "company_name": "Запчасти Плюс",
        "industry": "automotive",
        "event_type": "user.registered",
    }


# =============================================================================
# УТИЛИТЫ
# =============================================================================

@pytest.fixture
def temp_config_file(tmp_path: Path, mock_config: dict[str, Any]) -> Path:
    """Создаёт временный файл конфигурации."""
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(mock_config, ensure_ascii=False, indent=2))
    return config_file
