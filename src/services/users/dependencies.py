# src/services/users/dependencies.py
"""
Зависимости для User Service.
"""

from __future__ import annotations

from typing import Optional

from src.common.constants import TypeMsg
from src.common.logger import log_info
from src.infra.api_clients import AnalyticsServiceClient
from src.infra.event_bus import get_event_bus
from src.services.users.repository import InMemoryProfileRepository, ProfileRepository
from src.services.users.service import UserProfileService

# Глобальные экземпляры
_repository: Optional[ProfileRepository] = None
_analytics: Optional[AnalyticsServiceClient] = None
_profile_service: Optional[UserProfileService] = None


def get_profile_service() -> UserProfileService:
    """Получение экземпляра UserProfileService (создаётся при первом обращении)."""
    global _repository, _analytics, _profile_service
    if _profile_service is None:
        if _repository is None:
            _repository = InMemoryProfileRepository()
        if _analytics is None:
            _analytics = AnalyticsServiceClient()
        _profile_service = UserProfileService(_repository, get_event_bus(), _analytics)
    return _profile_service


async def init_dependencies() -> None:
    """Инициализация сервисов после подключения инфраструктуры."""
    global _profile_service
    # Шина событий пересоздаётся в lifespan, сервис должен взять новую
    _profile_service = None
    get_profile_service()
    await log_info("User Service инициализирован", type_msg=TypeMsg.INFO)


async def close_dependencies() -> None:
    """Закрытие ресурсов."""
    global _analytics, _profile_service
    if _analytics is not None:
        await _analytics.close()
        _analytics = None
    _profile_service = None
