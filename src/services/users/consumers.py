# src/services/users/consumers.py
"""
Обработчики событий других сервисов.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from src.infra.event_dispatch import EventDispatcher
from src.services.users.service import UserProfileService
from src.shared.events.user_events import EventTypes


def build_dispatcher(get_service: Callable[[], UserProfileService]) -> EventDispatcher:
    """
    Таблица обработчиков User Service.

    Args:
        get_service: Возвращает сервис профилей в момент обработки события
    """
    dispatcher = EventDispatcher()

    async def handle_user_registered(data: dict[str, Any]) -> None:
        # Auth Service: профиль клиента создаётся при регистрации
        await get_service().create_profile_from_registration(data)

    dispatcher.register(
        EventTypes.USER_REGISTERED,
        handle_user_registered,
        required_fields=("user_id",),
    )
    return dispatcher
