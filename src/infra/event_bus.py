# src/infra/event_bus.py
"""
Шина доменных событий на базе Redis Pub/Sub.

Публикация по принципу fire-and-forget: без подтверждений, повторов и хранения.
Подписчики, которые были недоступны в момент публикации, событие теряют.

Каналы: "{prefix}.{event_type}", например
"autoparts.events.user.profile.updated". Подписчики используют
паттерн "{prefix}.*".
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from src.common.logger import log_error, log_info
from src.common.constants import TypeMsg
from src.infra.redis_client import RedisClient
from src.shared.events.base import DomainEvent, EventEnvelope


class EventBus:
    """
    Публикатор доменных событий.

    Ошибка публикации никогда не пробрасывается вызывающему коду:
    она логируется с типом события и идентификатором субъекта.
    """

    def __init__(
        self,
        redis: RedisClient,
        service_slug: str,
        channel_prefix: str = "autoparts.events",
    ) -> None:
        self._redis = redis
        self._service_slug = service_slug
        self._channel_prefix = channel_prefix

    @property
    def service_slug(self) -> str:
        return self._service_slug

    def channel_for(self, event_type: str) -> str:
        """Имя канала для типа события."""
        return f"{self._channel_prefix}.{event_type}"

    async def publish(self, event_type: str, payload: Mapping[str, Any]) -> bool:
        """
        Публикует событие в канал.

        Args:
            event_type: Тип события (dot-namespaced, например "user.profile.updated")
            payload: Данные события

        Returns:
            True если сообщение отправлено брокеру
        """
        event = DomainEvent(event_type=event_type, payload=dict(payload))
        return await self.publish_event(event)

    async def publish_event(self, event: DomainEvent) -> bool:
        """Публикует готовое доменное событие."""
        log_context = {
            "event_type": event.event_type,
            "user_id": event.subject_id,
        }

        if not self._redis.is_connected:
            await log_error(
                "Не удалось опубликовать событие: нет соединения с Redis",
                extra=log_context,
            )
            return False

        try:
            envelope = EventEnvelope.wrap(self._service_slug, event)
            channel = self.channel_for(event.event_type)
            receivers = await self._redis.publish(channel, envelope.to_json())
        except Exception as e:
            await log_error(
                f"Ошибка публикации события {event.event_type}: {e}",
                extra={**log_context, "error": str(e)},
            )
            return False

        await log_info(
            f"Событие опубликовано: {event.event_type}",
            type_msg=TypeMsg.DEBUG,
            extra={**log_context, "channel": channel, "receivers": receivers},
        )
        return True


# Глобальный экземпляр
_event_bus: EventBus | None = None


def get_event_bus() -> EventBus:
    """
    Возвращает глобальный экземпляр EventBus.

    Returns:
        EventBus
    """
    global _event_bus
    if _event_bus is None:
        from src.config import settings
        from src.infra.redis_client import get_redis

        _event_bus = EventBus(
            redis=get_redis(),
            service_slug=settings.system.SERVICE_SLUG,
            channel_prefix=settings.events.EVENTS_CHANNEL_PREFIX,
        )
    return _event_bus


async def init_event_bus() -> EventBus:
    """
    Инициализирует шину событий.
    Подключение к Redis выполняется через init_redis().
    """
    event_bus = get_event_bus()
    await log_info(
        f"Шина событий готова: сервис {event_bus.service_slug}",
        type_msg=TypeMsg.INFO,
    )
    return event_bus


async def close_event_bus() -> None:
    """Сбрасывает глобальный экземпляр шины событий."""
    global _event_bus
    _event_bus = None
    await log_info("Шина событий остановлена", type_msg=TypeMsg.INFO)
