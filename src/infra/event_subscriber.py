# src/infra/event_subscriber.py
"""
Подписчик на канал доменных событий (Redis Pub/Sub).

Слушает паттерн "{prefix}.*", разворачивает конверт
{"service", "event", "data", "timestamp"} и передаёт
(event, data) в EventDispatcher.
"""

from __future__ import annotations

import asyncio
from typing import Any

from pydantic import ValidationError

from src.common.logger import log_error, log_info, log_warning
from src.common.constants import TypeMsg
from src.infra.event_dispatch import EventDispatcher
from src.infra.redis_client import RedisClient
from src.shared.events.base import EventEnvelope


class EventSubscriber:
    """
    Подписчик на события других сервисов.

    Порядок сообщений сохраняется в пределах одного канала и одного
    публикатора; между каналами порядок не гарантируется.
    """

    def __init__(
        self,
        redis: RedisClient,
        dispatcher: EventDispatcher,
        pattern: str,
        *,
        poll_timeout: float = 1.0,
        retry_delay: float = 5.0,
    ) -> None:
        """
        Args:
            redis: Клиент Redis
            dispatcher: Диспетчер локальных обработчиков
            pattern: Паттерн каналов (например "autoparts.events.*")
            poll_timeout: Таймаут ожидания сообщения (секунды)
            retry_delay: Пауза между попытками подписки, пока Redis недоступен
        """
        self._redis = redis
        self._dispatcher = dispatcher
        self._pattern = pattern
        self._poll_timeout = poll_timeout
        self._retry_delay = retry_delay
        self._pubsub = None
        self._task: asyncio.Task | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_subscribed(self) -> bool:
        return self._pubsub is not None

    async def start(self) -> None:
        """
        Запустить подписчика.

        Если Redis недоступен, подписка повторяется в фоне до успеха.
        """
        if self._running:
            return

        self._running = True
        await self._try_subscribe()
        self._task = asyncio.create_task(self._listen())

    async def stop(self) -> None:
        """Остановить подписчика."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.punsubscribe()
            await self._pubsub.aclose()
            self._pubsub = None

    async def _try_subscribe(self) -> bool:
        """Подключиться к Redis (если нужно) и подписаться на паттерн."""
        try:
            if not self._redis.is_connected:
                await self._redis.connect()
            pubsub = self._redis.pubsub()
            try:
                await pubsub.psubscribe(self._pattern)
            except Exception:
                await pubsub.aclose()
                raise
        except Exception as e:
            await log_warning(
                f"Подписка на события не удалась, повтор через {self._retry_delay} с: {e}",
                extra={"pattern": self._pattern},
            )
            return False

        self._pubsub = pubsub
        await log_info(f"Подписка на события: {self._pattern}", type_msg=TypeMsg.INFO)
        return True

    async def _listen(self) -> None:
        """Слушать сообщения из Redis."""
        while self._running:
            if self._pubsub is None:
                if not await self._try_subscribe():
                    await asyncio.sleep(self._retry_delay)
                    continue

            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=self._poll_timeout,
                )
                if message is None:
                    continue

                await self.process_message(message)

            except asyncio.CancelledError:
                break
            except Exception as e:
                # Логируем ошибку, но продолжаем работу
                await log_error(f"Ошибка подписчика событий: {e}", exc_info=True)
                await asyncio.sleep(self._poll_timeout)

    async def process_message(self, message: dict[str, Any]) -> None:
        """Обработать сообщение из Redis."""
        if message.get("type") not in ("message", "pmessage"):
            return

        channel = message.get("channel", "")
        if isinstance(channel, bytes):
            channel = channel.decode("utf-8", errors="replace")

        data = message.get("data", "")
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")

        try:
            envelope = EventEnvelope.from_json(data)
        except ValidationError:
            await log_warning(
                "Некорректный конверт события, сообщение отброшено",
                extra={"channel": channel, "data": data},
            )
            return

        await self._dispatcher.dispatch(envelope.event, envelope.data)
