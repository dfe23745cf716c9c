# src/infra/event_dispatch.py
"""
Диспетчер входящих событий от других сервисов.

Сопоставляет имя события с локальным обработчиком. Таблица обработчиков
заполняется при старте и замораживается. Некорректный payload или ошибка
обработчика логируются, но никогда не роняют потребителя: событие
считается обработанным в любом случае (без повторной доставки).

Идемпотентность не гарантируется: повторная доставка вызовет обработчик
повторно, обработчики сами проверяют дубликаты.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from src.common.logger import log_error, log_info, log_warning
from src.common.constants import TypeMsg

# Обработчик получает распарсенный payload
EventHandler = Callable[[dict[str, Any]], Awaitable[None]]


@dataclass(frozen=True)
class HandlerRegistration:
    """Обработчик и обязательные поля payload."""
    handler: EventHandler
    required_fields: tuple[str, ...] = ("user_id",)


class EventDispatcher:
    """Статическая таблица event_name -> обработчик."""

    def __init__(self) -> None:
        self._handlers: dict[str, HandlerRegistration] = {}
        self._frozen = False

    def register(
        self,
        event_name: str,
        handler: EventHandler,
        required_fields: tuple[str, ...] = ("user_id",),
    ) -> None:
        """
        Регистрирует обработчик события.

        Args:
            event_name: Имя события (например "user.registered")
            handler: Асинхронный обработчик
            required_fields: Поля, без которых событие отбрасывается
        """
        if self._frozen:
            raise RuntimeError("Таблица обработчиков заморожена, регистрация невозможна")
        if event_name in self._handlers:
            raise ValueError(f"Обработчик для события {event_name} уже зарегистрирован")
        self._handlers[event_name] = HandlerRegistration(handler, tuple(required_fields))

    def freeze(self) -> None:
        """Запрещает дальнейшую регистрацию."""
        self._frozen = True

    @property
    def event_names(self) -> frozenset[str]:
        return frozenset(self._handlers)

    def handles(self, event_name: str) -> bool:
        return event_name in self._handlers

    async def dispatch(self, event_name: str, raw_payload: str | bytes | Mapping[str, Any]) -> bool:
        """
        Разбирает payload и вызывает обработчик.

        Returns:
            True если обработчик отработал без ошибок
        """
        registration = self._handlers.get(event_name)
        if registration is None:
            await log_info(
                f"Нет обработчика для события {event_name}",
                type_msg=TypeMsg.DEBUG,
                extra={"event_name": event_name},
            )
            return False

        data = _parse_payload(raw_payload)
        if data is None:
            await log_warning(
                f"Событие {event_name} отброшено: некорректный payload",
                extra={"event_name": event_name, "data": _printable(raw_payload)},
            )
            return False

        missing = [f for f in registration.required_fields if data.get(f) in (None, "")]
        if missing:
            await log_warning(
                f"Событие {event_name} отброшено: отсутствуют поля {', '.join(missing)}",
                extra={"event_name": event_name, "data": _printable(raw_payload)},
            )
            return False

        try:
            await registration.handler(data)
        except Exception as e:
            await log_error(
                f"Ошибка обработки события {event_name}: {e}",
                extra={"event_name": event_name, "error": str(e), "event_data": data},
                exc_info=True,
            )
            return False

        return True


def _parse_payload(raw_payload: Any) -> dict[str, Any] | None:
    """Приводит payload к словарю; None если это невозможно."""
    if isinstance(raw_payload, Mapping):
        return dict(raw_payload)

    if isinstance(raw_payload, bytes):
        try:
            raw_payload = raw_payload.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if not isinstance(raw_payload, str):
        return None

    try:
        parsed = json.loads(raw_payload)
    except json.JSONDecodeError:
        return None

    return parsed if isinstance(parsed, dict) else None


def _printable(raw_payload: Any) -> Any:
    if isinstance(raw_payload, bytes):
        return raw_payload.decode("utf-8", errors="replace")
    return raw_payload
