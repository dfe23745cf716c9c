# src/shared/events/base.py
"""
Базовые классы для доменных событий и конверт сообщения Pub/Sub.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_isoformat(value: datetime | None = None) -> str:
    """ISO-8601 в UTC с суффиксом Z."""
    value = value or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class DomainEvent(BaseModel):
    """
    Доменное событие: факт изменения состояния.

    Публикуется один раз, без сохранения и повторной доставки.
    Схема payload фиксирована для каждого event_type.
    """
    model_config = ConfigDict(frozen=True)

    event_type: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)
    emitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def subject_id(self) -> Any:
        """Идентификатор субъекта события (для логов)."""
        return self.payload.get("user_id")


class EventEnvelope(BaseModel):
    """
    Сообщение в канале событий:
    {"service": ..., "event": ..., "data": {...}, "timestamp": ISO-8601}
    """

    service: str
    event: str
    data: dict[str, Any]
    timestamp: str

    @classmethod
    def wrap(cls, service: str, event: DomainEvent) -> "EventEnvelope":
        """Оборачивает доменное событие в конверт."""
        return cls(
            service=service,
            event=event.event_type,
            data=dict(event.payload),
            timestamp=utc_isoformat(event.emitted_at),
        )

    def to_json(self) -> str:
        """Сериализует конверт в JSON."""
        return json.dumps(self.model_dump(), ensure_ascii=False, default=str)

    @classmethod
    def from_json(cls, data: str | bytes) -> "EventEnvelope":
        """Десериализует конверт из JSON."""
        return cls.model_validate_json(data)
