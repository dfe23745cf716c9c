# src/shared/events/__init__.py
"""
Схемы доменных событий.

Публикуются в Redis Pub/Sub (канал на каждый тип события),
доставка best-effort: без подтверждений, без повторов, без хранения.
"""

from src.shared.events.base import DomainEvent, EventEnvelope, utc_isoformat
from src.shared.events.user_events import (
    EventTypes,
    UserRegistered,
    UserProfileUpdated,
    KYCVerificationSubmitted,
    KYCVerificationCompleted,
)

__all__ = [
    "DomainEvent",
    "EventEnvelope",
    "utc_isoformat",
    "EventTypes",
    "UserRegistered",
    "UserProfileUpdated",
    "KYCVerificationSubmitted",
    "KYCVerificationCompleted",
]
