# src/infra/__init__.py
"""
Инфраструктурный слой.
Межсервисные HTTP-вызовы и доменные события через Redis Pub/Sub.
"""

from src.infra.redis_client import RedisClient, get_redis
from src.infra.event_bus import EventBus, get_event_bus
from src.infra.event_dispatch import EventDispatcher
from src.infra.service_client import CallErrorKind, RetryPolicy, ServiceCallError, ServiceClient

__all__ = [
    "RedisClient",
    "get_redis",
    "EventBus",
    "get_event_bus",
    "EventDispatcher",
    "ServiceClient",
    "RetryPolicy",
    "ServiceCallError",
    "CallErrorKind",
]
