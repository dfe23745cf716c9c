# tests/shared/test_service_app.py
"""
Тесты фабрики приложения сервиса: lifespan, /health, /info.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi import APIRouter
from fastapi.testclient import TestClient

from src.infra.event_dispatch import EventDispatcher
from src.shared.service_app import create_service_app


@pytest.fixture(autouse=True)
def quiet_logs():
    with patch("src.shared.service_app.log_info", new_callable=AsyncMock), \
            patch("src.shared.service_app.log_error", new_callable=AsyncMock) as error, \
            patch("src.infra.event_bus.log_info", new_callable=AsyncMock), \
            patch("src.infra.event_subscriber.log_info", new_callable=AsyncMock), \
            patch("src.infra.redis_client.log_info", new_callable=AsyncMock):
        yield error


def make_redis(healthy: bool = True) -> MagicMock:
    """RedisClient с подпиской, в которой нет сообщений."""
    async def no_message(**kwargs):
        await asyncio.sleep(0.01)
        return None

    pubsub = MagicMock()
    pubsub.psubscribe = AsyncMock()
    pubsub.punsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()
    pubsub.get_message = AsyncMock(side_effect=no_message)

    redis = MagicMock()
    redis.is_connected = True
    redis.health_check = AsyncMock(return_value=healthy)
    redis.pubsub = MagicMock(return_value=pubsub)
    return redis


def make_dispatcher() -> EventDispatcher:
    dispatcher = EventDispatcher()
    dispatcher.register("user.registered", AsyncMock())
    return dispatcher


class TestLifespan:
    """Запуск и остановка сервиса."""

    def test_starts_without_redis(self, reset_globals, quiet_logs) -> None:
        """Redis недоступен: сервис стартует, подписчик остаётся и ждёт Redis."""
        redis = make_redis()
        redis.is_connected = False
        redis.connect = AsyncMock(side_effect=ConnectionError("refused"))
        app = create_service_app("Order Service", dispatcher=make_dispatcher())

        with patch("src.shared.service_app.init_redis", AsyncMock(side_effect=ConnectionError("refused"))), \
                patch("src.shared.service_app.close_redis", AsyncMock()), \
                patch("src.shared.service_app.get_redis", return_value=redis), \
                patch("src.infra.event_subscriber.log_warning", new_callable=AsyncMock) as sub_warning:
            with TestClient(app) as client:
                response = client.get("/health")

        assert response.status_code == 503
        assert quiet_logs.await_count >= 1
        redis.connect.assert_awaited()
        sub_warning.assert_awaited()
        redis.pubsub.assert_not_called()

    def test_subscribes_and_runs_hooks(self, reset_globals) -> None:
        redis = make_redis()
        dispatcher = make_dispatcher()
        on_startup = AsyncMock()
        on_shutdown = AsyncMock()
        app = create_service_app(
            "Order Service",
            dispatcher=dispatcher,
            on_startup=on_startup,
            on_shutdown=on_shutdown,
        )

        with patch("src.shared.service_app.init_redis", AsyncMock()), \
                patch("src.shared.service_app.close_redis", AsyncMock()), \
                patch("src.shared.service_app.get_redis", return_value=redis):
            with TestClient(app) as client:
                assert client.get("/health").status_code == 200

        pubsub = redis.pubsub.return_value
        pubsub.psubscribe.assert_awaited_once_with("autoparts.events.*")
        pubsub.aclose.assert_awaited_once()
        on_startup.assert_awaited_once()
        on_shutdown.assert_awaited_once()
        with pytest.raises(RuntimeError):
            dispatcher.register("user.kyc.completed", AsyncMock())

    def test_no_subscription_without_handlers(self, reset_globals) -> None:
        redis = make_redis()
        app = create_service_app("Order Service", dispatcher=EventDispatcher())

        with patch("src.shared.service_app.init_redis", AsyncMock()), \
                patch("src.shared.service_app.close_redis", AsyncMock()), \
                patch("src.shared.service_app.get_redis", return_value=redis):
            with TestClient(app):
                pass

        redis.pubsub.assert_not_called()


class TestHealthAndInfo:
    """GET /health и GET /info."""

    def test_health_ok(self, reset_globals) -> None:
        app = create_service_app("Order Service")

        with patch("src.shared.service_app.get_redis", return_value=make_redis()):
            response = TestClient(app).get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "Order Service"
        assert body["version"] == "1.0.0"
        assert body["checks"] == {"redis": "connected"}
        assert "timestamp" in body

    def test_health_redis_ping_fails(self, reset_globals) -> None:
        app = create_service_app("Order Service")

        with patch("src.shared.service_app.get_redis", return_value=make_redis(healthy=False)):
            response = TestClient(app).get("/health")

        assert response.status_code == 503
        assert response.json()["status"] == "unhealthy"

    def test_info(self) -> None:
        router = APIRouter(prefix="/orders")

        @router.get("/{order_id}")
        async def get_order(order_id: int):
            return {"order_id": order_id}

        app = create_service_app("Order Service", "Заказы", routers=[router])
        body = TestClient(app).get("/info").json()

        assert body["service"] == "Order Service"
        assert body["description"] == "Заказы"
        assert body["endpoints"] == ["/health", "/info", "/orders/{order_id}"]

    def test_health_open_to_peers(self) -> None:
        """Пир из списка доверенных может опрашивать /info."""
        app = create_service_app("Order Service", trusted_services={"User Service"})
        client = TestClient(app)

        assert client.get("/info", headers={"X-Service-Name": "User Service"}).status_code == 200
        assert client.get("/info", headers={"X-Service-Name": "Order Service"}).status_code == 401
