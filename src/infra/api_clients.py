# src/infra/api_clients.py
"""
Типизированные клиенты сервисов-пиров поверх ServiceClient.

Методы возвращают None/False при не-2xx ответе или ошибке вызова:
результат вызывающего кода от пира не зависит.
"""

from __future__ import annotations

from typing import Any

from src.common.constants import PeerService
from src.common.logger import log_warning
from src.infra.service_client import RetryPolicy, ServiceCallError, ServiceClient


class UserServiceClient(ServiceClient):
    """Клиент User Service."""

    def __init__(self, base_url: str | None = None, timeout_seconds: float | None = None, **kwargs: Any) -> None:
        from src.config import settings

        super().__init__(
            base_url or settings.services.USER_SERVICE_URL,
            timeout_seconds or settings.services.SERVICE_CLIENT_TIMEOUT,
            **kwargs,
        )

    async def _json_or_none(self, method: str, endpoint: str, **kwargs: Any) -> dict[str, Any] | None:
        try:
            response = await self.call(method, endpoint, **kwargs)
        except ServiceCallError as e:
            await log_warning(
                f"{PeerService.USER.value} недоступен: {e.message}",
                extra={"endpoint": endpoint, "request_id": e.request_id},
            )
            return None

        if not response.is_success:
            return None

        try:
            data = response.json()
        except ValueError:
            await log_warning(
                f"{PeerService.USER.value} вернул не-JSON ответ",
                extra={"endpoint": endpoint, "status": response.status_code},
            )
            return None

        # Ожидается JSON-объект; список или скаляр считаются ошибкой пира
        return data if isinstance(data, dict) else None

    async def get_user_profile(self, user_id: int) -> dict[str, Any] | None:
        return await self._json_or_none("GET", f"/users/{user_id}/profile")

    async def create_user_profile(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Создаёт профиль (внутренний маршрут); None если профиль уже есть."""
        return await self._json_or_none("POST", "/users/profile", body=data)

    async def update_user_profile(self, user_id: int, data: dict[str, Any]) -> dict[str, Any] | None:
        return await self._json_or_none("PUT", f"/users/{user_id}/profile", body=data)

    async def get_user_by_email(self, email: str) -> dict[str, Any] | None:
        return await self._json_or_none("GET", "/users/by-email", query={"email": email})

    async def verify_kyc_status(self, user_id: int) -> bool:
        """True если KYC пользователя подтверждён."""
        data = await self._json_or_none("GET", f"/users/{user_id}/kyc-status")
        return bool(data and data.get("verified", False))


class AnalyticsServiceClient(ServiceClient):
    """
    Клиент Analytics Service.

    Best-effort: ошибки логируются и не пробрасываются, повторов нет.
    """

    def __init__(self, base_url: str | None = None, timeout_seconds: float | None = None, **kwargs: Any) -> None:
        from src.config import settings

        kwargs.setdefault("retry_policy", RetryPolicy(max_attempts=1))
        super().__init__(
            base_url or settings.services.ANALYTICS_SERVICE_URL,
            timeout_seconds or settings.services.ANALYTICS_TIMEOUT,
            **kwargs,
        )

    async def _track(self, endpoint: str, body: dict[str, Any]) -> bool:
        try:
            response = await self.post(endpoint, body=body)
        except ServiceCallError as e:
            await log_warning(
                f"Не удалось отправить данные в аналитику: {e.message}",
                extra={"endpoint": endpoint, "request_id": e.request_id},
            )
            return False
        return response.is_success

    async def track_user_event(self, user_id: int, event: str, data: dict[str, Any] | None = None) -> bool:
        return await self._track("/events/user", {
            "user_id": user_id,
            "event": event,
            "data": data or {},
        })

    async def track_order_event(self, order_id: int, event: str, data: dict[str, Any] | None = None) -> bool:
        return await self._track("/events/order", {
            "order_id": order_id,
            "event": event,
            "data": data or {},
        })

    async def record_metric(self, metric: str, value: float, tags: dict[str, str] | None = None) -> bool:
        return await self._track("/metrics", {
            "metric": metric,
            "value": value,
            "tags": tags or {},
        })
