# src/infra/service_client.py
"""
HTTP-клиент для вызова других сервисов платформы.

Каждый вызов несёт заголовки Accept, Content-Type, X-Service-Name и
X-Request-ID. Сетевые сбои и "временные" статусы (429, 5xx шлюза)
повторяются с фиксированной паузой; остальные ответы, включая 4xx,
возвращаются вызывающему коду как есть. Неидемпотентные методы
(POST, PATCH) получают заголовок Idempotency-Key, одинаковый для всех
попыток одного логического вызова.

По завершении вызова пишется структурированная запись: method, url,
status или error, duration_ms, attempts, request_id.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

import httpx

from src.common.constants import (
    HEADER_IDEMPOTENCY_KEY,
    HEADER_REQUEST_ID,
    HEADER_SERVICE_NAME,
    TypeMsg,
)
from src.common.logger import log_error, log_info
from src.shared.models.trace import generate_request_id, get_current_trace

NON_IDEMPOTENT_METHODS = frozenset({"POST", "PATCH"})


@dataclass(frozen=True)
class RetryPolicy:
    """Политика повторов: число попыток всего и пауза между ними."""
    max_attempts: int = 3
    delay_seconds: float = 1.0
    retry_statuses: frozenset[int] = frozenset({429, 500, 502, 503, 504})

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts должен быть >= 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds не может быть отрицательным")

    @classmethod
    def from_settings(cls) -> RetryPolicy:
        from src.config import settings

        return cls(
            max_attempts=settings.services.SERVICE_CLIENT_RETRY_ATTEMPTS,
            delay_seconds=settings.services.SERVICE_CLIENT_RETRY_DELAY,
        )

    def should_retry_status(self, status_code: int) -> bool:
        return status_code in self.retry_statuses


class CallErrorKind(str, Enum):
    """Вид ошибки межсервисного вызова."""
    NETWORK = "network"
    TIMEOUT = "timeout"


class ServiceCallError(Exception):
    """Вызов не удался на транспортном уровне после всех попыток."""

    def __init__(self, kind: CallErrorKind, message: str, request_id: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.request_id = request_id

    def __repr__(self) -> str:
        return f"ServiceCallError(kind={self.kind.value!r}, message={self.message!r}, request_id={self.request_id!r})"


class ServiceClient:
    """
    Клиент к одному сервису-пиру.

    Базовый URL и таймаут фиксируются при создании.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 30.0,
        *,
        service_name: str | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: Адрес сервиса (например "http://user-service:8000")
            timeout_seconds: Таймаут одной попытки
            service_name: Имя текущего сервиса для X-Service-Name
            retry_policy: Политика повторов (по умолчанию из конфига)
            transport: Транспорт httpx (в тестах MockTransport)
        """
        if service_name is None or retry_policy is None:
            from src.config import settings

            if service_name is None:
                service_name = settings.system.SERVICE_IDENTITY
            if retry_policy is None:
                retry_policy = RetryPolicy.from_settings()

        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.service_name = service_name
        self.retry_policy = retry_policy
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def __aenter__(self) -> ServiceClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Закрывает пул соединений."""
        await self._client.aclose()

    def _build_headers(
        self,
        method: str,
        request_id: str,
        idempotency_key: str | None,
        extra: Mapping[str, str] | None,
    ) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            HEADER_SERVICE_NAME: self.service_name,
            HEADER_REQUEST_ID: request_id,
        }
        if idempotency_key and method in NON_IDEMPOTENT_METHODS:
            headers[HEADER_IDEMPOTENCY_KEY] = idempotency_key
        if extra:
            headers.update(extra)
        return headers

    @staticmethod
    def _resolve_request_id(request_id: str | None) -> str:
        """Берёт id входящего запроса, чтобы цепочка вызовов коррелировала."""
        if request_id:
            return request_id
        trace = get_current_trace()
        if trace is not None and trace.request_id:
            return trace.request_id
        return generate_request_id()

    async def call(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        *,
        headers: Mapping[str, str] | None = None,
        request_id: str | None = None,
    ) -> httpx.Response:
        """
        Выполняет вызов с повторами.

        Returns:
            Ответ сервиса (в том числе не-2xx)

        Raises:
            ServiceCallError: транспортная ошибка после всех попыток
        """
        method = method.upper()
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        request_id = self._resolve_request_id(request_id)
        idempotency_key = uuid.uuid4().hex if method in NON_IDEMPOTENT_METHODS else None
        request_headers = self._build_headers(method, request_id, idempotency_key, headers)

        policy = self.retry_policy
        started = time.perf_counter()
        last_error: httpx.TransportError | None = None
        response: httpx.Response | None = None
        attempt = 0

        for attempt in range(1, policy.max_attempts + 1):
            attempt_started = time.perf_counter()
            try:
                response = await self._client.request(
                    method,
                    url,
                    json=body,
                    params=query,
                    headers=request_headers,
                )
                last_error = None
            except httpx.TransportError as e:
                response = None
                last_error = e
                await log_info(
                    f"Попытка {attempt}/{policy.max_attempts} {method} {url} не удалась: {e}",
                    type_msg=TypeMsg.DEBUG,
                    extra={
                        "request_id": request_id,
                        "attempt": attempt,
                        "duration_ms": _elapsed_ms(attempt_started),
                    },
                )
            else:
                if not policy.should_retry_status(response.status_code):
                    break
                await log_info(
                    f"Попытка {attempt}/{policy.max_attempts} {method} {url}: статус {response.status_code}",
                    type_msg=TypeMsg.DEBUG,
                    extra={
                        "request_id": request_id,
                        "attempt": attempt,
                        "status": response.status_code,
                        "duration_ms": _elapsed_ms(attempt_started),
                    },
                )

            if attempt < policy.max_attempts:
                await asyncio.sleep(policy.delay_seconds)

        outcome = {
            "method": method,
            "url": url,
            "duration_ms": _elapsed_ms(started),
            "attempts": attempt,
            "request_id": request_id,
        }

        if last_error is not None:
            kind = CallErrorKind.TIMEOUT if isinstance(last_error, httpx.TimeoutException) else CallErrorKind.NETWORK
            message = str(last_error) or last_error.__class__.__name__
            await log_error(
                "Service request failed",
                extra={**outcome, "error": message, "kind": kind.value},
            )
            raise ServiceCallError(kind, message, request_id) from last_error

        await log_info(
            "Service request completed",
            type_msg=TypeMsg.INFO,
            extra={**outcome, "status": response.status_code},
        )
        return response

    async def get(self, endpoint: str, query: Mapping[str, Any] | None = None, **kwargs: Any) -> httpx.Response:
        return await self.call("GET", endpoint, query=query, **kwargs)

    async def post(self, endpoint: str, body: Any = None, **kwargs: Any) -> httpx.Response:
        return await self.call("POST", endpoint, body=body, **kwargs)

    async def put(self, endpoint: str, body: Any = None, **kwargs: Any) -> httpx.Response:
        return await self.call("PUT", endpoint, body=body, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> httpx.Response:
        return await self.call("DELETE", endpoint, **kwargs)

    async def health_check(self) -> bool:
        """True только для 2xx ответа на GET /health. Не бросает исключений."""
        try:
            response = await self.get("/health")
        except Exception:
            return False
        return response.is_success

    async def service_info(self) -> dict[str, Any] | None:
        """Тело GET /info при 2xx, иначе None. Не бросает исключений."""
        try:
            response = await self.get("/info")
            if not response.is_success:
                return None
            data = response.json()
        except Exception:
            return None
        return data if isinstance(data, dict) else None


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
