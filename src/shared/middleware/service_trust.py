# src/shared/middleware/service_trust.py
"""
Классификация входящих запросов: внутренние (от сервисов-пиров)
и внешние (от конечных пользователей).

Ограничение: заголовок X-Service-Name ничем не подписан, вызывающий
сам заявляет своё имя. Список доверенных сервисов лишь отсекает
неизвестные имена; безопасность обеспечивает изоляция сети.
"""

from __future__ import annotations

from collections.abc import Iterable

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response
from starlette.types import ASGIApp

from src.common.constants import HEADER_REQUEST_ID, HEADER_SERVICE_NAME
from src.common.logger import log_warning
from src.shared.models.common import ErrorResponse
from src.shared.models.trace import RequestTrace, bind_trace, generate_request_id, reset_trace


class ServiceTrustMiddleware(BaseHTTPMiddleware):
    """
    Проверяет X-Service-Name по списку доверенных сервисов.

    - заголовка нет (или он пустой): запрос внешний, обработка продолжается
    - имя не из списка: 401, дальше запрос не идёт
    - имя из списка: is_internal=True в контексте запроса
    """

    def __init__(self, app: ASGIApp, trusted_services: Iterable[str]) -> None:
        super().__init__(app)
        self.trusted_services = frozenset(trusted_services)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        service_name = request.headers.get(HEADER_SERVICE_NAME) or None
        request_id = request.headers.get(HEADER_REQUEST_ID) or ""

        if service_name is not None and service_name not in self.trusted_services:
            await log_warning(
                f"Отклонён запрос от неизвестного сервиса: {service_name}",
                extra={
                    "service_name": service_name,
                    "request_id": request_id,
                    "path": request.url.path,
                },
            )
            body = ErrorResponse(
                error="Unauthorized service",
                message="Service not recognized",
                request_id=request_id or None,
            )
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content=body.model_dump(exclude_none=True),
            )

        if service_name is None:
            trace = RequestTrace(request_id=request_id or generate_request_id())
        else:
            trace = RequestTrace(
                request_id=request_id,
                service_name=service_name,
                is_internal=True,
            )

        request.state.trace = trace
        request.state.service_name = trace.service_name
        request.state.request_id = trace.request_id
        request.state.is_internal = trace.is_internal

        token = bind_trace(trace)
        try:
            return await call_next(request)
        finally:
            reset_trace(token)


# =============================================================================
# FASTAPI ЗАВИСИМОСТИ
# =============================================================================

def get_request_trace(request: Request) -> RequestTrace:
    """Трасса текущего запроса (внешняя, если middleware не установлен)."""
    trace = getattr(request.state, "trace", None)
    if trace is None:
        trace = RequestTrace(request_id=generate_request_id())
    return trace


def require_internal_request(request: Request) -> RequestTrace:
    """Пропускает только вызовы от доверенных сервисов."""
    trace = get_request_trace(request)
    if not trace.is_internal:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Endpoint is available to internal services only",
        )
    return trace
