# src/shared/service_app.py
"""
Фабрика FastAPI-приложения сервиса платформы.

Каждый сервис получает:
- ServiceTrustMiddleware со списком доверенных сервисов из конфига
- GET /health и GET /info (их опрашивает ServiceClient пиров)
- подключение к Redis, шину событий и подписчика событий в lifespan
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI, status
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute

from src.common.constants import TypeMsg
from src.common.logger import log_error, log_info
from src.config import settings
from src.infra.event_bus import close_event_bus, init_event_bus
from src.infra.event_dispatch import EventDispatcher
from src.infra.event_subscriber import EventSubscriber
from src.infra.redis_client import close_redis, get_redis, init_redis
from src.shared.middleware.service_trust import ServiceTrustMiddleware
from src.shared.models.common import HealthStatus, ServiceInfo

LifecycleHook = Callable[[], Awaitable[None]]


def create_service_app(
    title: str,
    description: str = "",
    *,
    routers: Sequence[APIRouter] = (),
    dispatcher: EventDispatcher | None = None,
    trusted_services: Iterable[str] | None = None,
    on_startup: LifecycleHook | None = None,
    on_shutdown: LifecycleHook | None = None,
) -> FastAPI:
    """
    Создаёт приложение сервиса.

    Args:
        title: Имя сервиса (например "User Service")
        description: Описание для /info
        routers: Роутеры API
        dispatcher: Обработчики событий других сервисов
        trusted_services: Список доверенных сервисов (по умолчанию из конфига)
        on_startup: Хук после подключения инфраструктуры
        on_shutdown: Хук перед отключением инфраструктуры
    """
    subscriber: EventSubscriber | None = None

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        nonlocal subscriber
        await log_info(f"{title} запускается...", type_msg=TypeMsg.INFO)

        # Без Redis сервис работает: публикации логируются как неудачные
        try:
            await init_redis()
        except Exception as e:
            await log_error(f"Redis недоступен при старте: {e}")

        await init_event_bus()

        if dispatcher is not None:
            dispatcher.freeze()
            if dispatcher.event_names:
                # Без Redis подписчик повторяет подписку в фоне
                subscriber = EventSubscriber(
                    get_redis(),
                    dispatcher,
                    settings.events.subscribe_pattern,
                    retry_delay=settings.events.EVENTS_RESUBSCRIBE_DELAY,
                )
                await subscriber.start()

        if on_startup is not None:
            await on_startup()

        yield

        if on_shutdown is not None:
            await on_shutdown()
        if subscriber is not None:
            await subscriber.stop()
            subscriber = None
        await close_event_bus()
        await close_redis()
        await log_info(f"{title} остановлен", type_msg=TypeMsg.INFO)

    app = FastAPI(
        title=title,
        description=description,
        version=settings.system.VERSION,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if trusted_services is None:
        trusted_services = settings.trust.TRUSTED_SERVICES
    app.add_middleware(ServiceTrustMiddleware, trusted_services=frozenset(trusted_services))

    # =========================================================================
    # HEALTH / INFO
    # =========================================================================

    @app.get("/health", response_model=HealthStatus, tags=["Health"])
    async def health_check() -> JSONResponse:
        """Проверка здоровья сервиса."""
        redis = get_redis()
        checks = {
            "redis": "connected" if redis.is_connected and await redis.health_check() else "disconnected",
        }
        healthy = all(v == "connected" for v in checks.values())

        body = HealthStatus(
            status="healthy" if healthy else "unhealthy",
            service=title,
            version=settings.system.VERSION,
            environment=settings.system.ENVIRONMENT,
            checks=checks,
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(mode="json"),
        )

    @app.get("/info", response_model=ServiceInfo, tags=["Health"])
    async def service_info() -> ServiceInfo:
        """Описание сервиса и его эндпоинтов."""
        endpoints = sorted({
            route.path for route in app.routes
            if isinstance(route, APIRoute) and route.include_in_schema
        })
        return ServiceInfo(
            service=title,
            description=description or None,
            version=settings.system.VERSION,
            endpoints=endpoints,
        )

    for router in routers:
        app.include_router(router)

    return app
