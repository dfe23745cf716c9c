# src/shared/models/common.py
"""
Общие модели для всех сервисов.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Стандартный ответ с ошибкой."""

    error: str
    message: str
    request_id: str | None = None


class HealthStatus(BaseModel):
    """Ответ GET /health."""

    status: str = "healthy"  # healthy, unhealthy
    service: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    version: str | None = None
    environment: str | None = None
    checks: dict[str, str] = Field(default_factory=dict)
    # checks: {"redis": "connected"}


class ServiceInfo(BaseModel):
    """Ответ GET /info."""

    service: str
    description: str | None = None
    version: str
    endpoints: list[str] | None = None
