# src/shared/middleware/__init__.py
"""
Middleware для FastAPI-сервисов.
"""

from src.shared.middleware.service_trust import (
    ServiceTrustMiddleware,
    get_request_trace,
    require_internal_request,
)

__all__ = [
    "ServiceTrustMiddleware",
    "get_request_trace",
    "require_internal_request",
]
