# src/shared/models/__init__.py
"""
Общие DTO и Pydantic-модели для межсервисного взаимодействия.
"""

from src.shared.models.common import ErrorResponse, HealthStatus, ServiceInfo
from src.shared.models.profile import (
    CustomerProfile,
    ProfileCreateRequest,
    ProfileUpdateRequest,
    KycSubmitRequest,
    KycCompleteRequest,
    KycStatusResponse,
)
from src.shared.models.trace import (
    RequestTrace,
    bind_trace,
    generate_request_id,
    get_current_trace,
    reset_trace,
)

__all__ = [
    # Common
    "ErrorResponse",
    "HealthStatus",
    "ServiceInfo",
    # Profile
    "CustomerProfile",
    "ProfileCreateRequest",
    "ProfileUpdateRequest",
    "KycSubmitRequest",
    "KycCompleteRequest",
    "KycStatusResponse",
    # Trace
    "RequestTrace",
    "get_current_trace",
    "generate_request_id",
    "bind_trace",
    "reset_trace",
]
