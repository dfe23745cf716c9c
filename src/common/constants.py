# src/common/constants.py
"""
Общие константы и перечисления.
"""

from enum import Enum


class TypeMsg(str, Enum):
    """Типы сообщений для логирования."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class PeerService(str, Enum):
    """Идентификаторы сервисов платформы (значение заголовка X-Service-Name)."""
    AUTH = "Auth Service"
    USER = "User Service"
    BIDDING = "Bidding Service"
    ORDER = "Order Service"
    PAYMENT = "Payment Service"
    ANALYTICS = "Analytics Service"
    VIN_OCR = "VIN OCR Service"
    NOTIFICATION = "Notification Service"


class VerificationStatus(str, Enum):
    """Статусы KYC-верификации профиля."""
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    VERIFIED = "verified"
    REJECTED = "rejected"


# Заголовки межсервисного взаимодействия
HEADER_SERVICE_NAME = "X-Service-Name"
HEADER_REQUEST_ID = "X-Request-ID"
HEADER_IDEMPOTENCY_KEY = "Idempotency-Key"
