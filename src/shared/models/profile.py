# src/shared/models/profile.py
"""
Модели профиля клиента (User Service).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from src.common.constants import VerificationStatus


class CustomerProfile(BaseModel):
    """Профиль клиента с данными KYC-верификации."""

    id: int
    user_id: int
    email: str | None = None
    company_name: str | None = None
    industry: str | None = None
    company_size: str | None = None
    verification_status: VerificationStatus = VerificationStatus.PENDING
    verification_documents: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_verified(self) -> bool:
        return self.verification_status == VerificationStatus.VERIFIED


class ProfileCreateRequest(BaseModel):
    """Создание профиля другим сервисом платформы."""

    user_id: int = Field(gt=0)
    email: str | None = None
    company_name: str | None = None
    industry: str | None = None
    company_size: str | None = None


class ProfileUpdateRequest(BaseModel):
    """Частичное обновление профиля."""

    company_name: str | None = None
    industry: str | None = None
    company_size: str | None = None

    def changes(self) -> dict[str, Any]:
        """Только явно переданные поля."""
        return self.model_dump(exclude_unset=True)


class KycSubmitRequest(BaseModel):
    """Документы для KYC-верификации."""

    documents: list[str] = Field(min_length=1)


class KycCompleteRequest(BaseModel):
    """Итог проверки KYC (выставляется внутренним сервисом)."""

    status: VerificationStatus


class KycStatusResponse(BaseModel):
    """Ответ внутреннего эндпоинта статуса KYC."""

    user_id: int
    verification_status: VerificationStatus
    verified: bool
