# src/shared/events/user_events.py
"""
События домена пользователей.

Каждое событие задаёт собственный плоский набор полей,
извлекаемых из профиля. Схема версионируется строкой event_type.
"""

from __future__ import annotations

from typing import Literal

from src.common.constants import VerificationStatus
from src.shared.events.base import DomainEvent, utc_isoformat
from src.shared.models.profile import CustomerProfile


class EventTypes:
    """Константы типов событий."""
    USER_REGISTERED = "user.registered"
    USER_PROFILE_UPDATED = "user.profile.updated"
    USER_KYC_SUBMITTED = "user.kyc.submitted"
    USER_KYC_COMPLETED = "user.kyc.completed"


class UserRegistered(DomainEvent):
    """Событие: пользователь зарегистрирован (публикует Auth Service)."""

    event_type: Literal["user.registered"] = EventTypes.USER_REGISTERED

    @classmethod
    def build(
        cls,
        user_id: int,
        email: str | None = None,
        company_name: str | None = None,
        industry: str | None = None,
    ) -> "UserRegistered":
        return cls(payload={
            "user_id": user_id,
            "email": email,
            "company_name": company_name,
            "industry": industry,
            "event_type": EventTypes.USER_REGISTERED,
        })


class UserProfileUpdated(DomainEvent):
    """Событие: профиль пользователя обновлён."""

    event_type: Literal["user.profile.updated"] = EventTypes.USER_PROFILE_UPDATED

    @classmethod
    def from_profile(cls, profile: CustomerProfile) -> "UserProfileUpdated":
        return cls(payload={
            "user_id": profile.user_id,
            "profile_id": profile.id,
            "company_name": profile.company_name,
            "industry": profile.industry,
            "company_size": profile.company_size,
            "verification_status": profile.verification_status.value,
            "is_verified": profile.is_verified,
            "updated_at": utc_isoformat(profile.updated_at),
            "event_type": EventTypes.USER_PROFILE_UPDATED,
        })


class KYCVerificationSubmitted(DomainEvent):
    """Событие: документы KYC отправлены на проверку."""

    event_type: Literal["user.kyc.submitted"] = EventTypes.USER_KYC_SUBMITTED

    @classmethod
    def from_profile(cls, profile: CustomerProfile) -> "KYCVerificationSubmitted":
        return cls(payload={
            "user_id": profile.user_id,
            "profile_id": profile.id,
            "company_name": profile.company_name,
            "verification_status": profile.verification_status.value,
            "documents_count": len(profile.verification_documents),
            "submitted_at": utc_isoformat(profile.updated_at),
            "event_type": EventTypes.USER_KYC_SUBMITTED,
        })


class KYCVerificationCompleted(DomainEvent):
    """Событие: проверка KYC завершена (verified или rejected)."""

    event_type: Literal["user.kyc.completed"] = EventTypes.USER_KYC_COMPLETED

    @classmethod
    def from_profile(
        cls,
        profile: CustomerProfile,
        status: VerificationStatus,
    ) -> "KYCVerificationCompleted":
        return cls(payload={
            "user_id": profile.user_id,
            "profile_id": profile.id,
            "company_name": profile.company_name,
            "verification_status": status.value,
            "is_verified": status == VerificationStatus.VERIFIED,
            "completed_at": utc_isoformat(),
            "event_type": EventTypes.USER_KYC_COMPLETED,
        })

