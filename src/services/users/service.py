# src/services/users/service.py
"""
Бизнес-логика User Service.

Публикация событий и аналитика best-effort: их ошибки логируются
и не влияют на результат операции с профилем.
"""

from __future__ import annotations

from typing import Any, Optional

from src.common.constants import TypeMsg, VerificationStatus
from src.common.logger import log_info
from src.infra.api_clients import AnalyticsServiceClient
from src.infra.event_bus import EventBus
from src.services.users.repository import ProfileRepository
from src.shared.events.user_events import (
    KYCVerificationCompleted,
    KYCVerificationSubmitted,
    UserProfileUpdated,
)
from src.shared.models.profile import CustomerProfile, ProfileCreateRequest, ProfileUpdateRequest

FINAL_KYC_STATUSES = frozenset({VerificationStatus.VERIFIED, VerificationStatus.REJECTED})


class UserProfileService:
    """Сервис профилей клиентов."""

    def __init__(
        self,
        repository: ProfileRepository,
        event_bus: EventBus,
        analytics: AnalyticsServiceClient | None = None,
    ) -> None:
        self._repository = repository
        self._event_bus = event_bus
        self._analytics = analytics

    async def get_profile(self, user_id: int) -> Optional[CustomerProfile]:
        return await self._repository.get_by_user_id(user_id)

    async def get_profile_by_email(self, email: str) -> Optional[CustomerProfile]:
        return await self._repository.get_by_email(email)

    async def create_profile(self, request: ProfileCreateRequest) -> CustomerProfile:
        """
        Создаёт профиль по запросу другого сервиса.

        Raises:
            ValueError: профиль пользователя уже существует
        """
        profile = await self._repository.create(**request.model_dump())
        await log_info(
            f"Создан профиль пользователя {profile.user_id}",
            type_msg=TypeMsg.INFO,
            extra={"user_id": profile.user_id, "profile_id": profile.id},
        )
        return profile

    async def update_profile(
        self,
        user_id: int,
        request: ProfileUpdateRequest,
    ) -> Optional[CustomerProfile]:
        """
        Обновляет профиль и публикует user.profile.updated.

        Returns:
            Обновлённый профиль или None, если профиля нет
        """
        profile = await self._repository.get_by_user_id(user_id)
        if profile is None:
            return None

        changes = request.changes()
        profile = await self._repository.save(profile.model_copy(update=changes))

        await self._event_bus.publish_event(UserProfileUpdated.from_profile(profile))
        if self._analytics is not None:
            await self._analytics.track_user_event(
                user_id,
                "profile_updated",
                {"fields": sorted(changes)},
            )

        await log_info(
            f"Профиль пользователя {user_id} обновлён",
            type_msg=TypeMsg.DEBUG,
            extra={"user_id": user_id, "fields": sorted(changes)},
        )
        return profile

    async def submit_kyc(self, user_id: int, documents: list[str]) -> Optional[CustomerProfile]:
        """Отправляет документы на проверку и публикует user.kyc.submitted."""
        profile = await self._repository.get_by_user_id(user_id)
        if profile is None:
            return None

        profile = await self._repository.save(profile.model_copy(update={
            "verification_status": VerificationStatus.UNDER_REVIEW,
            "verification_documents": list(documents),
        }))

        await self._event_bus.publish_event(KYCVerificationSubmitted.from_profile(profile))
        return profile

    async def complete_kyc(
        self,
        user_id: int,
        status: VerificationStatus,
    ) -> Optional[CustomerProfile]:
        """
        Завершает проверку KYC и публикует user.kyc.completed.

        Raises:
            ValueError: статус не является итоговым (verified/rejected)
        """
        if status not in FINAL_KYC_STATUSES:
            raise ValueError(f"Недопустимый итоговый статус KYC: {status.value}")

        profile = await self._repository.get_by_user_id(user_id)
        if profile is None:
            return None

        profile = await self._repository.save(
            profile.model_copy(update={"verification_status": status})
        )

        await self._event_bus.publish_event(KYCVerificationCompleted.from_profile(profile, status))
        await log_info(
            f"KYC пользователя {user_id}: {status.value}",
            type_msg=TypeMsg.INFO,
            extra={"user_id": user_id, "verification_status": status.value},
        )
        return profile

    async def create_profile_from_registration(self, data: dict[str, Any]) -> CustomerProfile:
        """
        Создаёт профиль по событию user.registered.

        Повторная доставка события не создаёт второй профиль.
        """
        user_id = int(data["user_id"])

        existing = await self._repository.get_by_user_id(user_id)
        if existing is not None:
            await log_info(
                f"Профиль пользователя {user_id} уже существует, событие пропущено",
                type_msg=TypeMsg.DEBUG,
                extra={"user_id": user_id},
            )
            return existing

        profile = await self._repository.create(
            user_id=user_id,
            email=data.get("email"),
            company_name=data.get("company_name"),
            industry=data.get("industry"),
        )
        await log_info(
            f"Создан профиль пользователя {user_id} по событию регистрации",
            type_msg=TypeMsg.INFO,
            extra={"user_id": user_id, "profile_id": profile.id},
        )
        return profile
