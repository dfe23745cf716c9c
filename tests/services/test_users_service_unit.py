# tests/services/test_users_service_unit.py
"""
Unit тесты для User Service: репозиторий, сервис профилей, обработчики событий.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from src.common.constants import VerificationStatus
from src.infra.api_clients import AnalyticsServiceClient
from src.infra.event_bus import EventBus
from src.services.users.consumers import build_dispatcher
from src.services.users.repository import InMemoryProfileRepository
from src.services.users.service import UserProfileService
from src.shared.events import EventTypes
from src.shared.models.profile import ProfileUpdateRequest


@pytest.fixture(autouse=True)
def quiet_logs():
    with patch("src.services.users.service.log_info", new_callable=AsyncMock), \
            patch("src.infra.event_bus.log_info", new_callable=AsyncMock), \
            patch("src.infra.event_dispatch.log_warning", new_callable=AsyncMock):
        yield


@pytest.fixture
def repository() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def service(repository, mock_event_bus) -> UserProfileService:
    return UserProfileService(repository, mock_event_bus)


class TestInMemoryProfileRepository:
    """Тесты для InMemoryProfileRepository."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, repository) -> None:
        first = await repository.create(user_id=1, company_name="ACME")
        second = await repository.create(user_id=2)

        assert (first.id, second.id) == (1, 2)
        assert await repository.get_by_user_id(1) == first
        assert await repository.get_by_user_id(3) is None

    @pytest.mark.asyncio
    async def test_create_duplicate(self, repository) -> None:
        await repository.create(user_id=1)

        with pytest.raises(ValueError):
            await repository.create(user_id=1)

    @pytest.mark.asyncio
    async def test_save_touches_updated_at(self, repository) -> None:
        profile = await repository.create(user_id=1)

        saved = await repository.save(profile.model_copy(update={"industry": "retail"}))

        assert saved.industry == "retail"
        assert saved.updated_at >= profile.updated_at
        assert (await repository.get_by_user_id(1)).industry == "retail"

    @pytest.mark.asyncio
    async def test_save_unknown(self, repository, sample_profile) -> None:
        with pytest.raises(KeyError):
            await repository.save(sample_profile)


class TestUpdateProfile:
    """Тесты для update_profile."""

    @pytest.mark.asyncio
    async def test_update_publishes_event(self, service, repository, mock_event_bus) -> None:
        await repository.create(user_id=42, company_name="Old")

        profile = await service.update_profile(42, ProfileUpdateRequest(company_name="New"))

        assert profile.company_name == "New"
        event = mock_event_bus.publish_event.await_args.args[0]
        assert event.event_type == EventTypes.USER_PROFILE_UPDATED
        assert event.payload["company_name"] == "New"
        assert event.payload["user_id"] == 42

    @pytest.mark.asyncio
    async def test_only_sent_fields_change(self, service, repository) -> None:
        await repository.create(user_id=42, company_name="ACME", industry="automotive")

        profile = await service.update_profile(42, ProfileUpdateRequest(company_size="1-10"))

        assert profile.company_name == "ACME"
        assert profile.industry == "automotive"
        assert profile.company_size == "1-10"

    @pytest.mark.asyncio
    async def test_missing_profile(self, service, mock_event_bus) -> None:
        assert await service.update_profile(404, ProfileUpdateRequest(industry="x")) is None
        mock_event_bus.publish_event.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_publish_failure_invisible(self, repository, mock_redis: MagicMock) -> None:
        """Брокер недоступен: операция возвращает обычный результат."""
        mock_redis.publish.side_effect = ConnectionError("Error 111 connecting to localhost:6379")
        bus = EventBus(mock_redis, service_slug="user-service")
        service = UserProfileService(repository, bus)
        await repository.create(user_id=42)

        with patch("src.infra.event_bus.log_error", new_callable=AsyncMock) as mock_log_error:
            profile = await service.update_profile(42, ProfileUpdateRequest(industry="retail"))

        assert profile is not None
        assert profile.industry == "retail"
        assert (await repository.get_by_user_id(42)).industry == "retail"
        mock_log_error.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publish_without_connection_invisible(self, repository, mock_redis: MagicMock) -> None:
        mock_redis.is_connected = False
        service = UserProfileService(repository, EventBus(mock_redis, service_slug="user-service"))
        await repository.create(user_id=42)

        with patch("src.infra.event_bus.log_error", new_callable=AsyncMock):
            profile = await service.update_profile(42, ProfileUpdateRequest(industry="retail"))

        assert profile.industry == "retail"

    @pytest.mark.asyncio
    async def test_analytics_tracked(self, repository, mock_event_bus) -> None:
        analytics = MagicMock()
        analytics.track_user_event = AsyncMock(return_value=True)
        service = UserProfileService(repository, mock_event_bus, analytics)
        await repository.create(user_id=42)

        await service.update_profile(42, ProfileUpdateRequest(industry="retail", company_name="ACME"))

        analytics.track_user_event.assert_awaited_once_with(
            42, "profile_updated", {"fields": ["company_name", "industry"]}
        )

    @pytest.mark.asyncio
    async def test_analytics_down_invisible(self, repository, mock_event_bus) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("Connection refused")

        analytics = AnalyticsServiceClient(transport=httpx.MockTransport(handler))
        service = UserProfileService(repository, mock_event_bus, analytics)
        await repository.create(user_id=42)

        with patch("src.infra.service_client.log_info", new_callable=AsyncMock), \
                patch("src.infra.service_client.log_error", new_callable=AsyncMock), \
                patch("src.infra.api_clients.log_warning", new_callable=AsyncMock):
            profile = await service.update_profile(42, ProfileUpdateRequest(industry="retail"))
        await analytics.close()

        assert profile.industry == "retail"


class TestKyc:
    """Тесты для KYC."""

    @pytest.mark.asyncio
    async def test_submit(self, service, repository, mock_event_bus) -> None:
        await repository.create(user_id=42)

        profile = await service.submit_kyc(42, ["passport.pdf"])

        assert profile.verification_status == VerificationStatus.UNDER_REVIEW
        assert profile.verification_documents == ["passport.pdf"]
        event = mock_event_bus.publish_event.await_args.args[0]
        assert event.event_type == EventTypes.USER_KYC_SUBMITTED
        assert event.payload["documents_count"] == 1

    @pytest.mark.asyncio
    async def test_submit_missing_profile(self, service) -> None:
        assert await service.submit_kyc(1, ["a.pdf"]) is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [VerificationStatus.VERIFIED, VerificationStatus.REJECTED])
    async def test_complete(self, service, repository, mock_event_bus, status) -> None:
        await repository.create(user_id=42)

        profile = await service.complete_kyc(42, status)

        assert profile.verification_status == status
        event = mock_event_bus.publish_event.await_args.args[0]
        assert event.event_type == EventTypes.USER_KYC_COMPLETED
        assert event.payload["is_verified"] is (status == VerificationStatus.VERIFIED)

    @pytest.mark.asyncio
    async def test_complete_requires_final_status(self, service, repository, mock_event_bus) -> None:
        await repository.create(user_id=42)

        with pytest.raises(ValueError):
            await service.complete_kyc(42, VerificationStatus.PENDING)

        mock_event_bus.publish_event.assert_not_awaited()


class TestRegistrationConsumer:
    """Профиль создаётся по событию user.registered."""

    @pytest.mark.asyncio
    async def test_create_from_registration(self, service, repository, registration_payload) -> None:
        profile = await service.create_profile_from_registration(registration_payload)

        assert profile.user_id == 42
        assert profile.company_name == "Запчасти Плюс"
        assert profile.industry == "automotive"
        assert profile.verification_status == VerificationStatus.PENDING

    @pytest.mark.asyncio
    async def test_duplicate_delivery(self, service, repository, registration_payload) -> None:
        """Повторная доставка не создаёт второй профиль."""
        first = await service.create_profile_from_registration(registration_payload)
        second = await service.create_profile_from_registration(registration_payload)

        assert first.id == second.id
        assert (await repository.create(user_id=43)).id == 2

    @pytest.mark.asyncio
    async def test_dispatcher_routes_registration(self, service, repository, registration_payload) -> None:
        dispatcher = build_dispatcher(lambda: service)

        assert dispatcher.handles(EventTypes.USER_REGISTERED)
        assert await dispatcher.dispatch(EventTypes.USER_REGISTERED, registration_payload) is True
        assert await repository.get_by_user_id(42) is not None

    @pytest.mark.asyncio
    async def test_dispatcher_drops_payload_without_user_id(self, service, repository) -> None:
        dispatcher = build_dispatcher(lambda: service)

        assert await dispatcher.dispatch(EventTypes.USER_REGISTERED, '{"company_name": "ACME"}') is False
        assert await repository.get_by_user_id(42) is None
