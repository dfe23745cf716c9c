# tests/shared/test_user_events.py
"""
Тесты для схем событий домена пользователей и конверта сообщения.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from src.common.constants import VerificationStatus
from src.shared.events import (
    DomainEvent,
    EventEnvelope,
    EventTypes,
    KYCVerificationCompleted,
    KYCVerificationSubmitted,
    UserProfileUpdated,
    UserRegistered,
    utc_isoformat,
)


class TestUtcIsoformat:

    def test_naive_treated_as_utc(self) -> None:
        assert utc_isoformat(datetime(2024, 1, 15, 12, 0)) == "2024-01-15T12:00:00Z"

    def test_converted_to_utc(self) -> None:
        kyiv = timezone(timedelta(hours=2))
        assert utc_isoformat(datetime(2024, 1, 15, 14, 0, tzinfo=kyiv)) == "2024-01-15T12:00:00Z"


class TestPayloadShapes:
    """Каждый тип события несёт фиксированный набор полей."""

    def test_profile_updated(self, sample_profile) -> None:
        event = UserProfileUpdated.from_profile(sample_profile)

        assert event.event_type == EventTypes.USER_PROFILE_UPDATED
        assert event.payload == {
            "user_id": 42,
            "profile_id": 7,
            "company_name": "Запчасти Плюс",
            "industry": "automotive",
            "company_size": "11-50",
            "verification_status": "pending",
            "is_verified": False,
            "updated_at": "2024-01-15T12:00:00Z",
            "event_type": "user.profile.updated",
        }

    def test_profile_updated_verified(self, sample_profile) -> None:
        profile = sample_profile.model_copy(update={"verification_status": VerificationStatus.VERIFIED})

        assert UserProfileUpdated.from_profile(profile).payload["is_verified"] is True

    def test_kyc_submitted(self, sample_profile) -> None:
        profile = sample_profile.model_copy(update={
            "verification_status": VerificationStatus.UNDER_REVIEW,
            "verification_documents": ["passport.pdf", "registry.pdf"],
        })
        event = KYCVerificationSubmitted.from_profile(profile)

        assert event.event_type == "user.kyc.submitted"
        assert event.payload["documents_count"] == 2
        assert event.payload["verification_status"] == "under_review"
        assert event.payload["submitted_at"] == "2024-01-15T12:00:00Z"

    @pytest.mark.parametrize("status,is_verified", [
        (VerificationStatus.VERIFIED, True),
        (VerificationStatus.REJECTED, False),
    ])
    def test_kyc_completed(self, sample_profile, status, is_verified) -> None:
        event = KYCVerificationCompleted.from_profile(sample_profile, status)

        assert event.event_type == "user.kyc.completed"
        assert event.payload["verification_status"] == status.value
        assert event.payload["is_verified"] is is_verified
        assert event.payload["completed_at"].endswith("Z")

    def test_user_registered(self) -> None:
        event = UserRegistered.build(5, email="a@example.com", company_name="ACME")

        assert event.event_type == "user.registered"
        assert event.subject_id == 5
        assert event.payload["industry"] is None

    def test_events_are_immutable(self, sample_profile) -> None:
        event = UserProfileUpdated.from_profile(sample_profile)

        with pytest.raises(ValidationError):
            event.event_type = "other"


class TestEventEnvelope:
    """Тесты для конверта {service, event, data, timestamp}."""

    def test_wrap(self) -> None:
        event = DomainEvent(
            event_type="user.kyc.completed",
            payload={"user_id": 1},
            emitted_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc),
        )
        envelope = EventEnvelope.wrap("user-service", event)

        assert json.loads(envelope.to_json()) == {
            "service": "user-service",
            "event": "user.kyc.completed",
            "data": {"user_id": 1},
            "timestamp": "2024-01-15T12:00:00Z",
        }

    def test_from_json(self) -> None:
        raw = '{"service": "auth-service", "event": "user.registered", "data": {"user_id": 3}, "timestamp": "t"}'
        envelope = EventEnvelope.from_json(raw)

        assert envelope.event == "user.registered"
        assert envelope.data == {"user_id": 3}

    def test_from_json_rejects_missing_fields(self) -> None:
        with pytest.raises(ValidationError):
            EventEnvelope.from_json('{"event": "user.registered", "data": {}}')
