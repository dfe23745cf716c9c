# src/services/users/repository.py
"""
Хранилище профилей клиентов.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from src.shared.models.profile import CustomerProfile


class ProfileRepository(ABC):
    """Интерфейс хранилища профилей."""

    @abstractmethod
    async def get_by_user_id(self, user_id: int) -> Optional[CustomerProfile]:
        ...

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[CustomerProfile]:
        ...

    @abstractmethod
    async def create(
        self,
        user_id: int,
        email: str | None = None,
        company_name: str | None = None,
        industry: str | None = None,
        company_size: str | None = None,
    ) -> CustomerProfile:
        ...

    @abstractmethod
    async def save(self, profile: CustomerProfile) -> CustomerProfile:
        ...


class InMemoryProfileRepository(ProfileRepository):
    """Профили в памяти процесса (один профиль на user_id)."""

    def __init__(self) -> None:
        self._profiles: dict[int, CustomerProfile] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def get_by_user_id(self, user_id: int) -> Optional[CustomerProfile]:
        return self._profiles.get(user_id)

    async def get_by_email(self, email: str) -> Optional[CustomerProfile]:
        """Поиск без учёта регистра."""
        email = email.strip().lower()
        for profile in self._profiles.values():
            if profile.email and profile.email.lower() == email:
                return profile
        return None

    async def create(
        self,
        user_id: int,
        email: str | None = None,
        company_name: str | None = None,
        industry: str | None = None,
        company_size: str | None = None,
    ) -> CustomerProfile:
        async with self._lock:
            if user_id in self._profiles:
                raise ValueError(f"Профиль пользователя {user_id} уже существует")

            profile = CustomerProfile(
                id=self._next_id,
                user_id=user_id,
                email=email,
                company_name=company_name,
                industry=industry,
                company_size=company_size,
            )
            self._next_id += 1
            self._profiles[user_id] = profile
            return profile

    async def save(self, profile: CustomerProfile) -> CustomerProfile:
        async with self._lock:
            if profile.user_id not in self._profiles:
                raise KeyError(profile.user_id)
            saved = profile.model_copy(update={"updated_at": datetime.now(timezone.utc)})
            self._profiles[profile.user_id] = saved
            return saved
