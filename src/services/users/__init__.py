# src/services/users/__init__.py
"""
User Service: профили клиентов и KYC-верификация.

Публикует user.profile.updated, user.kyc.submitted, user.kyc.completed.
Потребляет user.registered от Auth Service.
"""

__all__: list[str] = []
