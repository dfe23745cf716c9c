# src/services/__init__.py
"""
Микросервисы платформы.

Каждый сервис является независимым FastAPI-приложением, собранным через
src.shared.service_app.create_service_app:
- синхронные вызовы между сервисами через ServiceClient (HTTP)
- доменные события через Redis Pub/Sub

Сервисы:
- users: профили клиентов, KYC-верификация
"""

__all__: list[str] = []
