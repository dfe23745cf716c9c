# src/shared/__init__.py
"""
Общий код между микросервисами.

Модули:
- events: схемы доменных событий и формирование payload
- models: общие DTO и Pydantic-модели
- middleware: ServiceTrustMiddleware (внутренние/внешние вызовы)
- service_app: фабрика FastAPI-приложения с /health и /info
"""

__all__: list[str] = []
