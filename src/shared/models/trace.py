# src/shared/models/trace.py
"""
Контекст трассировки входящего запроса.
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from uuid import uuid4

from pydantic import BaseModel, ConfigDict


class RequestTrace(BaseModel):
    """
    Создаётся один раз на входящий запрос и не изменяется после создания.

    is_internal=True только для вызывающих из списка доверенных сервисов.
    """
    model_config = ConfigDict(frozen=True)

    request_id: str
    service_name: str | None = None
    is_internal: bool = False


# Трасса запроса, обрабатываемого текущей задачей
_current_trace: ContextVar[RequestTrace | None] = ContextVar("current_trace", default=None)


def generate_request_id() -> str:
    """Генерирует уникальный идентификатор запроса."""
    return f"req_{uuid4().hex}"


def get_current_trace() -> RequestTrace | None:
    """Возвращает трассу текущего входящего запроса, если она есть."""
    return _current_trace.get()


def bind_trace(trace: RequestTrace) -> Token:
    """Привязывает трассу к текущей задаче. Вернуть токен в reset_trace()."""
    return _current_trace.set(trace)


def reset_trace(token: Token) -> None:
    _current_trace.reset(token)
