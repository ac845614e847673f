"""Contexto de observabilidade por sessão (contextvars)."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

_session_id: ContextVar[str] = ContextVar("session_id", default="")


def get_session_id() -> str:
    """Retorna o session_id corrente (ou vazio)."""

    return _session_id.get()


@contextmanager
def bind_session_id(session_id: str) -> Iterator[str]:
    """Associa `session_id` aos logs emitidos dentro do bloco."""

    token = _session_id.set(session_id)
    try:
        yield session_id
    finally:
        _session_id.reset(token)
