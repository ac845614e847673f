"""Configuração de logging estruturado (JSON ou texto)."""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from witloop.observability.context import get_session_id

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(session_id)s] %(message)s"


class SessionContextFilter(logging.Filter):
    """Insere session_id e service no record de log.

    Importante: nunca adicionar tokens, credenciais ou texto do usuário nos logs.
    """

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self._service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003
        # Preserva session_id passado explicitamente via `extra`.
        existing = getattr(record, "session_id", None)
        record.session_id = existing if existing else get_session_id()
        record.service = self._service_name
        return True


def configure_logging(level: str, service_name: str, log_format: str = "json") -> None:
    """Configura o root logger com campos padrão do serviço."""

    formatter: logging.Formatter
    if log_format.lower() == "text":
        formatter = logging.Formatter(TEXT_FORMAT)
    else:
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(message)s %(session_id)s %(service)s",
            rename_fields={"levelname": "level", "name": "logger"},
        )

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(SessionContextFilter(service_name))

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def get_logger(name: str) -> logging.Logger:
    """Retorna logger simples; o filtro injeta service/session_id."""

    return logging.getLogger(name)
