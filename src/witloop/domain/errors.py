"""Taxonomia de erros do witloop.

Erros de transporte, decodificação e status abortam o turno corrente e
derrubam o driver. RateLimitError é recuperável esperando (tratado apenas
pelo conector); nunca chega ao motor de conversação.
"""

from __future__ import annotations

from datetime import datetime


class WitloopError(Exception):
    """Base de todos os erros da biblioteca."""

    pass


class TransportError(WitloopError):
    """Falha de rede ou I/O ao falar com um serviço externo."""

    pass


class DecodeError(WitloopError):
    """Corpo de resposta mal-formado (JSON inválido ou fora do contrato)."""

    pass


class ResponseStatusError(WitloopError):
    """Status HTTP fora da faixa de sucesso; carrega o corpo bruto."""

    def __init__(self, status_code: int, body: str = "") -> None:
        super().__init__(f"Unable to handle response with code {status_code}: `{body}`")
        self.status_code = status_code
        self.body = body


class RateLimitError(ResponseStatusError):
    """Upstream pediu para esperar até `reset_at` (UTC)."""

    def __init__(self, reset_at: datetime, body: str = "") -> None:
        super().__init__(429, body)
        self.reset_at = reset_at

    def __str__(self) -> str:
        return f"Rate limited, reset at {self.reset_at.isoformat()}"


class HandlerError(WitloopError):
    """Erro levantado por um callback do handler da aplicação."""

    def __init__(self, message: str, kind: str | None = None) -> None:
        super().__init__(message)
        self.kind = kind


class MissingEntitiesError(WitloopError, LookupError):
    """Nenhuma entidade associada à chave pedida."""

    def __init__(self, key: str) -> None:
        super().__init__(f"No entities associated with key {key}")
        self.key = key


class TurnLimitExceededError(WitloopError):
    """O backend não encerrou a troca dentro do limite de turnos."""

    def __init__(self, session_id: str, max_turns: int) -> None:
        super().__init__(
            f"Session {session_id} exceeded {max_turns} converse turns without a stop"
        )
        self.session_id = session_id
        self.max_turns = max_turns


class ChannelClosedError(WitloopError):
    """Envio ou recebimento em canal já fechado."""

    pass


class SessionIdError(WitloopError, ValueError):
    """Session id do conector não decodifica para um user id."""

    pass


class CredentialsError(WitloopError):
    """Arquivo de credenciais ausente ou incompleto."""

    pass
