"""Motor de conversação orientado a sessões.

Fluxo de um registro de entrada:
1. Driver recebe InputRecord do canal `records`
2. Recupera/cria a sessão no store
3. advance(): chama o NLU em loop e despacha cada diretiva ao handler
   até receber stop (ou tag desconhecida)
4. Persiste a sessão resultante
5. Devolve o session_id no canal `requests` (reconhecimento)

Processamento estritamente sequencial: uma sessão por vez, na ordem de
chegada. Qualquer erro aborta o driver inteiro (sem isolamento por sessão).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from witloop.application.directive_parser import parse_directive
from witloop.domain.directives import (
    ActionDirective,
    Directive,
    MergeDirective,
    MessageDirective,
)
from witloop.domain.errors import HandlerError, TurnLimitExceededError
from witloop.infra.session_store_memory import InMemorySessionStore
from witloop.observability.context import bind_session_id
from witloop.observability.logging import get_logger

if TYPE_CHECKING:
    from witloop.config.settings import Settings
    from witloop.domain.protocols import (
        Handler,
        InputSource,
        NluBackend,
        SessionStoreProtocol,
    )
    from witloop.domain.session import Session

logger: logging.Logger = get_logger(__name__)


class ConversationEngine:
    """Conduz sessões pelo protocolo de diretivas do NLU.

    `max_turns` limita as chamadas ao NLU por advance(); None mantém o
    comportamento sem limite (confia no stop do backend).
    """

    def __init__(
        self,
        nlu: NluBackend,
        handler: Handler,
        store: SessionStoreProtocol | None = None,
        max_turns: int | None = None,
    ) -> None:
        if max_turns is not None and max_turns < 1:
            raise ValueError("max_turns deve ser >= 1")
        self._nlu = nlu
        self._handler = handler
        self._store = store if store is not None else InMemorySessionStore()
        self._max_turns = max_turns

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        nlu: NluBackend,
        handler: Handler,
        store: SessionStoreProtocol | None = None,
    ) -> ConversationEngine:
        return cls(nlu, handler, store=store, max_turns=settings.converse_max_turns)

    @property
    def store(self) -> SessionStoreProtocol:
        return self._store

    async def advance(self, session: Session, query: str) -> Session:
        """Roda a troca de diretivas de uma sessão até o backend parar.

        Apenas a primeira chamada envia `query`; as seguintes enviam query
        vazia ("o servidor continua falando até dizer stop").

        Raises:
            TransportError / ResponseStatusError / DecodeError: falha do NLU
            HandlerError: callback do handler falhou
            TurnLimitExceededError: limite de turnos atingido
        """
        with bind_session_id(session.session_id):
            turns = 0
            while True:
                if self._max_turns is not None and turns >= self._max_turns:
                    logger.error(
                        "converse_turn_limit_exceeded",
                        extra={"max_turns": self._max_turns},
                    )
                    raise TurnLimitExceededError(session.session_id, self._max_turns)

                payload = await self._nlu.converse(
                    session.session_id,
                    query,
                    session.context,
                )
                turns += 1
                query = ""

                directive = parse_directive(payload)
                logger.debug(
                    "converse_directive",
                    extra={"kind": str(directive.kind), "turn": turns},
                )
                if directive.kind.is_terminal:
                    break
                session = await self._dispatch(session, directive)

            logger.debug("converse_settled", extra={"turns": turns})
            return session

    async def _dispatch(self, session: Session, directive: Directive) -> Session:
        """Invoca o callback do handler correspondente à diretiva."""
        try:
            if isinstance(directive, ActionDirective):
                return await self._handler.action(session, directive.action)
            if isinstance(directive, MessageDirective):
                return await self._handler.say(session, directive.text)
            if isinstance(directive, MergeDirective):
                return await self._handler.merge(session, directive.entities)
        except HandlerError:
            raise
        except Exception as exc:
            logger.error(
                "handler_callback_failed",
                extra={"kind": str(directive.kind), "error_type": type(exc).__name__},
            )
            raise HandlerError(
                f"Handler {directive.kind} callback failed: {exc}",
                kind=str(directive.kind),
            ) from exc
        raise AssertionError(f"non-dispatchable directive: {directive!r}")

    async def run(self, source: InputSource) -> None:
        """Driver: consome registros da fonte até o canal fechar.

        Qualquer erro do motor aborta o loop inteiro e é propagado; o
        registro corrente e toda entrada subsequente são descartados.
        """
        requests, records = await source.run()
        processed = 0
        try:
            async for record in records:
                session = self._store.get_or_create(record.session_id)
                session = await self.advance(session, record.query)
                self._store.save(session)
                processed += 1
                await requests.send(record.session_id)
        finally:
            await source.aclose()
            logger.info(
                "driver_stopped",
                extra={"processed_records": processed, "sessions": len(self._store)},
            )
