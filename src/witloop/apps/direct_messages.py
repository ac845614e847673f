"""Handler de exemplo sobre mensagens diretas.

Mesma lógica de ação/merge do app de previsão do tempo; `say` decodifica
o user id do session_id e enfileira a resposta no conector, sem I/O de
rede no caminho do motor.
"""

from __future__ import annotations

import logging

from witloop.adapters.twitter.connector import DirectMessageConnector, parse_session_id
from witloop.apps.weather import LocationMergePolicy, set_forecast
from witloop.domain.entities import EntityMap
from witloop.domain.protocols.handler import Handler
from witloop.domain.session import Session
from witloop.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class DirectMessageHandler(Handler):
    def __init__(
        self,
        connector: DirectMessageConnector,
        merge_policy: LocationMergePolicy | None = None,
    ) -> None:
        self._connector = connector
        self._merge_policy = merge_policy or LocationMergePolicy()

    async def action(self, session: Session, action: str) -> Session:
        return set_forecast(session)

    async def say(self, session: Session, text: str) -> Session:
        user_id = parse_session_id(session.session_id)
        await self._connector.enqueue_message(user_id, text)
        return session

    async def merge(self, session: Session, entities: EntityMap) -> Session:
        return self._merge_policy.apply(session, entities)

    def error(self, session: Session, text: str) -> None:
        logger.warning("direct_message_handler_error", extra={"session_id": session.session_id})
