"""Handler de exemplo: previsão do tempo.

- action: define `forecast` no contexto
- say: imprime a mensagem no terminal
- merge: política de localização (ver LocationMergePolicy)
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

from witloop.domain.entities import EntityMap
from witloop.domain.errors import MissingEntitiesError
from witloop.domain.protocols.handler import Handler
from witloop.domain.session import Session
from witloop.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

DEFAULT_FORECAST = "sunny"


class LocationMergePolicy:
    """Mescla a primeira entidade `location` em `context[loc]`.

    Sem entidade de localização o contexto inteiro é descartado e a troca
    continua sem erro. Política do app, não do motor.
    """

    def __init__(self, entity_key: str = "location", context_key: str = "loc") -> None:
        self.entity_key = entity_key
        self.context_key = context_key

    def apply(self, session: Session, entities: EntityMap) -> Session:
        try:
            value = entities.first_entity_value(self.entity_key)
        except MissingEntitiesError:
            logger.debug("location_missing_context_reset")
            session.reset_context()
            return session
        session.merge({self.context_key: value})
        return session


def set_forecast(session: Session, forecast: str = DEFAULT_FORECAST) -> Session:
    session.set("forecast", forecast)
    return session


class WeatherHandler(Handler):
    """Handler interativo: responde no stream de saída."""

    def __init__(
        self,
        output: TextIO | None = None,
        merge_policy: LocationMergePolicy | None = None,
    ) -> None:
        self._output = output if output is not None else sys.stdout
        self._merge_policy = merge_policy or LocationMergePolicy()

    async def action(self, session: Session, action: str) -> Session:
        logger.debug("weather_action", extra={"action": action})
        return set_forecast(session)

    async def say(self, session: Session, text: str) -> Session:
        self._output.write(f"< {text}\n")
        self._output.flush()
        return session

    async def merge(self, session: Session, entities: EntityMap) -> Session:
        return self._merge_policy.apply(session, entities)

    def error(self, session: Session, text: str) -> None:
        logger.warning("weather_handler_error", extra={"session_id": session.session_id})
