from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import pytest

from witloop.config.settings import get_settings
from witloop.domain.entities import EntityMap
from witloop.domain.protocols.handler import Handler
from witloop.domain.session import Session


class ScriptedNlu:
    """Backend NLU falso: devolve respostas (ou levanta erros) em ordem.

    Sem respostas restantes, devolve stop.
    """

    def __init__(self, responses: list[dict[str, Any] | Exception] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[tuple[str, str, dict[str, Any]]] = []

    async def converse(
        self,
        session_id: str,
        query: str,
        context: Mapping[str, Any],
    ) -> dict[str, Any]:
        self.calls.append((session_id, query, dict(context)))
        if not self.responses:
            return {"type": "stop"}
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class RecordingHandler(Handler):
    """Handler que registra cada callback recebido."""

    def __init__(self) -> None:
        self.events: list[tuple[str, Any]] = []
        self.errors: list[str] = []

    async def action(self, session: Session, action: str) -> Session:
        self.events.append(("action", action))
        session.set("last_action", action)
        return session

    async def say(self, session: Session, text: str) -> Session:
        self.events.append(("say", text))
        return session

    async def merge(self, session: Session, entities: EntityMap) -> Session:
        self.events.append(("merge", entities))
        return session

    def error(self, session: Session, text: str) -> None:
        self.errors.append(text)


@pytest.fixture()
def scripted_nlu():
    """Factory de backends NLU roteirizados."""

    def _build(*responses: dict[str, Any] | Exception) -> ScriptedNlu:
        return ScriptedNlu(list(responses))

    return _build


@pytest.fixture()
def recording_handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture(autouse=True)
def _clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
