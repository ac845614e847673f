"""Implementação de SessionStore em memória (escopo do processo)."""

from __future__ import annotations

import logging

from witloop.domain.protocols.session_store import SessionStoreProtocol
from witloop.domain.session import Session
from witloop.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)


class InMemorySessionStore(SessionStoreProtocol):
    """Armazenamento em memória sem TTL.

    Sessões vivem enquanto o processo viver. Escrita apenas pelo driver,
    sequencial, portanto sem lock.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def save(self, session: Session) -> None:
        self._sessions[session.session_id] = session
        logger.debug(
            "Session saved (in-memory)",
            extra={"session_id": session.session_id, "context_keys": len(session.context)},
        )

    def load(self, session_id: str) -> Session | None:
        session = self._sessions.get(session_id)
        if session is None:
            logger.debug("Session not found (in-memory)", extra={"session_id": session_id})
        return session

    def get_or_create(self, session_id: str) -> Session:
        """Carrega a sessão ou cria uma nova com contexto vazio (não salva)."""
        session = self.load(session_id)
        if session is None:
            session = Session(session_id=session_id)
            logger.debug("Session created (in-memory)", extra={"session_id": session_id})
        return session

    def delete(self, session_id: str) -> bool:
        if session_id in self._sessions:
            del self._sessions[session_id]
            logger.debug("Session deleted (in-memory)", extra={"session_id": session_id})
            return True
        return False

    def exists(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
