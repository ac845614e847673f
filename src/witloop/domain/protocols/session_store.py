"""Protocolo de domínio para o armazenamento de sessões."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from witloop.domain.session import Session


class SessionStoreProtocol(ABC):
    """Contrato mínimo para armazenamento de Session.

    Acesso de escritor único (o driver); implementações não precisam de lock.
    """

    @abstractmethod
    def save(self, session: Session) -> None: ...

    @abstractmethod
    def load(self, session_id: str) -> Session | None: ...

    @abstractmethod
    def get_or_create(self, session_id: str) -> Session: ...

    @abstractmethod
    def delete(self, session_id: str) -> bool: ...

    @abstractmethod
    def exists(self, session_id: str) -> bool: ...

    @abstractmethod
    def __len__(self) -> int: ...
