"""Contrato do handler da aplicação invocado pelo motor de conversação."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from witloop.domain.entities import EntityMap
    from witloop.domain.session import Session


class Handler(ABC):
    """Conjunto de callbacks por tipo de diretiva.

    Cada callback recebe a sessão corrente e devolve a sessão que passa a
    valer (pode ser a mesma instância, mutada). Qualquer exceção aborta a
    troca em andamento.
    """

    @abstractmethod
    async def action(self, session: Session, action: str) -> Session:
        """Executa a ação nomeada pelo NLU."""
        ...

    @abstractmethod
    async def say(self, session: Session, text: str) -> Session:
        """Entrega `text` ao usuário final (efeito colateral do handler)."""
        ...

    @abstractmethod
    async def merge(self, session: Session, entities: EntityMap) -> Session:
        """Incorpora entidades extraídas; política de chave ausente é do handler."""
        ...

    @abstractmethod
    def error(self, session: Session, text: str) -> None:
        """Notificação fire-and-forget de erro não fatal ao usuário."""
        ...
