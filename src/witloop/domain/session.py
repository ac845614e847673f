"""Models de sessão: Session e InputRecord.

Session é o estado conversacional de um interlocutor:
- Um session_id opaco, imutável após a criação
- Um contexto chave -> valor enviado ao NLU em todo turno
- Vive enquanto o processo viver (sem persistência entre restarts)
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, Field


class Session(BaseModel):
    """Estado de uma sessão de conversa.

    O contexto é mutável e pode ser mesclado ou substituído pelos
    callbacks do handler.
    """

    session_id: str = Field(frozen=True)
    context: dict[str, Any] = Field(default_factory=dict)

    def set(self, key: str, value: Any) -> None:  # noqa: A003
        """Define uma chave do contexto."""
        self.context[key] = value

    def merge(self, values: Mapping[str, Any]) -> None:
        """Mescla `values` no contexto (sobrescreve chaves existentes)."""
        self.context.update(values)

    def reset_context(self) -> None:
        """Substitui o contexto por um mapa vazio."""
        self.context = {}


@dataclass(frozen=True, slots=True)
class InputRecord:
    """Entrada produzida por uma fonte e consumida uma única vez pelo driver.

    Query vazia significa "continuar sem nova entrada do usuário".
    """

    session_id: str
    query: str = ""
