"""Entidades extraídas pelo NLU.

A ordem das entidades de cada chave é a ordem devolvida pelo backend e é
significativa: o índice 0 é o valor autoritativo.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from witloop.domain.errors import MissingEntitiesError


class EntityValue(BaseModel):
    """Valor alternativo de uma entidade com suas expressões textuais."""

    model_config = ConfigDict(extra="ignore")

    value: Any = None
    expressions: list[str] = Field(default_factory=list)


class Entity(BaseModel):
    """Candidato extraído para uma chave semântica."""

    model_config = ConfigDict(extra="ignore")

    value: Any = None
    lang: str | None = None
    closed: bool = False
    exotic: bool = False
    builtin: bool = False
    doc: str | None = None
    name: str | None = None
    id: str | None = None
    confidence: float | None = None
    values: list[EntityValue] = Field(default_factory=list)


class EntityMap(dict[str, list[Entity]]):
    """Mapa chave -> sequência ordenada de entidades candidatas."""

    def first_entity_value(self, key: str) -> Any:
        """Retorna o valor da primeira entidade de `key`.

        Raises:
            MissingEntitiesError: chave ausente ou sem entidades
        """
        return first_entity_value(self, key)


def first_entity_value(entities: dict[str, list[Entity]], key: str) -> Any:
    """Valor do índice 0 da sequência de `key`; falha se ausente ou vazia."""
    candidates = entities.get(key)
    if not candidates:
        raise MissingEntitiesError(key)
    return candidates[0].value
