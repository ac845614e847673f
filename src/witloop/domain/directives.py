"""Diretivas do NLU como união etiquetada.

Cada chamada ao /converse produz exatamente uma diretiva; ela é
descartada depois do dispatch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from witloop.domain.entities import EntityMap
from witloop.domain.enums import DirectiveKind


@dataclass(frozen=True, slots=True)
class ActionDirective:
    """Executar a ação nomeada."""

    kind: ClassVar[DirectiveKind] = DirectiveKind.ACTION

    action: str


@dataclass(frozen=True, slots=True)
class MessageDirective:
    """Repassar texto ao usuário final."""

    kind: ClassVar[DirectiveKind] = DirectiveKind.MESSAGE

    text: str


@dataclass(frozen=True, slots=True)
class MergeDirective:
    """Mesclar entidades extraídas no contexto."""

    kind: ClassVar[DirectiveKind] = DirectiveKind.MERGE

    entities: EntityMap = field(default_factory=EntityMap)


@dataclass(frozen=True, slots=True)
class StopDirective:
    """Fim da troca."""

    kind: ClassVar[DirectiveKind] = DirectiveKind.STOP


@dataclass(frozen=True, slots=True)
class UnknownDirective:
    """Tag não reconhecida; terminal, não é erro."""

    kind: ClassVar[DirectiveKind] = DirectiveKind.UNKNOWN

    raw_type: str = ""


Directive = ActionDirective | MessageDirective | MergeDirective | StopDirective | UnknownDirective
