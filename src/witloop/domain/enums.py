"""Enums de domínio para diretivas do NLU."""

from __future__ import annotations

from enum import StrEnum


class DirectiveKind(StrEnum):
    """Tipos de diretiva devolvidos pelo endpoint /converse.

    O valor é a tag (já em minúsculas) enviada no campo `type`.
    UNKNOWN cobre qualquer tag não reconhecida e é tratado como parada.
    """

    ACTION = "action"
    MESSAGE = "msg"
    MERGE = "merge"
    STOP = "stop"
    UNKNOWN = "unknown"

    @property
    def is_terminal(self) -> bool:
        """True para diretivas que encerram a troca (stop e desconhecida)."""
        return self in (DirectiveKind.STOP, DirectiveKind.UNKNOWN)
