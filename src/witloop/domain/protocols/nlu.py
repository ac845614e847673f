"""Porta para o backend NLU consumido pelo motor."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol


class NluBackend(Protocol):
    """Chamada request/response ao endpoint de conversa.

    Implementações devem:
    - Levantar TransportError em falha de rede
    - Levantar ResponseStatusError em status fora de 2xx
    - Levantar DecodeError em corpo mal-formado
    """

    async def converse(
        self,
        session_id: str,
        query: str,
        context: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Devolve a resposta decodificada de um turno."""
