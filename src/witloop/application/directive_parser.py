"""Parser de respostas do /converse em diretivas.

Decodifica uma única vez, na borda, a tag `type` da resposta para a união
etiquetada de diretivas. Payload fora do contrato levanta DecodeError
(distinto de erro de rede); o motor trata isso como fatal para o turno.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from witloop.domain.directives import (
    ActionDirective,
    Directive,
    MergeDirective,
    MessageDirective,
    StopDirective,
    UnknownDirective,
)
from witloop.domain.entities import Entity, EntityMap
from witloop.domain.enums import DirectiveKind
from witloop.domain.errors import DecodeError


class ConverseResponse(BaseModel):
    """Formato de fio de uma resposta do /converse."""

    model_config = ConfigDict(extra="ignore")

    type: str | None = None  # noqa: A003
    msg: str | None = None
    action: str | None = None
    entities: dict[str, list[Entity]] | None = None
    confidence: float | None = None


def parse_converse_response(payload: Any) -> ConverseResponse:
    """Valida o payload bruto contra o modelo de fio.

    Raises:
        DecodeError: payload não é objeto ou não respeita o contrato
    """
    if not isinstance(payload, Mapping):
        raise DecodeError(f"Converse response must be an object, got {type(payload).__name__}")
    try:
        return ConverseResponse.model_validate(dict(payload))
    except ValidationError as exc:
        raise DecodeError(f"Malformed converse response: {exc.error_count()} error(s)") from exc


def parse_directive(payload: Any) -> Directive:
    """Converte uma resposta do /converse em exatamente uma diretiva."""
    response = parse_converse_response(payload)
    tag = (response.type or "").strip().lower()

    if tag == DirectiveKind.ACTION:
        return ActionDirective(action=response.action or "")
    if tag == DirectiveKind.MESSAGE:
        return MessageDirective(text=response.msg or "")
    if tag == DirectiveKind.MERGE:
        return MergeDirective(entities=EntityMap(response.entities or {}))
    if tag == DirectiveKind.STOP:
        return StopDirective()
    return UnknownDirective(raw_type=response.type or "")
