"""Testes do parser de respostas do /converse."""

from __future__ import annotations

import pytest

from witloop.application.directive_parser import parse_converse_response, parse_directive
from witloop.domain.directives import (
    ActionDirective,
    MergeDirective,
    MessageDirective,
    StopDirective,
    UnknownDirective,
)
from witloop.domain.enums import DirectiveKind
from witloop.domain.errors import DecodeError


class TestParseDirective:
    """Mapeamento da tag `type` para diretivas."""

    def test_action(self) -> None:
        directive = parse_directive({"type": "action", "action": "fetch-forecast"})

        assert directive == ActionDirective(action="fetch-forecast")
        assert directive.kind is DirectiveKind.ACTION

    def test_message(self) -> None:
        directive = parse_directive({"type": "msg", "msg": "It is sunny in Paris"})

        assert directive == MessageDirective(text="It is sunny in Paris")

    def test_merge_carries_entities_in_order(self) -> None:
        directive = parse_directive(
            {
                "type": "merge",
                "entities": {"location": [{"value": "Paris"}, {"value": "London"}]},
            }
        )

        assert isinstance(directive, MergeDirective)
        assert [e.value for e in directive.entities["location"]] == ["Paris", "London"]
        assert directive.entities.first_entity_value("location") == "Paris"

    def test_merge_without_entities_yields_empty_map(self) -> None:
        directive = parse_directive({"type": "merge"})

        assert isinstance(directive, MergeDirective)
        assert dict(directive.entities) == {}

    def test_stop(self) -> None:
        directive = parse_directive({"type": "stop", "confidence": 0.9})

        assert isinstance(directive, StopDirective)
        assert directive.kind.is_terminal

    def test_tag_is_case_insensitive(self) -> None:
        assert isinstance(parse_directive({"type": "STOP"}), StopDirective)

    def test_unrecognised_tag_is_unknown(self) -> None:
        directive = parse_directive({"type": "error"})

        assert directive == UnknownDirective(raw_type="error")
        assert directive.kind.is_terminal

    def test_empty_payload_is_unknown(self) -> None:
        """Corpo vazio do backend vira {} e encerra a troca."""
        directive = parse_directive({})

        assert isinstance(directive, UnknownDirective)
        assert directive.raw_type == ""

    def test_null_tag_is_unknown(self) -> None:
        """`type: null` encerra a troca em vez de falhar na decodificação."""
        directive = parse_directive({"type": None, "msg": "ignored"})

        assert directive == UnknownDirective(raw_type="")
        assert directive.kind.is_terminal

    def test_non_terminal_kinds(self) -> None:
        assert not DirectiveKind.ACTION.is_terminal
        assert not DirectiveKind.MESSAGE.is_terminal
        assert not DirectiveKind.MERGE.is_terminal


class TestParseConverseResponse:
    """Payloads fora do contrato."""

    def test_non_object_payload_raises(self) -> None:
        with pytest.raises(DecodeError):
            parse_converse_response(["stop"])

    def test_malformed_entities_raise(self) -> None:
        with pytest.raises(DecodeError):
            parse_directive({"type": "merge", "entities": "Paris"})

    def test_extra_fields_ignored(self) -> None:
        response = parse_converse_response({"type": "msg", "msg": "hi", "quickreplies": ["a"]})

        assert response.msg == "hi"
