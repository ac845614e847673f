"""Re-exports dos Protocolos de domínio para uso por Application."""

from __future__ import annotations

from witloop.domain.protocols.handler import Handler
from witloop.domain.protocols.input_source import InputSource
from witloop.domain.protocols.nlu import NluBackend
from witloop.domain.protocols.session_store import SessionStoreProtocol

__all__ = [
    "Handler",
    "InputSource",
    "NluBackend",
    "SessionStoreProtocol",
]
