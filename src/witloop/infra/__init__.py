"""Infraestrutura: canais, HTTP, cliente NLU e store de sessões."""

from witloop.infra.channel import Channel
from witloop.infra.http import HttpClient, HttpClientConfig
from witloop.infra.nlu_client import WitClient, create_wit_client
from witloop.infra.session_store_memory import InMemorySessionStore

__all__ = [
    "Channel",
    "HttpClient",
    "HttpClientConfig",
    "InMemorySessionStore",
    "WitClient",
    "create_wit_client",
]
