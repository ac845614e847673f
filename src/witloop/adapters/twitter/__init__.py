"""Conector de mensagens diretas (polling + envio com backoff)."""

from witloop.adapters.twitter.api_client import (
    TwitterApiClient,
    TwitterApiError,
    create_twitter_api_client,
)
from witloop.adapters.twitter.backoff import compute_rate_limit_wait
from witloop.adapters.twitter.connector import (
    DirectMessageConnector,
    make_session_id,
    parse_session_id,
)
from witloop.adapters.twitter.models import DirectMessage, DirectMessageRequest, TwitterUser
from witloop.adapters.twitter.oauth import OAuth1Auth

__all__ = [
    "DirectMessage",
    "DirectMessageConnector",
    "DirectMessageRequest",
    "OAuth1Auth",
    "TwitterApiClient",
    "TwitterApiError",
    "TwitterUser",
    "compute_rate_limit_wait",
    "create_twitter_api_client",
    "make_session_id",
    "parse_session_id",
]
