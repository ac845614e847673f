"""Assinatura OAuth 1.0a (HMAC-SHA1) como httpx.Auth.

Assina método, URL base e todos os parâmetros (query, corpo
form-urlencoded e oauth_*), conforme RFC 5849 § 3.4.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import secrets
import time
from collections.abc import Callable, Generator, Iterable
from urllib.parse import parse_qsl, quote

import httpx

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def percent_encode(value: str) -> str:
    """Percent-encoding RFC 3986 (apenas unreserved fica literal)."""
    return quote(value, safe="~")


def _default_nonce() -> str:
    return secrets.token_hex(16)


def _default_timestamp() -> str:
    return str(int(time.time()))


def base_string_uri(url: httpx.URL) -> str:
    """scheme://host[:porta não padrão]/path, sem query."""
    scheme = url.scheme.lower()
    host = url.host.lower()
    port = url.port
    if port is not None and not (
        (scheme == "http" and port == 80) or (scheme == "https" and port == 443)
    ):
        host = f"{host}:{port}"
    return f"{scheme}://{host}{url.path}"


def normalize_parameters(params: Iterable[tuple[str, str]]) -> str:
    """Codifica, ordena por (nome, valor) e junta com '&'."""
    encoded = sorted((percent_encode(k), percent_encode(v)) for k, v in params)
    return "&".join(f"{k}={v}" for k, v in encoded)


def signature_base_string(method: str, url: httpx.URL, params: Iterable[tuple[str, str]]) -> str:
    return "&".join(
        [
            method.upper(),
            percent_encode(base_string_uri(url)),
            percent_encode(normalize_parameters(params)),
        ]
    )


def sign_hmac_sha1(base_string: str, consumer_secret: str, token_secret: str) -> str:
    key = f"{percent_encode(consumer_secret)}&{percent_encode(token_secret)}"
    digest = hmac.new(key.encode("utf-8"), base_string.encode("utf-8"), hashlib.sha1).digest()
    return base64.b64encode(digest).decode("ascii")


class OAuth1Auth(httpx.Auth):
    """Adiciona o header `Authorization: OAuth ...` a cada requisição."""

    requires_request_body = True

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        token: str,
        token_secret: str,
        nonce_factory: Callable[[], str] = _default_nonce,
        timestamp_factory: Callable[[], str] = _default_timestamp,
    ) -> None:
        self._consumer_key = consumer_key
        self._consumer_secret = consumer_secret
        self._token = token
        self._token_secret = token_secret
        self._nonce_factory = nonce_factory
        self._timestamp_factory = timestamp_factory

    def oauth_params(self) -> dict[str, str]:
        return {
            "oauth_consumer_key": self._consumer_key,
            "oauth_nonce": self._nonce_factory(),
            "oauth_signature_method": "HMAC-SHA1",
            "oauth_timestamp": self._timestamp_factory(),
            "oauth_token": self._token,
            "oauth_version": "1.0",
        }

    def build_authorization(self, request: httpx.Request) -> str:
        oauth = self.oauth_params()
        params: list[tuple[str, str]] = list(request.url.params.multi_items())
        content_type = request.headers.get("content-type", "")
        if content_type.startswith(FORM_CONTENT_TYPE) and request.content:
            params.extend(parse_qsl(request.content.decode("utf-8"), keep_blank_values=True))
        params.extend(oauth.items())

        base_string = signature_base_string(request.method, request.url, params)
        oauth["oauth_signature"] = sign_hmac_sha1(
            base_string, self._consumer_secret, self._token_secret
        )
        header_params = ", ".join(
            f'{percent_encode(k)}="{percent_encode(v)}"' for k, v in sorted(oauth.items())
        )
        return f"OAuth {header_params}"

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = self.build_authorization(request)
        yield request
