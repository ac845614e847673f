"""Cliente HTTP especializado para a API de mensagens diretas (v1.1).

Estende o HttpClient genérico com comportamentos específicos:
- Assinatura OAuth 1.0a em todas as requisições
- Rate limiting (429 ou código 88) -> RateLimitError com horário de reset
- Erros da API (errors[].code/message) -> TwitterApiError
- Logging estruturado sem texto de mensagens nem tokens
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import TypeAdapter, ValidationError

from witloop.adapters.twitter.models import DirectMessage
from witloop.adapters.twitter.oauth import OAuth1Auth
from witloop.domain.errors import DecodeError, RateLimitError, ResponseStatusError
from witloop.infra.http import HttpClient, HttpClientConfig
from witloop.observability.logging import get_logger

if TYPE_CHECKING:
    from witloop.config.credentials import Credentials
    from witloop.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

RATE_LIMIT_RESET_HEADER = "x-rate-limit-reset"
RATE_LIMIT_ERROR_CODE = 88

DIRECT_MESSAGES_PATH = "/1.1/direct_messages.json"
NEW_DIRECT_MESSAGE_PATH = "/1.1/direct_messages/new.json"

_DIRECT_MESSAGE_LIST = TypeAdapter(list[DirectMessage])


class TwitterApiError(ResponseStatusError):
    """Erro retornado pela API com a lista (code, message)."""

    def __init__(self, status_code: int, body: str, errors: list[tuple[int, str]]) -> None:
        super().__init__(status_code, body)
        self.errors = errors

    def __str__(self) -> str:
        if not self.errors:
            return super().__str__()
        details = "; ".join(f"code {code}: {message}" for code, message in self.errors)
        return f"Twitter API error (HTTP {self.status_code}): {details}"


def _parse_api_errors(body: str) -> list[tuple[int, str]]:
    """Extrai errors[].code/message do corpo; lista vazia se não houver."""
    try:
        data = json.loads(body)
    except (json.JSONDecodeError, TypeError):
        return []
    if not isinstance(data, dict) or not isinstance(data.get("errors"), list):
        return []
    errors: list[tuple[int, str]] = []
    for item in data["errors"]:
        if not isinstance(item, dict):
            continue
        try:
            code = int(item.get("code"))
        except (TypeError, ValueError):
            # Entrada sem código inteiro não identifica o erro.
            continue
        errors.append((code, str(item.get("message", ""))))
    return errors


def _parse_reset_at(response: httpx.Response, now: datetime) -> datetime:
    raw = response.headers.get(RATE_LIMIT_RESET_HEADER)
    if raw is None:
        return now
    try:
        return datetime.fromtimestamp(int(raw), tz=UTC)
    except ValueError:
        return now


class TwitterApiClient:
    """Operações consumidas pelo conector: buscar desde um marcador e enviar."""

    def __init__(
        self,
        http_client: HttpClient,
        base_url: str = "https://api.twitter.com",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._clock = clock or (lambda: datetime.now(tz=UTC))

    def _check_response(self, response: httpx.Response, endpoint: str) -> None:
        """Classifica resposta não-2xx em RateLimitError ou TwitterApiError."""
        if response.is_success:
            return
        body = response.text
        errors = _parse_api_errors(body)
        rate_limited = response.status_code == 429 or any(
            code == RATE_LIMIT_ERROR_CODE for code, _ in errors
        )
        if rate_limited:
            reset_at = _parse_reset_at(response, self._clock())
            logger.warning(
                "Rate limit da API de mensagens diretas",
                extra={"endpoint": endpoint, "reset_at": reset_at.isoformat()},
            )
            raise RateLimitError(reset_at, body)

        logger.warning(
            "Erro da API de mensagens diretas",
            extra={
                "endpoint": endpoint,
                "status_code": response.status_code,
                "error_codes": [code for code, _ in errors],
            },
        )
        raise TwitterApiError(response.status_code, body, errors)

    async def fetch_direct_messages(self, since_id: int, count: int) -> list[DirectMessage]:
        """Busca mensagens recebidas com id > since_id (ordem não garantida)."""
        response = await self._http.get(
            f"{self._base_url}{DIRECT_MESSAGES_PATH}",
            params={"since_id": str(since_id), "count": str(count)},
        )
        self._check_response(response, DIRECT_MESSAGES_PATH)
        try:
            return _DIRECT_MESSAGE_LIST.validate_json(response.content)
        except ValidationError as exc:
            raise DecodeError(f"Malformed direct message list: {exc.error_count()} error(s)") from exc

    async def send_direct_message(self, user_id: int, text: str) -> dict[str, Any]:
        """Envia mensagem direta ao usuário."""
        response = await self._http.post(
            f"{self._base_url}{NEW_DIRECT_MESSAGE_PATH}",
            params={"user_id": str(user_id), "text": text},
        )
        self._check_response(response, NEW_DIRECT_MESSAGE_PATH)
        if not response.content.strip():
            return {}
        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise DecodeError("Response JSON inválido") from exc
        return data if isinstance(data, dict) else {}

    async def close(self) -> None:
        await self._http.close()


def create_twitter_api_client(
    settings: Settings,
    credentials: Credentials,
    debug: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> TwitterApiClient:
    """Factory para criar cliente de mensagens diretas configurado."""
    auth = OAuth1Auth(
        consumer_key=credentials.twitter_consumer_key,
        consumer_secret=credentials.twitter_consumer_secret,
        token=credentials.twitter_access_token,
        token_secret=credentials.twitter_access_token_secret,
    )
    config = HttpClientConfig(
        timeout_seconds=float(settings.twitter_request_timeout_seconds),
        default_headers={"User-Agent": f"{settings.service_name}/{settings.version}"},
        log_exchanges=debug,
    )

    logger.info(
        "Cliente de mensagens diretas criado",
        extra={"base_url": settings.twitter_api_base_url, "debug": debug},
    )

    return TwitterApiClient(
        HttpClient(config, transport=transport, auth=auth),
        base_url=settings.twitter_api_base_url,
    )
