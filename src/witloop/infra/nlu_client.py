"""Cliente da API Wit.ai (endpoints /converse e /message).

Responsabilidade:
- Montar requests (versão `v`, Bearer token, User-Agent)
- Classificar respostas: status != 2xx, corpo vazio, JSON inválido
- Nunca logar o token nem o texto do usuário fora do modo debug
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import httpx

from witloop.domain.errors import DecodeError, ResponseStatusError
from witloop.infra.http import HttpClient, HttpClientConfig
from witloop.observability.logging import get_logger

if TYPE_CHECKING:
    from witloop.config.settings import Settings

logger: logging.Logger = get_logger(__name__)


def decode_json_response(response: httpx.Response) -> dict[str, Any]:
    """Decodifica resposta de sucesso em dict.

    Corpo vazio vira {} (o parser trata como diretiva desconhecida).

    Raises:
        ResponseStatusError: status fora de 2xx (carrega corpo bruto)
        DecodeError: JSON inválido ou que não é objeto
    """
    if not response.is_success:
        raise ResponseStatusError(response.status_code, response.text)

    raw = response.content
    if not raw.strip():
        return {}
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise DecodeError(f"Response JSON inválido: {exc}") from exc
    if not isinstance(data, dict):
        raise DecodeError(f"Response JSON deveria ser objeto, veio {type(data).__name__}")
    return data


class WitClient:
    """Cliente do NLU que implementa a porta NluBackend."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.wit.ai",
        version: str = "20160412",
        user_agent: str = "witloop",
        http_client: HttpClient | None = None,
    ) -> None:
        self._access_token = access_token
        self._base_url = base_url.rstrip("/")
        self.version = version
        self.user_agent = user_agent
        self._http = http_client or HttpClient()

    def _headers(self, content_type: str | None = None) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._access_token}",
            "User-Agent": self.user_agent,
        }
        if content_type:
            headers["Content-Type"] = content_type
        return headers

    def _params(self, fields: Mapping[str, str]) -> dict[str, str]:
        """Query string: descarta campos vazios e fixa a versão."""
        params = {name: value for name, value in fields.items() if value}
        params["v"] = self.version
        return params

    async def converse(
        self,
        session_id: str,
        query: str,
        context: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Executa um turno do /converse com o contexto da sessão no corpo."""
        response = await self._http.post(
            f"{self._base_url}/converse",
            params=self._params({"q": query, "session_id": session_id}),
            headers=self._headers("application/json"),
            content=json.dumps(dict(context)).encode("utf-8"),
        )
        logger.debug(
            "converse_turn_response",
            extra={"status_code": response.status_code, "has_query": bool(query)},
        )
        return decode_json_response(response)

    async def message(self, query: str) -> dict[str, Any]:
        """Extrai intenção/entidades de uma frase isolada (/message)."""
        response = await self._http.get(
            f"{self._base_url}/message",
            params=self._params({"q": query}),
            headers=self._headers(),
        )
        return decode_json_response(response)

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> WitClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()


def create_wit_client(
    settings: Settings,
    access_token: str | None = None,
    debug: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> WitClient:
    """Factory para criar cliente NLU configurado.

    Args:
        settings: Configurações da aplicação
        access_token: Sobrepõe settings.wit_access_token
        debug: Loga as trocas HTTP completas em DEBUG

    Raises:
        ValueError: Nenhum token disponível
    """
    token = access_token or settings.wit_access_token
    if not token:
        raise ValueError("You must specify a server access token using the --token flag!")

    config = HttpClientConfig(
        timeout_seconds=float(settings.wit_request_timeout_seconds),
        verify_ssl=True,
        log_exchanges=debug,
    )

    logger.info(
        "Cliente NLU criado",
        extra={
            "base_url": settings.wit_api_endpoint,
            "version": settings.wit_api_version,
            "debug": debug,
        },
    )

    return WitClient(
        access_token=token,
        base_url=settings.wit_api_endpoint,
        version=settings.wit_api_version,
        user_agent=settings.wit_user_agent,
        http_client=HttpClient(config, transport=transport),
    )
