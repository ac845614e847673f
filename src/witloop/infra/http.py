"""Cliente HTTP centralizado com timeout e logging.

Este módulo fornece um cliente HTTP configurável para chamadas
externas (API converse do NLU e API de mensagens diretas), com:
- Timeouts configuráveis
- Logging estruturado (sem tokens)
- Injeção de headers padrão
- Dump opcional das trocas HTTP em DEBUG (flag --debug)

Não há retry neste nível: o motor aborta no primeiro erro e o conector
decide sozinho quando esperar e repetir (rate limit).
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any

import httpx

from witloop.domain.errors import DecodeError, TransportError
from witloop.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)
wire_logger: logging.Logger = get_logger("witloop.http.wire")

# Regex pré-compilado para sanitização de headers de autorização
_AUTH_VALUE_PATTERN = re.compile(r"^(Bearer|OAuth)\s+.*$", re.IGNORECASE)

_SENSITIVE_HEADERS = frozenset({"authorization", "proxy-authorization"})


def _mask_header(name: str, value: str) -> str:
    """Mascara credenciais em headers sensíveis."""
    if name.lower() not in _SENSITIVE_HEADERS:
        return value
    match = _AUTH_VALUE_PATTERN.match(value)
    if match:
        return f"{match.group(1)} ***"
    return "***"


def _format_headers(headers: httpx.Headers) -> str:
    return "\n".join(f"{name}: {_mask_header(name, value)}" for name, value in headers.items())


@dataclass
class HttpClientConfig:
    """Configuração do cliente HTTP.

    Valores padrão são seguros e conservadores.
    """

    timeout_seconds: float = 30.0
    default_headers: dict[str, str] = field(default_factory=dict)
    verify_ssl: bool = True
    log_exchanges: bool = False


async def _log_request(request: httpx.Request) -> None:
    """Loga a requisição completa (headers mascarados)."""
    body = request.content.decode("utf-8", errors="replace") if request.content else ""
    wire_logger.debug(
        "=====\nHTTP Req\n-----\n%s %s\n%s\n\n%s",
        request.method,
        request.url,
        _format_headers(request.headers),
        body,
    )


async def _log_response(response: httpx.Response) -> None:
    """Loga a resposta completa; lê o corpo para que fique disponível depois."""
    await response.aread()
    wire_logger.debug(
        "=====\nHTTP Resp\n-----\n%s %s\n%s\n\n%s",
        response.status_code,
        response.reason_phrase,
        _format_headers(response.headers),
        response.text,
    )


def _log_transport_error(method: str, url: str, error: str) -> None:
    """Loga erro transitório (timeout, conexão)."""
    logger.warning(
        "Erro de transporte HTTP",
        extra={"method": method, "url": url, "error": error},
    )


def _log_response_status(method: str, url: str, status_code: int) -> None:
    """Loga status da resposta sem corpo."""
    logger.debug(
        "Resposta HTTP recebida",
        extra={"method": method, "url": url, "status_code": status_code},
    )


class HttpClient:
    """Cliente HTTP assíncrono com logging.

    Uso típico:
        async with HttpClient(config) as client:
            response = await client.request("GET", url)
    """

    def __init__(
        self,
        config: HttpClientConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        auth: httpx.Auth | None = None,
    ) -> None:
        """Inicializa cliente com configuração."""
        self._config = config or HttpClientConfig()
        self._transport = transport
        self._auth = auth
        self._client: httpx.AsyncClient | None = None

    @property
    def config(self) -> HttpClientConfig:
        return self._config

    async def _get_client(self) -> httpx.AsyncClient:
        """Retorna cliente httpx (lazy loading)."""
        if self._client is None or self._client.is_closed:
            event_hooks: dict[str, list[Any]] = {}
            if self._config.log_exchanges:
                event_hooks = {"request": [_log_request], "response": [_log_response]}
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers=self._config.default_headers,
                verify=self._config.verify_ssl,
                transport=self._transport,
                auth=self._auth,
                event_hooks=event_hooks,
            )
        return self._client

    async def close(self) -> None:
        """Fecha o cliente e libera recursos."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> HttpClient:
        """Suporte a async context manager."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Fecha cliente ao sair do context."""
        await self.close()

    async def request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Executa uma requisição e devolve a resposta, qualquer que seja o status.

        Raises:
            TransportError: timeout, falha de conexão ou outro erro de transporte
            DecodeError: corpo com content-encoding inválido
        """
        client = await self._get_client()
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            _log_transport_error(method, url, "timeout")
            raise TransportError(f"Timeout em {method} {url}") from exc
        except httpx.DecodingError as exc:
            _log_transport_error(method, url, "decoding")
            raise DecodeError(f"Corpo da resposta não decodificável em {method} {url}: {exc}") from exc
        except httpx.RequestError as exc:
            _log_transport_error(method, url, type(exc).__name__)
            raise TransportError(f"Erro de transporte em {method} {url}: {exc}") from exc

        _log_response_status(method, url, response.status_code)
        return response

    # Métodos de conveniência

    async def get(self, url: str, **kwargs: Any) -> httpx.Response:
        """Executa GET."""
        return await self.request("GET", url, **kwargs)

    async def post(
        self,
        url: str,
        json: Any | None = None,
        **kwargs: Any,
    ) -> httpx.Response:
        """Executa POST."""
        if json is not None:
            kwargs["json"] = json
        return await self.request("POST", url, **kwargs)
