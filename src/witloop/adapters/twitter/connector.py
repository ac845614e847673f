"""Conector de mensagens diretas com polling e backoff de rate limit.

Três atividades independentes, compostas por run():
- pending: drena os reconhecimentos do driver (descartados; o polling é
  guiado por timer, não pelo aperto de mão)
- fetch: a cada intervalo busca mensagens desde o marcador, ordena por id
  crescente e emite um InputRecord por mensagem nova
- write: drena a fila de envio; em rate limit espera e repete o mesmo
  pedido, em qualquer outro erro loga e descarta o pedido

O marcador `processed_to_id` só avança. Rate limit nunca escapa daqui.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any, Protocol

from witloop.adapters.twitter.backoff import compute_rate_limit_wait
from witloop.adapters.twitter.models import DirectMessage, DirectMessageRequest
from witloop.domain.errors import RateLimitError, SessionIdError, TransportError, WitloopError
from witloop.domain.protocols.input_source import InputSource
from witloop.domain.session import InputRecord
from witloop.infra.channel import Channel
from witloop.observability.logging import get_logger

if TYPE_CHECKING:
    from witloop.config.settings import Settings

logger: logging.Logger = get_logger(__name__)

SESSION_ID_SEPARATOR = "-"


class DirectMessageApi(Protocol):
    """Operações upstream consumidas pelo conector."""

    async def fetch_direct_messages(self, since_id: int, count: int) -> list[DirectMessage]: ...

    async def send_direct_message(self, user_id: int, text: str) -> Any: ...


def make_session_id(user_id: int, now: datetime) -> str:
    """Session id no formato `<user id>-<unix timestamp>`."""
    return f"{user_id}{SESSION_ID_SEPARATOR}{int(now.timestamp())}"


def parse_session_id(session_id: str) -> int:
    """Recupera o user id (componente antes do primeiro separador).

    Raises:
        SessionIdError: componente inicial não é inteiro
    """
    head = session_id.split(SESSION_ID_SEPARATOR, 1)[0]
    try:
        return int(head)
    except ValueError as exc:
        raise SessionIdError(f"Invalid direct message session id: {session_id!r}") from exc


def _as_witloop_error(exc: Exception) -> WitloopError:
    """Normaliza falha fatal do fetch para a taxonomia da biblioteca."""
    if isinstance(exc, WitloopError):
        return exc
    wrapped = TransportError(f"Direct message fetch failed: {type(exc).__name__}: {exc}")
    wrapped.__cause__ = exc
    return wrapped


class DirectMessageConnector(InputSource):
    """Fonte de entrada por polling + fila de envio de mensagens diretas."""

    def __init__(
        self,
        api: DirectMessageApi,
        poll_interval: float = 60.0,
        fetch_count: int = 100,
        outgoing_size: int = 10,
        min_wait: float = 10.0,
        max_wait: float | None = None,
        processed_to_id: int = 0,
        clock: Callable[[], datetime] | None = None,
        sleep: Callable[[float], Awaitable[Any]] | None = None,
        monotonic: Callable[[], float] | None = None,
    ) -> None:
        super().__init__()
        self._api = api
        self._poll_interval = poll_interval
        self._fetch_count = fetch_count
        self._min_wait = timedelta(seconds=min_wait)
        self._max_wait = timedelta(seconds=max_wait) if max_wait is not None else None
        self._processed_to_id = processed_to_id
        self._clock = clock or (lambda: datetime.now(tz=UTC))
        self._sleep = sleep or asyncio.sleep
        self._monotonic = monotonic or time.monotonic
        self._outgoing: Channel[DirectMessageRequest] = Channel(
            maxsize=outgoing_size, name="dm-outgoing"
        )
        self.fetch_error: WitloopError | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        api: DirectMessageApi,
        processed_to_id: int = 0,
    ) -> DirectMessageConnector:
        return cls(
            api,
            poll_interval=settings.twitter_poll_interval_seconds,
            fetch_count=settings.twitter_fetch_count,
            outgoing_size=settings.twitter_outgoing_queue_size,
            min_wait=settings.rate_limit_min_wait_seconds,
            max_wait=settings.rate_limit_max_wait_seconds,
            processed_to_id=processed_to_id,
        )

    @property
    def processed_to_id(self) -> int:
        """Maior id de mensagem já emitido."""
        return self._processed_to_id

    async def set_processed_marker_to_current(self) -> int:
        """Posiciona o marcador na mensagem mais recente do upstream."""
        existing = await self._api.fetch_direct_messages(0, 1)
        if existing:
            self._processed_to_id = max(self._processed_to_id, existing[0].id)
        return self._processed_to_id

    async def enqueue_message(self, user_id: int, text: str) -> None:
        """Enfileira envio para o loop de escrita (sem I/O de rede aqui)."""
        await self._outgoing.send(DirectMessageRequest(user_id=user_id, text=text))

    async def _wait_rate_limit(self, exc: RateLimitError) -> None:
        wait = compute_rate_limit_wait(exc.reset_at, self._clock(), self._min_wait, self._max_wait)
        logger.warning(
            "Rate limited, aguardando reset",
            extra={"reset_at": exc.reset_at.isoformat(), "wait_seconds": wait.total_seconds()},
        )
        await self._sleep(wait.total_seconds())

    async def _run_pending(self, requests: Channel[str]) -> None:
        async for session_id in requests:
            logger.debug("Discarding request", extra={"session_id": session_id})

    async def _emit(self, messages: list[DirectMessage], records: Channel[InputRecord]) -> int:
        """Emite mensagens novas em ordem crescente de id; avança o marcador."""
        emitted = 0
        for message in sorted(messages, key=lambda m: m.id):
            if message.id <= self._processed_to_id:
                continue
            await records.send(
                InputRecord(
                    session_id=make_session_id(message.sender.id, self._clock()),
                    query=message.text,
                )
            )
            self._processed_to_id = message.id
            emitted += 1
        return emitted

    async def _run_fetch(self, records: Channel[InputRecord]) -> None:
        try:
            next_tick = self._monotonic() + self._poll_interval
            while True:
                logger.debug("Requesting direct messages", extra={"since_id": self._processed_to_id})
                try:
                    messages = await self._api.fetch_direct_messages(
                        self._processed_to_id, self._fetch_count
                    )
                except RateLimitError as exc:
                    await self._wait_rate_limit(exc)
                    continue
                except Exception as exc:  # noqa: BLE001
                    self.fetch_error = _as_witloop_error(exc)
                    logger.error(
                        "direct_message_fetch_failed",
                        extra={"error_type": type(exc).__name__, "error": str(exc)},
                    )
                    return

                emitted = await self._emit(messages, records)
                logger.info(
                    "direct_messages_polled",
                    extra={
                        "received": len(messages),
                        "emitted": emitted,
                        "processed_to_id": self._processed_to_id,
                    },
                )
                await self._sleep(max(0.0, next_tick - self._monotonic()))
                next_tick = max(next_tick, self._monotonic()) + self._poll_interval
        finally:
            records.close()

    async def deliver(self, request: DirectMessageRequest) -> bool:
        """Tenta entregar um pedido; repete indefinidamente em rate limit.

        Returns:
            True se entregue, False se descartado por erro não recuperável
        """
        attempt = 0
        while True:
            attempt += 1
            logger.info(
                "Sending direct message",
                extra={"user_id": request.user_id, "attempt": attempt},
            )
            try:
                await self._api.send_direct_message(request.user_id, request.text)
            except RateLimitError as exc:
                await self._wait_rate_limit(exc)
                continue
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "direct_message_send_failed, will not retry write",
                    extra={
                        "user_id": request.user_id,
                        "error_type": type(exc).__name__,
                        "error": str(exc),
                    },
                )
                return False
            return True

    async def _run_write(self) -> None:
        async for request in self._outgoing:
            await self.deliver(request)

    async def run(self) -> tuple[Channel[str], Channel[InputRecord]]:
        requests: Channel[str] = Channel(name="dm-requests")
        records: Channel[InputRecord] = Channel(maxsize=1, name="dm-records")
        self._spawn(self._run_pending(requests), name="dm-pending")
        self._spawn(self._run_fetch(records), name="dm-fetch")
        self._spawn(self._run_write(), name="dm-write")
        return requests, records
