"""Canal assíncrono entre atividades (produtor -> consumidor).

Abstrai a troca de mensagens entre a fonte de entrada, o driver e os
loops do conector. Toda transferência de estado entre atividades passa por
um canal; nenhuma estrutura compartilhada com lock.

Responsabilidades:
- Enfileirar itens com capacidade limitada (backpressure) ou ilimitada
- Desenfileirar bloqueando até haver item ou o canal ser fechado
- Sinalizar fim de stream ao consumidor via close()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, TypeVar

from witloop.domain.errors import ChannelClosedError
from witloop.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

T = TypeVar("T")

_CLOSED: Any = object()


class Channel(Generic[T]):
    """Canal baseado em asyncio.Queue com semântica de fechamento.

    maxsize=0 cria um canal ilimitado. Após close(), o consumidor ainda
    drena os itens pendentes; depois disso receive() levanta
    ChannelClosedError e a iteração assíncrona termina.
    """

    def __init__(self, maxsize: int = 0, name: str = "channel") -> None:
        self._queue: asyncio.Queue[Any] = asyncio.Queue(maxsize)
        self._closed = False
        self.name = name

    @property
    def closed(self) -> bool:
        """True após close()."""
        return self._closed

    @property
    def maxsize(self) -> int:
        return self._queue.maxsize

    async def send(self, item: T) -> None:
        """Enfileira `item`, bloqueando se o canal estiver cheio.

        Raises:
            ChannelClosedError: canal já fechado
        """
        if self._closed:
            raise ChannelClosedError(f"send on closed channel {self.name}")
        await self._queue.put(item)

    async def receive(self) -> T:
        """Desenfileira o próximo item.

        Raises:
            ChannelClosedError: canal fechado e drenado
        """
        if self._closed and self._queue.empty():
            raise ChannelClosedError(f"receive on closed channel {self.name}")
        item = await self._queue.get()
        if item is _CLOSED:
            # Repõe o marcador para acordar outros consumidores.
            self._queue.put_nowait(_CLOSED)
            raise ChannelClosedError(f"receive on closed channel {self.name}")
        return item

    def close(self) -> None:
        """Fecha o canal; idempotente."""
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except asyncio.QueueFull:
            # Fila cheia: nenhum consumidor está bloqueado em get().
            pass
        logger.debug("channel_closed", extra={"channel": self.name})

    def __aiter__(self) -> Channel[T]:
        return self

    async def __anext__(self) -> T:
        try:
            return await self.receive()
        except ChannelClosedError:
            raise StopAsyncIteration from None
