"""Contrato do pipeline de entrada (fonte <-> driver).

A fonte entrega InputRecords no canal `records` e recebe, no canal
`requests`, o session_id de cada registro já processado. Esse aperto de
mão é o mecanismo de backpressure: para um mesmo session_id a fonte não
emite novo registro antes do reconhecimento do anterior.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from abc import ABC, abstractmethod
from collections.abc import Coroutine
from typing import TYPE_CHECKING, Any

from witloop.observability.logging import get_logger

if TYPE_CHECKING:
    from witloop.domain.session import InputRecord
    from witloop.infra.channel import Channel

logger: logging.Logger = get_logger(__name__)


class InputSource(ABC):
    """Fonte de entrada com atividades em background."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[Any]] = set()

    @abstractmethod
    async def run(self) -> tuple[Channel[str], Channel[InputRecord]]:
        """Inicia a fonte e devolve (requests, records)."""
        ...

    def _spawn(self, coro: Coroutine[Any, Any, Any], name: str) -> asyncio.Task[Any]:
        """Agenda uma atividade em background mantendo referência forte."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def aclose(self) -> None:
        """Cancela as atividades em background ainda vivas."""
        tasks = [task for task in self._tasks if not task.done()]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if tasks:
            logger.debug("input_source_closed", extra={"cancelled_tasks": len(tasks)})
