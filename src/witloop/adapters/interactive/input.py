"""Fonte de entrada interativa (terminal).

Produtor síncrono de uma linha por reconhecimento:
- envia a si mesmo o session_id de bootstrap
- a cada reconhecimento, mostra o prompt e lê uma linha
- encerra o stream em EOF ou no comando ':quit'
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TextIO

from witloop.domain.protocols.input_source import InputSource
from witloop.domain.session import InputRecord
from witloop.infra.channel import Channel
from witloop.observability.logging import get_logger

logger: logging.Logger = get_logger(__name__)

INTERACTIVE_SESSION_ID = "interactive"
QUIT_COMMAND = ":quit"


class InteractiveInput(InputSource):
    """Lê consultas de um stream de texto, uma por reconhecimento."""

    def __init__(
        self,
        reader: TextIO | None = None,
        writer: TextIO | None = None,
        session_id: str = INTERACTIVE_SESSION_ID,
    ) -> None:
        super().__init__()
        self._reader = reader if reader is not None else sys.stdin
        self._writer = writer if writer is not None else sys.stdout
        self._session_id = session_id

    def _write(self, text: str) -> None:
        self._writer.write(text)
        self._writer.flush()

    async def _read_line(self) -> str:
        """Leitura bloqueante feita em thread para não travar o event loop."""
        return await asyncio.to_thread(self._reader.readline)

    async def _run(self, requests: Channel[str], records: Channel[InputRecord]) -> None:
        self._write(f"Interactive mode (use '{QUIT_COMMAND}' to stop)\n")
        try:
            async for session_id in requests:
                self._write(f"{session_id}> ")
                line = await self._read_line()
                if not line:
                    logger.debug("interactive_input_eof")
                    return
                if line.strip().lower() == QUIT_COMMAND:
                    logger.debug("interactive_input_quit")
                    return
                query = line.rstrip("\r\n")
                await records.send(InputRecord(session_id=session_id, query=query))
        finally:
            records.close()

    async def run(self) -> tuple[Channel[str], Channel[InputRecord]]:
        requests: Channel[str] = Channel(name="interactive-requests")
        records: Channel[InputRecord] = Channel(maxsize=1, name="interactive-records")
        # Inicia o loop interativo com o session_id de bootstrap.
        await requests.send(self._session_id)
        self._spawn(self._run(requests, records), name="interactive-input")
        return requests, records
