"""Testes do conector de mensagens diretas (polling, ordem, backoff e envio)."""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import httpx
import pytest

from witloop.adapters.twitter.api_client import TwitterApiError, create_twitter_api_client
from witloop.adapters.twitter.connector import (
    DirectMessageConnector,
    make_session_id,
    parse_session_id,
)
from witloop.adapters.twitter.models import DirectMessage, DirectMessageRequest, TwitterUser
from witloop.config.credentials import Credentials
from witloop.config.settings import Settings
from witloop.domain.errors import DecodeError, RateLimitError, SessionIdError, TransportError

NOW = datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)  # 1700000000


def _dm(message_id: int, sender_id: int = 42) -> DirectMessage:
    return DirectMessage(
        id=message_id, text=f"m{message_id}", sender=TwitterUser(id=sender_id)
    )


class FakeApi:
    """API roteirizada: cada fetch consome o próximo item do roteiro."""

    def __init__(self, fetches=(), sends=()) -> None:
        self.fetches = list(fetches)
        self.sends = list(sends)
        self.fetch_calls: list[tuple[int, int]] = []
        self.sent: list[tuple[int, str]] = []
        self.send_attempts = 0
        self.all_sent = asyncio.Event()
        self.expected_sends = 0

    async def fetch_direct_messages(self, since_id: int, count: int) -> list[DirectMessage]:
        self.fetch_calls.append((since_id, count))
        item = self.fetches.pop(0) if self.fetches else TwitterApiError(500, "", [])
        if isinstance(item, Exception):
            raise item
        return item

    async def send_direct_message(self, user_id: int, text: str) -> dict:
        self.send_attempts += 1
        if self.sends:
            item = self.sends.pop(0)
            if isinstance(item, Exception):
                raise item
        self.sent.append((user_id, text))
        if len(self.sent) >= self.expected_sends:
            self.all_sent.set()
        return {}


def _connector(api: FakeApi, sleep: AsyncMock | None = None, **kwargs) -> DirectMessageConnector:
    return DirectMessageConnector(
        api,
        poll_interval=60.0,
        fetch_count=100,
        min_wait=10.0,
        clock=lambda: NOW,
        sleep=sleep or AsyncMock(),
        monotonic=lambda: 0.0,
        **kwargs,
    )


async def _drain(records) -> list:
    return [record async for record in records]


class TestSessionIds:
    def test_make_session_id(self) -> None:
        assert make_session_id(42, NOW) == "42-1700000000"

    def test_round_trip_user_id(self) -> None:
        assert parse_session_id(make_session_id(987654321, NOW)) == 987654321

    @pytest.mark.parametrize("session_id", ["interactive", "", "-12"])
    def test_invalid_session_id(self, session_id: str) -> None:
        with pytest.raises(SessionIdError):
            parse_session_id(session_id)


class TestFetchLoop:
    """Emissão ordenada e avanço do marcador."""

    @pytest.mark.asyncio
    async def test_emits_in_ascending_id_order(self) -> None:
        api = FakeApi(fetches=[[_dm(5), _dm(3), _dm(9), _dm(1)]])
        connector = _connector(api)

        _, records = await connector.run()
        try:
            emitted = await asyncio.wait_for(_drain(records), timeout=1)
        finally:
            await connector.aclose()

        assert [record.query for record in emitted] == ["m1", "m3", "m5", "m9"]
        assert {record.session_id for record in emitted} == {"42-1700000000"}
        assert connector.processed_to_id == 9
        assert api.fetch_calls == [(0, 100), (9, 100)]

    @pytest.mark.asyncio
    async def test_skips_messages_at_or_below_marker(self) -> None:
        api = FakeApi(fetches=[[_dm(3), _dm(5), _dm(7)]])
        connector = _connector(api, processed_to_id=5)

        _, records = await connector.run()
        try:
            emitted = await asyncio.wait_for(_drain(records), timeout=1)
        finally:
            await connector.aclose()

        assert [record.query for record in emitted] == ["m7"]
        assert api.fetch_calls[0] == (5, 100)

    @pytest.mark.asyncio
    async def test_marker_never_moves_backwards(self) -> None:
        api = FakeApi(fetches=[[_dm(10)], [_dm(4)], [_dm(12)]])
        connector = _connector(api)

        _, records = await connector.run()
        try:
            emitted = await asyncio.wait_for(_drain(records), timeout=1)
        finally:
            await connector.aclose()

        assert [record.query for record in emitted] == ["m10", "m12"]
        assert connector.processed_to_id == 12

    @pytest.mark.asyncio
    async def test_rate_limited_fetch_waits_and_retries(self) -> None:
        sleep = AsyncMock()
        api = FakeApi(
            fetches=[RateLimitError(NOW + timedelta(seconds=30)), [_dm(1)]],
        )
        connector = _connector(api, sleep=sleep)

        _, records = await connector.run()
        try:
            emitted = await asyncio.wait_for(_drain(records), timeout=1)
        finally:
            await connector.aclose()

        assert [record.query for record in emitted] == ["m1"]
        assert sleep.await_args_list[0].args == (31.0,)
        assert sleep.await_args_list[1].args == (60.0,)
        assert api.fetch_calls[:2] == [(0, 100), (0, 100)]
        assert connector.fetch_error is not None

    @pytest.mark.asyncio
    async def test_fatal_fetch_error_closes_stream(self) -> None:
        error = TransportError("connection reset")
        api = FakeApi(fetches=[error])
        connector = _connector(api)

        _, records = await connector.run()
        try:
            emitted = await asyncio.wait_for(_drain(records), timeout=1)
        finally:
            await connector.aclose()

        assert emitted == []
        assert connector.fetch_error is error

    @pytest.mark.asyncio
    async def test_unexpected_fetch_exception_is_recorded(self) -> None:
        """Falha fora da taxonomia também fica registrada para a CLI."""
        cause = KeyError("sender")
        connector = _connector(FakeApi(fetches=[cause]))

        _, records = await connector.run()
        try:
            emitted = await asyncio.wait_for(_drain(records), timeout=1)
        finally:
            await connector.aclose()

        assert emitted == []
        assert isinstance(connector.fetch_error, TransportError)
        assert connector.fetch_error.__cause__ is cause

    @pytest.mark.asyncio
    async def test_corrupt_response_body_is_recorded(self) -> None:
        """Corpo gzip inválido do upstream encerra o stream com DecodeError."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"content-encoding": "gzip"},
                stream=httpx.ByteStream(b"not gzip at all"),
            )

        credentials = Credentials("ck", "cs", "at", "ats", "wit")
        api = create_twitter_api_client(
            Settings(), credentials, transport=httpx.MockTransport(handler)
        )
        connector = _connector(api)

        _, records = await connector.run()
        try:
            emitted = await asyncio.wait_for(_drain(records), timeout=1)
        finally:
            await connector.aclose()
            await api.close()

        assert emitted == []
        assert isinstance(connector.fetch_error, DecodeError)

    @pytest.mark.asyncio
    async def test_set_marker_to_current(self) -> None:
        api = FakeApi(fetches=[[_dm(77)]])
        connector = _connector(api)

        assert await connector.set_processed_marker_to_current() == 77
        assert connector.processed_to_id == 77
        assert api.fetch_calls == [(0, 1)]

    @pytest.mark.asyncio
    async def test_set_marker_with_empty_inbox(self) -> None:
        connector = _connector(FakeApi(fetches=[[]]))

        assert await connector.set_processed_marker_to_current() == 0


class TestDelivery:
    """Envio com espera em rate limit e descarte em erro permanente."""

    @pytest.mark.asyncio
    async def test_retries_same_request_after_rate_limit(self) -> None:
        sleep = AsyncMock()
        reset = NOW + timedelta(seconds=2)
        api = FakeApi(sends=[RateLimitError(reset), RateLimitError(reset)])
        connector = _connector(api, sleep=sleep)

        delivered = await connector.deliver(DirectMessageRequest(user_id=42, text="Sunny"))

        assert delivered is True
        assert api.send_attempts == 3
        assert api.sent == [(42, "Sunny")]
        assert [call.args for call in sleep.await_args_list] == [(10.0,), (10.0,)]

    @pytest.mark.asyncio
    async def test_permanent_error_drops_request(self) -> None:
        sleep = AsyncMock()
        api = FakeApi(sends=[TwitterApiError(403, "", [(150, "not following")])])
        connector = _connector(api, sleep=sleep)

        delivered = await connector.deliver(DirectMessageRequest(user_id=42, text="Sunny"))

        assert delivered is False
        assert api.send_attempts == 1
        assert api.sent == []
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_write_loop_sends_enqueued_in_order(self) -> None:
        api = FakeApi(sends=[TransportError("boom")])
        api.expected_sends = 2
        connector = _connector(api)

        await connector.run()
        try:
            await connector.enqueue_message(1, "dropped")
            await connector.enqueue_message(2, "second")
            await connector.enqueue_message(3, "third")
            await asyncio.wait_for(api.all_sent.wait(), timeout=1)
        finally:
            await connector.aclose()

        assert api.sent == [(2, "second"), (3, "third")]


class TestFromSettings:
    def test_uses_configured_values(self) -> None:
        settings = Settings(
            twitter_poll_interval_seconds=5.0,
            twitter_fetch_count=20,
            twitter_outgoing_queue_size=3,
            rate_limit_min_wait_seconds=2.0,
        )

        connector = DirectMessageConnector.from_settings(settings, FakeApi(), processed_to_id=8)

        assert connector.processed_to_id == 8
        assert connector._fetch_count == 20
        assert connector._outgoing.maxsize == 3
        assert connector._min_wait == timedelta(seconds=2)
