"""Testes do cliente do NLU (/converse e /message) com transporte simulado."""

from __future__ import annotations

import json

import httpx
import pytest

from witloop.config.settings import Settings
from witloop.domain.errors import DecodeError, ResponseStatusError, TransportError
from witloop.infra.nlu_client import create_wit_client


def _client(handler, **settings_overrides):
    settings = Settings(**settings_overrides)
    return create_wit_client(
        settings, access_token="server-token", transport=httpx.MockTransport(handler)
    )


class TestConverseRequest:
    """Montagem da requisição /converse."""

    @pytest.mark.asyncio
    async def test_request_shape(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"type": "stop"})

        async with _client(handler, wit_user_agent="witloop/test") as client:
            payload = await client.converse("s1", "weather in Paris?", {"loc": "Paris"})

        assert payload == {"type": "stop"}
        request = captured[0]
        assert request.method == "POST"
        assert request.url.path == "/converse"
        assert request.url.params["q"] == "weather in Paris?"
        assert request.url.params["session_id"] == "s1"
        assert request.url.params["v"] == "20160412"
        assert request.headers["Authorization"] == "Bearer server-token"
        assert request.headers["Accept"] == "application/json"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["User-Agent"] == "witloop/test"
        assert json.loads(request.content) == {"loc": "Paris"}

    @pytest.mark.asyncio
    async def test_empty_query_is_omitted(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"type": "stop"})

        async with _client(handler) as client:
            await client.converse("s1", "", {})

        assert "q" not in captured[0].url.params
        assert json.loads(captured[0].content) == {}

    @pytest.mark.asyncio
    async def test_base_url_override(self) -> None:
        hosts: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            hosts.append(request.url.host)
            return httpx.Response(200, json={})

        async with _client(handler, wit_api_base_url="http://localhost:9000/") as client:
            await client.converse("s1", "q", {})

        assert hosts == ["localhost"]


class TestConverseResponse:
    """Classificação das respostas."""

    @pytest.mark.asyncio
    async def test_non_success_status_carries_body(self) -> None:
        async with _client(lambda r: httpx.Response(400, text='{"error":"bad"}')) as client:
            with pytest.raises(ResponseStatusError) as exc_info:
                await client.converse("s1", "q", {})

        assert exc_info.value.status_code == 400
        assert exc_info.value.body == '{"error":"bad"}'
        assert "Unable to handle response with code 400" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_empty_body_is_empty_payload(self) -> None:
        async with _client(lambda r: httpx.Response(200, content=b"")) as client:
            assert await client.converse("s1", "q", {}) == {}

    @pytest.mark.asyncio
    async def test_invalid_json_raises_decode_error(self) -> None:
        async with _client(lambda r: httpx.Response(200, content=b"{not json")) as client:
            with pytest.raises(DecodeError):
                await client.converse("s1", "q", {})

    @pytest.mark.asyncio
    async def test_non_object_json_raises_decode_error(self) -> None:
        async with _client(lambda r: httpx.Response(200, json=["stop"])) as client:
            with pytest.raises(DecodeError):
                await client.converse("s1", "q", {})

    @pytest.mark.asyncio
    async def test_corrupt_gzip_body_raises_decode_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                headers={"content-encoding": "gzip"},
                stream=httpx.ByteStream(b"\x00garbage"),
            )

        async with _client(handler) as client:
            with pytest.raises(DecodeError):
                await client.converse("s1", "q", {})

    @pytest.mark.asyncio
    async def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        async with _client(handler) as client:
            with pytest.raises(TransportError):
                await client.converse("s1", "q", {})


class TestMessage:
    """Endpoint /message."""

    @pytest.mark.asyncio
    async def test_message_uses_get_with_query(self) -> None:
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"_text": "hi", "entities": {}})

        async with _client(handler) as client:
            payload = await client.message("hi")

        assert payload["_text"] == "hi"
        assert captured[0].method == "GET"
        assert captured[0].url.path == "/message"
        assert captured[0].url.params["q"] == "hi"
        assert captured[0].url.params["v"] == "20160412"


class TestFactory:
    def test_missing_token_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("WIT_ACCESS_TOKEN", raising=False)

        with pytest.raises(ValueError, match="--token"):
            create_wit_client(Settings())

    def test_token_from_settings(self) -> None:
        client = create_wit_client(Settings(wit_access_token="from-env"))

        assert client._access_token == "from-env"
