"""Tests for the HTTP relay client."""

import asyncio
import json

import httpx
import pytest

from agent_calling.client.relay_client import HttpRelayClient
from agent_calling.core.models import ConversationMessage
from agent_calling.errors import RelayResponseError


def make_client(handler):
    transport = httpx.MockTransport(handler)
    http = httpx.AsyncClient(base_url="http://agent.test", transport=transport)
    return HttpRelayClient("http://agent.test/", client=http)


class TestHttpRelayClient:
    """Test cases for talking to the relays over HTTP."""

    def test_chat_posts_history_and_returns_message(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": "Hi there!"})

        async def scenario():
            async with make_client(handler) as relay:
                return await relay.chat([
                    ConversationMessage(role="user", content="hello"),
                    ConversationMessage(role="assistant", content="Hey"),
                    ConversationMessage(role="user", content="how are you"),
                ])

        reply = asyncio.run(scenario())

        assert reply == "Hi there!"
        assert seen["path"] == "/api/chat"
        assert seen["body"] == {
            "messages": [
                {"role": "user", "content": "hello"},
                {"role": "assistant", "content": "Hey"},
                {"role": "user", "content": "how are you"},
            ]
        }

    def test_synthesize_returns_audio_bytes(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/tts"
            assert json.loads(request.content) == {"text": "Hi there!"}
            return httpx.Response(200, content=b"ID3audio", headers={"Content-Type": "audio/mpeg"})

        async def scenario():
            async with make_client(handler) as relay:
                return await relay.synthesize("Hi there!")

        assert asyncio.run(scenario()) == b"ID3audio"

    @pytest.mark.parametrize(
        "status_code,body",
        [(501, "TTS not configured"), (500, "TTS error")],
    )
    def test_synthesize_error_status_raises(self, status_code, body):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status_code, text=body)

        async def scenario():
            async with make_client(handler) as relay:
                await relay.synthesize("Hi")

        with pytest.raises(RelayResponseError) as exc_info:
            asyncio.run(scenario())

        assert exc_info.value.status_code == status_code
        assert exc_info.value.body == body
        assert exc_info.value.endpoint == "/api/tts"

    def test_chat_error_status_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        async def scenario():
            async with make_client(handler) as relay:
                await relay.chat([ConversationMessage(role="user", content="hello")])

        with pytest.raises(RelayResponseError, match="/api/chat returned HTTP 502"):
            asyncio.run(scenario())

    def test_connection_failure_propagates(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async def scenario():
            async with make_client(handler) as relay:
                await relay.chat([ConversationMessage(role="user", content="hello")])

        with pytest.raises(httpx.ConnectError):
            asyncio.run(scenario())

    def test_base_url_trailing_slash_is_stripped(self):
        relay = HttpRelayClient("http://127.0.0.1:8000/")

        assert relay.base_url == "http://127.0.0.1:8000"
        asyncio.run(relay.aclose())
