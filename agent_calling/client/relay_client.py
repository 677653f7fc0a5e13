"""HTTP client for the chat and speech relays."""

from typing import List, Optional

import httpx
import structlog

from ..core.interfaces import RelayClient
from ..core.models import ConversationMessage
from ..errors import RelayResponseError


logger = structlog.get_logger()


class HttpRelayClient(RelayClient):
    """
    Talks to a running agent calling server.

    Usage:
        async with HttpRelayClient("http://127.0.0.1:8000") as relay:
            reply = await relay.chat([ConversationMessage(role="user", content="hi")])
    """

    def __init__(self, base_url: str, client: Optional[httpx.AsyncClient] = None):
        self.base_url = base_url.rstrip("/")
        # No timeout: a turn waits as long as the relays take
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=None)

    async def __aenter__(self) -> "HttpRelayClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _check(self, endpoint: str, response: httpx.Response) -> None:
        if response.is_success:
            return
        logger.warning(
            "Relay returned an error status",
            endpoint=endpoint,
            status_code=response.status_code,
        )
        raise RelayResponseError(endpoint, response.status_code, response.text)

    async def chat(self, messages: List[ConversationMessage]) -> str:
        endpoint = "/api/chat"
        response = await self._client.post(
            endpoint, json={"messages": [m.model_dump() for m in messages]}
        )
        self._check(endpoint, response)
        return response.json()["message"]

    async def synthesize(self, text: str) -> bytes:
        endpoint = "/api/tts"
        response = await self._client.post(endpoint, json={"text": text})
        self._check(endpoint, response)
        return response.content
