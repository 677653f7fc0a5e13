"""Chat relay: forwards the conversation to OpenAI chat completions."""

from typing import Any, List, Optional, Sequence

import structlog
from openai import AsyncOpenAI

from ..config.settings import ChatSettings, Settings
from ..core.models import ConversationMessage


logger = structlog.get_logger()


GENERIC_FALLBACK = "I'm here to help. What would you like to talk about?"


def demo_reply(last_content: str) -> str:
    """Reply used when no OpenAI credential is configured."""
    return (
        "I'm a demo AI agent. You said: "
        + last_content
        + ". In production, I would use OpenAI to generate intelligent responses."
    )


class ChatRelay:
    """
    Produces the assistant reply for a conversation history.

    ``reply`` never raises: a missing credential gives the demo echo, and
    any upstream failure gives ``GENERIC_FALLBACK``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        chat_settings: Optional[ChatSettings] = None,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.settings = chat_settings or ChatSettings()
        self.client = client
        if self.client is None and self.api_key:
            self.client = AsyncOpenAI(api_key=self.api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ChatRelay":
        return cls(api_key=settings.openai_api_key, chat_settings=settings.chat)

    @property
    def configured(self) -> bool:
        return self.client is not None

    def build_messages(self, history: Sequence[ConversationMessage]) -> List[dict]:
        """Prepend the system instruction to the caller's history."""
        system = {"role": "system", "content": self.settings.system_prompt}
        return [system] + [{"role": m.role, "content": m.content} for m in history]

    async def reply(self, history: Sequence[ConversationMessage]) -> str:
        """Return the assistant's reply text for ``history``."""
        try:
            if not self.configured:
                logger.info("Chat relay not configured, using demo reply")
                return demo_reply(history[-1].content)

            response = await self.client.chat.completions.create(
                model=self.settings.model,
                messages=self.build_messages(history),
                temperature=self.settings.temperature,
                max_tokens=self.settings.max_tokens,
            )
            message = response.choices[0].message.content
            if message is None:
                raise ValueError("Completion has no message content")

            logger.debug("Chat completion received", reply_length=len(message))
            return message

        except Exception as e:
            logger.error(
                "Chat API error", error=str(e), exception_type=type(e).__name__
            )
            return GENERIC_FALLBACK
