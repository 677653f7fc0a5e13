"""Base interfaces for the controller's collaborators."""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from .models import CaptureEvent, ConversationMessage


EventSink = Callable[[CaptureEvent], None]


class CaptureDevice(ABC):
    """Continuous speech capture (the browser's recognizer, or a stand-in)."""

    def __init__(self):
        self._sink: Optional[EventSink] = None

    def attach(self, sink: EventSink) -> None:
        """Route every event the device produces into ``sink``."""
        self._sink = sink

    def detach(self) -> None:
        self._sink = None

    def emit(self, event: CaptureEvent) -> None:
        if self._sink is not None:
            self._sink(event)

    @abstractmethod
    def start(self) -> None:
        """Begin capturing."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Stop capturing. The device emits an ``end`` event afterwards."""
        pass


class RelayClient(ABC):
    """Access to the chat and speech relays."""

    @abstractmethod
    async def chat(self, messages: List[ConversationMessage]) -> str:
        """
        Send the history to the chat relay.

        Returns:
            The assistant reply text

        Raises:
            Exception: when the relay cannot be reached or answers non-2xx
        """
        pass

    @abstractmethod
    async def synthesize(self, text: str) -> bytes:
        """Return the audio for ``text``; raises on any non-2xx answer."""
        pass


class AudioPlayer(ABC):
    """Plays synthesized audio."""

    @abstractmethod
    async def play(self, audio: bytes) -> None:
        """Play ``audio`` and return once playback has ended."""
        pass


class LocalSynthesizer(ABC):
    """On-device speech synthesis used when the speech relay fails."""

    @abstractmethod
    async def speak(self, text: str) -> None:
        """Speak ``text`` and return once it has been said."""
        pass
