"""Conversation data shared by the controller and the relays."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel


READY_STATUS = "Ready to start"
LISTENING_STATUS = "Listening..."
PROCESSING_STATUS = "Processing..."
STOPPED_STATUS = "Stopped"
TURN_ERROR_STATUS = "Error processing request"
UNSUPPORTED_STATUS = "Speech recognition not supported"


class ConversationMessage(BaseModel):
    """One message of the conversation history."""

    role: Literal["system", "user", "assistant"]
    content: str


class CallState(str, Enum):
    """Where the controller is in the current turn."""

    IDLE = "idle"
    LISTENING = "listening"
    PROCESSING = "processing"
    SPEAKING = "speaking"


class CaptureEventKind(str, Enum):
    INTERIM = "interim"
    FINAL = "final"
    ERROR = "error"
    END = "end"


@dataclass
class CaptureEvent:
    """Something the capture device reported."""

    kind: CaptureEventKind
    transcript: Optional[str] = None
    error_code: Optional[str] = None

    @classmethod
    def interim(cls, transcript: str) -> "CaptureEvent":
        return cls(CaptureEventKind.INTERIM, transcript=transcript)

    @classmethod
    def final(cls, transcript: str) -> "CaptureEvent":
        return cls(CaptureEventKind.FINAL, transcript=transcript)

    @classmethod
    def error(cls, error_code: str) -> "CaptureEvent":
        return cls(CaptureEventKind.ERROR, error_code=error_code)

    @classmethod
    def end(cls) -> "CaptureEvent":
        return cls(CaptureEventKind.END)


@dataclass
class SessionState:
    """UI-facing state of one call, kept in memory only."""

    listening: bool = False
    speaking: bool = False
    status_text: str = READY_STATUS
    live_transcript: str = ""
    history: List[ConversationMessage] = field(default_factory=list)

    def add_user_message(self, text: str) -> ConversationMessage:
        message = ConversationMessage(role="user", content=text)
        self.history.append(message)
        return message

    def add_assistant_message(self, text: str) -> ConversationMessage:
        message = ConversationMessage(role="assistant", content=text)
        self.history.append(message)
        return message

    def reset(self) -> None:
        """Drop the history and the transient texts, keep the listening flags."""
        self.history = []
        self.status_text = READY_STATUS
        self.live_transcript = ""
