"""Error types shared by the relays, the HTTP server and the terminal client."""

from typing import Optional


class AgentCallingError(Exception):
    """Base class for all errors raised by this package."""


class RelayError(AgentCallingError):
    """A relay could not produce its result."""


class SpeechNotConfiguredError(RelayError):
    """No ElevenLabs credential is configured."""

    status_code = 501
    body = "TTS not configured"


class SpeechUpstreamError(RelayError):
    """The hosted speech API failed or returned a non-success status."""

    status_code = 500
    body = "TTS error"


class RelayResponseError(AgentCallingError):
    """A relay endpoint answered with a non-success HTTP status."""

    def __init__(self, endpoint: str, status_code: int, body: Optional[str] = None):
        super().__init__(f"{endpoint} returned HTTP {status_code}")
        self.endpoint = endpoint
        self.status_code = status_code
        self.body = body
