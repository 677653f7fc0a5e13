"""Speech relay: turns reply text into MP3 audio with ElevenLabs."""

from typing import Any, Optional

import structlog
from elevenlabs import VoiceSettings
from elevenlabs.client import ElevenLabs

from ..config.settings import Settings, SpeechSettings
from ..errors import SpeechNotConfiguredError, SpeechUpstreamError


logger = structlog.get_logger()


AUDIO_MEDIA_TYPE = "audio/mpeg"


class SpeechRelay:
    """
    ElevenLabs text-to-speech relay.

    Unlike the chat relay, failures are raised so the HTTP layer can answer
    with a real error status and the caller can fall back to local speech.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        speech_settings: Optional[SpeechSettings] = None,
        client: Optional[Any] = None,
    ):
        self.api_key = api_key
        self.settings = speech_settings or SpeechSettings()
        self.client = client
        if self.client is None and self.api_key:
            self.client = ElevenLabs(api_key=self.api_key)

        self.voice_settings = VoiceSettings(
            stability=self.settings.stability,
            similarity_boost=self.settings.similarity_boost,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "SpeechRelay":
        return cls(api_key=settings.elevenlabs_api_key, speech_settings=settings.speech)

    @property
    def configured(self) -> bool:
        return self.client is not None

    def synthesize(self, text: str) -> bytes:
        """
        Convert ``text`` to MP3 audio.

        Raises:
            SpeechNotConfiguredError: no ElevenLabs credential is configured
            SpeechUpstreamError: the ElevenLabs call failed
        """
        if not self.configured:
            raise SpeechNotConfiguredError("ELEVENLABS_API_KEY is not set")

        logger.debug("Generating TTS audio", text_length=len(text))

        try:
            audio = self.client.text_to_speech.convert(
                voice_id=self.settings.voice_id,
                text=text,
                model_id=self.settings.model_id,
                voice_settings=self.voice_settings,
            )

            # The SDK returns bytes, a response object or a chunk iterator
            if hasattr(audio, "content"):
                audio_data = audio.content
            elif isinstance(audio, (bytes, bytearray)):
                audio_data = bytes(audio)
            else:
                audio_data = b"".join(audio)

        except Exception as e:
            logger.error(
                "TTS API error", error=str(e), exception_type=type(e).__name__
            )
            raise SpeechUpstreamError(str(e)) from e

        logger.debug("TTS generation complete", total_bytes=len(audio_data))
        return audio_data
