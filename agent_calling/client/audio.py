"""Audio output for the terminal client."""

import asyncio
from io import BytesIO
from typing import Optional

import pygame
import pyttsx3
import structlog

from ..core.interfaces import AudioPlayer, LocalSynthesizer


logger = structlog.get_logger()


class PygameAudioPlayer(AudioPlayer):
    """Plays MP3 bytes through pygame's mixer."""

    def __init__(self, poll_interval: float = 0.05):
        self.poll_interval = poll_interval
        self.is_playing = False

    def initialize(self) -> None:
        if not pygame.mixer.get_init():
            logger.info("Initializing pygame mixer for audio playback")
            pygame.mixer.init()

    async def play(self, audio: bytes) -> None:
        self.initialize()

        pygame.mixer.music.load(BytesIO(audio))
        pygame.mixer.music.play()
        self.is_playing = True
        logger.debug("Audio playback started", total_bytes=len(audio))

        try:
            while pygame.mixer.music.get_busy():
                await asyncio.sleep(self.poll_interval)
        finally:
            self.is_playing = False

        logger.debug("Audio playback completed")

    def stop(self) -> None:
        if pygame.mixer.get_init():
            pygame.mixer.music.stop()
            pygame.mixer.quit()
        self.is_playing = False


class Pyttsx3Synthesizer(LocalSynthesizer):
    """Speaks text with the operating system's voices."""

    def __init__(self, rate: Optional[int] = None):
        self.rate = rate

    def _say(self, text: str) -> None:
        engine = pyttsx3.init()
        if self.rate:
            engine.setProperty("rate", self.rate)
        engine.say(text)
        engine.runAndWait()

    async def speak(self, text: str) -> None:
        logger.debug("Speaking with local synthesis", text_length=len(text))
        # runAndWait blocks until the utterance is finished
        await asyncio.to_thread(self._say, text)
