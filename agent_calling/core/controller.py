"""
Conversation controller that drives one voice call.

Flow per turn: capture device -> chat relay -> speech relay -> playback,
then back to listening. Everything runs on a single event loop.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import structlog

from .interfaces import AudioPlayer, CaptureDevice, LocalSynthesizer, RelayClient
from .models import (
    LISTENING_STATUS,
    PROCESSING_STATUS,
    STOPPED_STATUS,
    TURN_ERROR_STATUS,
    UNSUPPORTED_STATUS,
    CallState,
    CaptureEvent,
    CaptureEventKind,
    ConversationMessage,
    SessionState,
)


logger = structlog.get_logger()


class ConversationController:
    """
    Owns the session state and the capture device for one call.

    Capture events arrive through ``submit`` and are consumed by ``run``, one
    at a time, by ``handle_event``. A final transcript starts a turn task;
    while a turn is running one distinct utterance is kept as pending and
    anything else is dropped.
    """

    def __init__(
        self,
        relay: RelayClient,
        player: AudioPlayer,
        local_synthesizer: LocalSynthesizer,
        device: Optional[CaptureDevice] = None,
        on_update: Optional[Callable[[SessionState], None]] = None,
    ):
        self.relay = relay
        self.player = player
        self.local_synthesizer = local_synthesizer
        self.device = device
        self.on_update = on_update

        self.state = SessionState()
        self.call_state = CallState.IDLE

        self._events: "asyncio.Queue[Optional[CaptureEvent]]" = asyncio.Queue()
        self._turn: Optional[asyncio.Task] = None
        self._current_utterance: Optional[str] = None
        self._pending_utterance: Optional[str] = None
        # Bumped by clear(); replies from an older generation are discarded
        self._generation = 0

        if self.device is not None:
            self.device.attach(self.submit)

    async def __aenter__(self) -> "ConversationController":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # User actions

    def start(self) -> None:
        """Start listening."""
        if self.device is None:
            self.state.status_text = UNSUPPORTED_STATUS
            self._notify()
            return
        if self.state.speaking:
            logger.debug("Start ignored while speaking")
            return
        if self.state.listening:
            return

        self.device.start()
        self.state.listening = True
        self.state.status_text = LISTENING_STATUS
        if self.call_state is CallState.IDLE:
            self.call_state = CallState.LISTENING
        self._notify()
        logger.info("Listening started")

    def stop(self) -> None:
        """
        Stop listening.

        An in-flight relay call or playback is not aborted; its result still
        lands in the history.
        """
        if self.device is None:
            self.state.status_text = UNSUPPORTED_STATUS
            self._notify()
            return

        self.device.stop()
        self.state.listening = False
        self.state.status_text = STOPPED_STATUS
        self.call_state = CallState.IDLE
        self._pending_utterance = None
        self._notify()
        logger.info("Listening stopped")

    def toggle(self) -> None:
        if self.state.listening:
            self.stop()
        else:
            self.start()

    def clear(self) -> None:
        """Reset history, status and live transcript."""
        self._generation += 1
        self._pending_utterance = None
        self.state.reset()
        self._notify()
        logger.info("Conversation cleared", generation=self._generation)

    # Event stream

    def submit(self, event: CaptureEvent) -> None:
        """Queue an event from the capture device."""
        self._events.put_nowait(event)

    async def run(self) -> None:
        """Consume capture events until ``close`` is called."""
        while True:
            event = await self._events.get()
            if event is None:
                break
            self.handle_event(event)

    def handle_event(self, event: CaptureEvent) -> None:
        """Advance the state machine by one capture event."""
        if event.kind is CaptureEventKind.INTERIM:
            self.state.live_transcript = event.transcript or ""

        elif event.kind is CaptureEventKind.FINAL:
            self.state.live_transcript = ""
            self._accept_utterance(event.transcript or "")

        elif event.kind is CaptureEventKind.ERROR:
            logger.error("Speech capture error", error_code=event.error_code)
            self.state.status_text = f"Error: {event.error_code}"
            self.state.listening = False
            if self.call_state is CallState.LISTENING:
                self.call_state = CallState.IDLE

        elif event.kind is CaptureEventKind.END:
            # The recognizer ends on natural pauses; keep the session alive
            if self.state.listening and self.device is not None:
                logger.debug("Restarting capture device after end event")
                self.device.start()

        self._notify()

    def _accept_utterance(self, text: str) -> None:
        if not text.strip():
            return

        if self.is_busy:
            if self._pending_utterance is None and text != self._current_utterance:
                self._pending_utterance = text
                logger.debug("Utterance queued behind current turn", text=text[:50])
            else:
                logger.info("Dropping overlapping utterance", text=text[:50])
            return

        self._turn = asyncio.get_running_loop().create_task(self._run_turns(text))

    # Turns

    @property
    def is_busy(self) -> bool:
        return self._turn is not None and not self._turn.done()

    async def wait_idle(self) -> None:
        """Wait for the current turn and any queued one to finish."""
        if self._turn is not None:
            await self._turn

    async def _run_turns(self, text: str) -> None:
        next_text: Optional[str] = text
        try:
            while next_text is not None:
                await self._run_turn(next_text)
                next_text, self._pending_utterance = self._pending_utterance, None
                if next_text is not None and not self.state.listening:
                    logger.info("Dropping queued utterance after stop")
                    next_text = None
        finally:
            self._current_utterance = None

    async def _run_turn(self, text: str) -> None:
        generation = self._generation
        self._current_utterance = text

        self.state.add_user_message(text)
        history: List[ConversationMessage] = list(self.state.history)
        self.state.status_text = PROCESSING_STATUS
        self.call_state = CallState.PROCESSING
        self._notify()
        logger.info("Processing utterance", text=text[:50], history_length=len(history))

        try:
            reply = await self.relay.chat(history)

            if generation != self._generation:
                logger.info("Discarding reply for a cleared conversation")
                return

            self.state.add_assistant_message(reply)
            self._notify()
            await self._speak(reply)

            if self.state.listening:
                self.state.status_text = LISTENING_STATUS

        except Exception as e:
            logger.error("Turn failed", error=str(e), exception_type=type(e).__name__)
            if generation == self._generation:
                self.state.status_text = TURN_ERROR_STATUS

        finally:
            self.call_state = (
                CallState.LISTENING if self.state.listening else CallState.IDLE
            )
            self._notify()

    async def _speak(self, text: str) -> None:
        """Play the relay's audio for ``text``, or speak it locally on failure."""
        self.state.speaking = True
        self.call_state = CallState.SPEAKING
        self._notify()

        try:
            try:
                audio = await self.relay.synthesize(text)
                await self.player.play(audio)
            except Exception as e:
                logger.warning(
                    "Relay speech failed, using local synthesis", error=str(e)
                )
                await self.local_synthesizer.speak(text)
        finally:
            self.state.speaking = False
            self._notify()

    def _notify(self) -> None:
        if self.on_update is not None:
            self.on_update(self.state)

    # Teardown

    async def close(self) -> None:
        """Release the capture device and stop consuming events."""
        if self.device is not None:
            if self.state.listening:
                self.device.stop()
                self.state.listening = False
            self.device.detach()

        if self.is_busy:
            self._turn.cancel()
            try:
                await self._turn
            except asyncio.CancelledError:
                pass

        self.call_state = CallState.IDLE
        self._events.put_nowait(None)

    def get_status(self) -> Dict[str, Any]:
        """Get current controller status."""
        return {
            "call_state": self.call_state.value,
            "listening": self.state.listening,
            "speaking": self.state.speaking,
            "status_text": self.state.status_text,
            "live_transcript": self.state.live_transcript,
            "history_length": len(self.state.history),
            "pending_utterance": self._pending_utterance is not None,
            "device_attached": self.device is not None,
        }
