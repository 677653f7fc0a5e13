"""Typed-text capture device for calls from a terminal."""

import asyncio
import sys
import threading
from typing import Callable, Optional, TextIO

import structlog

from ..core.interfaces import CaptureDevice
from ..core.models import CaptureEvent


logger = structlog.get_logger()


class TypedCaptureDevice(CaptureDevice):
    """
    Stands in for a speech recognizer by reading lines from a text stream.

    - a plain line is a final transcript
    - a line starting with ``~`` is an interim transcript
    - a line starting with ``/`` is handed to ``command_handler``

    Lines arriving while capture is stopped are discarded, except commands.
    Events are delivered on the event loop that called ``start``.
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        command_handler: Optional[Callable[[str], None]] = None,
    ):
        super().__init__()
        self.stream = stream or sys.stdin
        self.command_handler = command_handler
        self.is_capturing = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._reader: Optional[threading.Thread] = None

    def start(self) -> None:
        self._loop = asyncio.get_running_loop()
        self.is_capturing = True

        if self._reader is None or not self._reader.is_alive():
            self._reader = threading.Thread(
                target=self._read_lines, daemon=True, name="Capture-Reader"
            )
            self._reader.start()
        logger.debug("Typed capture started")

    def stop(self) -> None:
        if not self.is_capturing:
            return
        self.is_capturing = False
        self._post(self.emit, CaptureEvent.end())
        logger.debug("Typed capture stopped")

    def _post(self, callback: Callable, argument) -> None:
        if self._loop is not None and not self._loop.is_closed():
            self._loop.call_soon_threadsafe(callback, argument)

    def parse_line(self, line: str) -> Optional[CaptureEvent]:
        """Turn one typed line into a capture event (None for blank lines)."""
        text = line.rstrip("\r\n")
        if text.startswith("~"):
            return CaptureEvent.interim(text[1:].strip())
        if not text.strip():
            return None
        return CaptureEvent.final(text.strip())

    def _read_lines(self) -> None:
        for line in self.stream:
            if line.startswith("/"):
                if self.command_handler is not None:
                    self._post(self.command_handler, line.strip()[1:])
                continue

            if not self.is_capturing:
                continue

            event = self.parse_line(line)
            if event is not None:
                self._post(self.emit, event)

        # End of input ends the call
        logger.debug("Capture input closed")
        if self.command_handler is not None:
            self._post(self.command_handler, "quit")
        else:
            self._post(self.emit, CaptureEvent.error("aborted"))
