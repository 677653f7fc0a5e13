"""Tests for the typed capture device."""

import asyncio
import io

import pytest

from agent_calling.client.capture import TypedCaptureDevice
from agent_calling.core.models import CaptureEventKind


class TestParseLine:
    def setup_method(self):
        self.device = TypedCaptureDevice(stream=io.StringIO(""))

    def test_plain_line_is_final(self):
        event = self.device.parse_line("  hello there \n")

        assert event.kind is CaptureEventKind.FINAL
        assert event.transcript == "hello there"

    def test_tilde_line_is_interim(self):
        event = self.device.parse_line("~hello th\n")

        assert event.kind is CaptureEventKind.INTERIM
        assert event.transcript == "hello th"

    @pytest.mark.parametrize("line", ["\n", "   \n", ""])
    def test_blank_line_is_ignored(self, line):
        assert self.device.parse_line(line) is None


class TestTypedCaptureDevice:
    def run_device(self, text, start_capturing=True):
        """Feed ``text`` through a device and collect what it reports."""
        events = []
        commands = []

        async def scenario():
            finished = asyncio.Event()

            def on_command(command):
                commands.append(command)
                if command == "quit":
                    finished.set()

            device = TypedCaptureDevice(stream=io.StringIO(text), command_handler=on_command)
            device.attach(events.append)
            if start_capturing:
                device.start()
            else:
                device._loop = asyncio.get_running_loop()
                await asyncio.to_thread(device._read_lines)
            await asyncio.wait_for(finished.wait(), timeout=5)

        asyncio.run(scenario())
        return events, commands

    def test_lines_become_events_in_order(self):
        events, commands = self.run_device("~hel\nhello\n\nsecond line\n")

        assert [(e.kind, e.transcript) for e in events] == [
            (CaptureEventKind.INTERIM, "hel"),
            (CaptureEventKind.FINAL, "hello"),
            (CaptureEventKind.FINAL, "second line"),
        ]
        assert commands == ["quit"]

    def test_commands_go_to_handler(self):
        events, commands = self.run_device("/clear\nhi\n/stop\n")

        assert commands == ["clear", "stop", "quit"]
        assert [e.transcript for e in events] == ["hi"]

    def test_lines_ignored_while_not_capturing(self):
        events, commands = self.run_device("hello\n/start\n", start_capturing=False)

        assert events == []
        assert commands == ["start", "quit"]

    def test_stop_emits_end_event(self):
        events = []

        async def scenario():
            device = TypedCaptureDevice(stream=io.StringIO(""))
            device.attach(events.append)
            device.start()
            device.stop()
            device.stop()
            await asyncio.sleep(0.05)

        asyncio.run(scenario())

        assert [e.kind for e in events].count(CaptureEventKind.END) == 1

    def test_end_of_input_without_handler_reports_error(self):
        events = []

        async def scenario():
            device = TypedCaptureDevice(stream=io.StringIO(""))
            device.attach(events.append)
            device.start()
            for _ in range(100):
                if events:
                    break
                await asyncio.sleep(0.01)

        asyncio.run(scenario())

        assert events[0].kind is CaptureEventKind.ERROR
        assert events[0].error_code == "aborted"
