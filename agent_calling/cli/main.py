"""CLI entry point for the agent calling demo."""

import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

import click

from ..client.audio import PygameAudioPlayer, Pyttsx3Synthesizer
from ..client.capture import TypedCaptureDevice
from ..client.relay_client import HttpRelayClient
from ..config.settings import Settings, settings
from ..core.controller import ConversationController
from ..core.models import ConversationMessage, SessionState
from ..errors import SpeechNotConfiguredError, SpeechUpstreamError
from ..relays.chat import ChatRelay
from ..relays.speech import SpeechRelay
from ..utils.logging import get_logger, setup_logging


logger = get_logger(__name__)


def _setup_logging(debug: bool, current: Settings) -> None:
    setup_logging(
        debug=debug,
        log_file=current.logging.file_enabled,
        log_level=current.logging.level,
        log_format=current.logging.format,
        file_rotation_mb=current.logging.file_rotation_mb,
        file_backup_count=current.logging.file_backup_count,
    )


def _load_settings(config: Optional[str]) -> Settings:
    if config:
        settings.config_file = Path(config)
        settings.reload()
    return settings


@click.group()
def cli():
    """Voice calls with a hosted AI agent."""


@cli.command()
@click.option("--host", help="Interface to bind (default from settings)")
@click.option("--port", type=int, help="Port to listen on (default from settings)")
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def serve(host: Optional[str], port: Optional[int], config: Optional[str], debug: bool):
    """Serve the call page and the chat/speech relays."""
    import uvicorn

    from ..server.app import create_app

    current = _load_settings(config)
    _setup_logging(debug, current)

    issues = current.validate()
    for issue in issues:
        click.echo(click.style(f"Warning: {issue}", fg="yellow"), err=True)

    host = host or current.server.host
    port = port or current.server.port

    if not current.chat_configured:
        click.echo(click.style("OPENAI_API_KEY not set - chat relay runs in demo mode", fg="yellow"))
    if not current.speech_configured:
        click.echo(click.style("ELEVENLABS_API_KEY not set - browser speech will be used", fg="yellow"))
    click.echo(click.style(f"Serving on http://{host}:{port}", fg="green", bold=True))

    uvicorn.run(create_app(current), host=host, port=port, log_config=None)


class TranscriptPrinter:
    """Echoes controller state changes to the terminal."""

    def __init__(self):
        self.printed_messages = 0
        self.last_status: Optional[str] = None
        self.last_transcript = ""

    def __call__(self, state: SessionState) -> None:
        if len(state.history) < self.printed_messages:
            # History was cleared
            self.printed_messages = 0
            click.echo(click.style("-- conversation cleared --", dim=True))

        for message in state.history[self.printed_messages:]:
            if message.role == "user":
                click.echo(click.style(f"You: {message.content}", fg="blue"))
            else:
                click.echo(f"Agent: {message.content}")
        self.printed_messages = len(state.history)

        if state.live_transcript and state.live_transcript != self.last_transcript:
            click.echo(click.style(f'  "{state.live_transcript}"', dim=True, italic=True))
        self.last_transcript = state.live_transcript

        if state.status_text != self.last_status:
            click.echo(click.style(f"[{state.status_text}]", fg="green" if state.listening else None))
            self.last_status = state.status_text


async def _run_call(server_url: str) -> None:
    player = PygameAudioPlayer()
    local_synthesizer = Pyttsx3Synthesizer()
    finished = asyncio.Event()

    async with HttpRelayClient(server_url) as relay:
        device = TypedCaptureDevice()
        controller = ConversationController(
            relay, player, local_synthesizer, device=device, on_update=TranscriptPrinter()
        )

        def on_command(command: str) -> None:
            if command in ("quit", "exit"):
                finished.set()
            elif command == "clear":
                controller.clear()
            elif command == "start":
                controller.start()
            elif command == "stop":
                controller.stop()
            elif command == "toggle":
                controller.toggle()
            else:
                click.echo(f"Unknown command: /{command}")

        device.command_handler = on_command

        async with controller:
            consumer = asyncio.create_task(controller.run())
            controller.start()
            await finished.wait()
            await controller.wait_idle()
            logger.info("Call ended", **controller.get_status())

        await consumer

    player.stop()


@cli.command()
@click.option("--server-url", help="Base URL of a running server (default from settings)")
@click.option("--config", type=click.Path(exists=True), help="Path to configuration file")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def call(server_url: Optional[str], config: Optional[str], debug: bool):
    """
    Hold a call from the terminal.

    Typed lines stand in for speech. Lines starting with "~" are shown as a
    live transcript. Commands: /stop, /start, /toggle, /clear, /quit.
    """
    current = _load_settings(config)
    _setup_logging(debug, current)
    server_url = server_url or current.client.server_url

    click.echo(click.style("Call started", fg="green", bold=True))
    click.echo(f"Server: {server_url}")
    click.echo("Type what you would say. /quit ends the call.\n")

    try:
        asyncio.run(_run_call(server_url))
    except KeyboardInterrupt:
        click.echo("\nShutting down...")

    click.echo("Goodbye!")


@cli.command()
@click.argument("text", required=False)
@click.option(
    "--context",
    "-c",
    type=click.Path(exists=True),
    help="JSON file with earlier messages ([{role, content}, ...])",
)
@click.option("--debug", is_flag=True, help="Enable debug logging")
def ask(text: Optional[str], context: Optional[str], debug: bool):
    """Send one message through the chat relay and print the reply."""
    _setup_logging(debug, settings)

    if text is None:
        text = sys.stdin.read().strip()
    if not text:
        raise click.UsageError("No input text provided")

    history: List[ConversationMessage] = []
    if context:
        with open(context, "r") as f:
            history = [ConversationMessage.model_validate(m) for m in json.load(f)]
    history.append(ConversationMessage(role="user", content=text))

    relay = ChatRelay.from_settings(settings)
    click.echo(asyncio.run(relay.reply(history)))


@cli.command()
@click.argument("text")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write MP3 here instead of playing")
@click.option("--voice", help="ElevenLabs voice id")
@click.option("--debug", is_flag=True, help="Enable debug logging")
def speak(text: str, output: Optional[str], voice: Optional[str], debug: bool):
    """Synthesize TEXT through the speech relay."""
    _setup_logging(debug, settings)

    if voice:
        settings.speech.voice_id = voice
    relay = SpeechRelay.from_settings(settings)

    try:
        audio = relay.synthesize(text)
    except SpeechNotConfiguredError:
        click.echo(click.style("TTS not configured: set ELEVENLABS_API_KEY", fg="red"), err=True)
        sys.exit(1)
    except SpeechUpstreamError as e:
        click.echo(click.style(f"TTS error: {e}", fg="red"), err=True)
        sys.exit(1)

    if output:
        Path(output).write_bytes(audio)
        click.echo(f"Wrote {len(audio)} bytes to {output}")
        return

    player = PygameAudioPlayer()
    try:
        asyncio.run(player.play(audio))
    finally:
        player.stop()


if __name__ == "__main__":
    cli()
