"""Tests for the speech relay."""

import pytest
from unittest.mock import Mock, patch
from elevenlabs.core.api_error import ApiError

from agent_calling.config.settings import SpeechSettings
from agent_calling.errors import SpeechNotConfiguredError, SpeechUpstreamError
from agent_calling.relays.speech import SpeechRelay


class TestSpeechRelay:
    """Test cases for the ElevenLabs speech relay."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = Mock()
        self.relay = SpeechRelay(api_key="el-test", client=self.client)

    @pytest.mark.parametrize("text", ["hello", "", "A much longer reply. " * 20])
    def test_not_configured_raises(self, text):
        relay = SpeechRelay(api_key=None)

        assert relay.configured is False
        with pytest.raises(SpeechNotConfiguredError):
            relay.synthesize(text)

    def test_joins_streamed_chunks(self):
        self.client.text_to_speech.convert.return_value = iter([b"ID3", b"chunk1", b"chunk2"])

        audio = self.relay.synthesize("Hello world")

        assert audio == b"ID3chunk1chunk2"

    def test_accepts_plain_bytes(self):
        self.client.text_to_speech.convert.return_value = b"mp3-bytes"

        assert self.relay.synthesize("Hello") == b"mp3-bytes"

    def test_uses_fixed_voice_and_settings(self):
        self.client.text_to_speech.convert.return_value = [b"x"]

        self.relay.synthesize("Hello world")

        kwargs = self.client.text_to_speech.convert.call_args.kwargs
        assert kwargs["voice_id"] == "21m00Tcm4TlvDq8ikWAM"
        assert kwargs["model_id"] == "eleven_monolingual_v1"
        assert kwargs["text"] == "Hello world"
        assert kwargs["voice_settings"].stability == 0.5
        assert kwargs["voice_settings"].similarity_boost == 0.5

    def test_custom_voice(self):
        relay = SpeechRelay(
            api_key="el-test",
            speech_settings=SpeechSettings(voice_id="voice-123"),
            client=self.client,
        )
        self.client.text_to_speech.convert.return_value = [b"x"]

        relay.synthesize("Hi")

        assert self.client.text_to_speech.convert.call_args.kwargs["voice_id"] == "voice-123"

    def test_upstream_status_error_raises(self):
        self.client.text_to_speech.convert.side_effect = ApiError(status_code=401, body="bad key")

        with pytest.raises(SpeechUpstreamError):
            self.relay.synthesize("Hello")

    def test_error_while_streaming_raises(self):
        def broken_stream():
            yield b"partial"
            raise ConnectionError("stream cut")

        self.client.text_to_speech.convert.return_value = broken_stream()

        with pytest.raises(SpeechUpstreamError, match="stream cut"):
            self.relay.synthesize("Hello")

    @patch("agent_calling.relays.speech.ElevenLabs")
    def test_client_created_from_api_key(self, mock_elevenlabs):
        relay = SpeechRelay(api_key="el-test")

        mock_elevenlabs.assert_called_once_with(api_key="el-test")
        assert relay.configured is True
