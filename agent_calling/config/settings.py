"""Configuration settings for the agent calling demo."""

import os
from pathlib import Path
from typing import Optional, Dict, Any, Union
from dataclasses import dataclass
import json
import threading
import structlog
from dotenv import load_dotenv


logger = structlog.get_logger()


DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant in a voice conversation. Keep your responses "
    "concise and natural, as they will be spoken aloud. Be friendly and conversational."
)


@dataclass
class ChatSettings:
    """Chat relay settings."""
    model: str = "gpt-4"
    temperature: float = 0.7
    max_tokens: int = 150
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


@dataclass
class SpeechSettings:
    """Speech relay settings (ElevenLabs)."""
    voice_id: str = "21m00Tcm4TlvDq8ikWAM"  # Rachel voice
    model_id: str = "eleven_monolingual_v1"
    stability: float = 0.5
    similarity_boost: float = 0.5


@dataclass
class ServerSettings:
    """HTTP server settings."""
    host: str = "127.0.0.1"
    port: int = 8000


@dataclass
class ClientSettings:
    """Terminal client settings."""
    server_url: str = "http://127.0.0.1:8000"


@dataclass
class LoggingSettings:
    """Logging configuration settings."""
    level: str = "INFO"
    format: str = "json"
    file_enabled: bool = False
    file_rotation_mb: int = 10
    file_backup_count: int = 7


class Settings:
    """Main settings class for the agent calling demo."""

    def __init__(self, config_file: Optional[Union[str, Path]] = None,
                 load_env_file: bool = True):
        self.config_file = Path(config_file) if config_file else None
        self._lock = threading.RLock()
        self._env_loaded = not load_env_file

        self.chat = ChatSettings()
        self.speech = SpeechSettings()
        self.server = ServerSettings()
        self.client = ClientSettings()
        self.logging = LoggingSettings()

        # Credentials are optional; without them the relays use their fallbacks
        self.openai_api_key: Optional[str] = None
        self.elevenlabs_api_key: Optional[str] = None

        self._load_env_file()

        if self.config_file and self.config_file.exists():
            self.load_from_file()

        self.load_from_env()

    def _load_env_file(self) -> None:
        """Load environment variables from the nearest .env file."""
        if not self._env_loaded:
            current_dir = Path.cwd()
            for parent in [current_dir] + list(current_dir.parents):
                env_file = parent / ".env"
                if env_file.exists():
                    load_dotenv(env_file)
                    logger.debug("Loaded .env file", path=str(env_file))
                    break
            self._env_loaded = True

    def load_from_file(self) -> None:
        """Load settings from a JSON configuration file."""
        if not self.config_file or not self.config_file.exists():
            return

        try:
            with self._lock:
                with open(self.config_file, 'r') as f:
                    config = json.load(f)

                sections = {
                    "chat": self.chat,
                    "speech": self.speech,
                    "server": self.server,
                    "client": self.client,
                    "logging": self.logging,
                }
                for name, section in sections.items():
                    for key, value in config.get(name, {}).items():
                        if hasattr(section, key):
                            setattr(section, key, value)

                logger.info("Loaded settings from file", file=str(self.config_file))

        except (OSError, ValueError) as e:
            logger.error("Failed to load settings from file",
                        file=str(self.config_file),
                        error=str(e))

    def load_from_env(self) -> None:
        """Load settings from environment variables."""
        with self._lock:
            self.openai_api_key = os.getenv("OPENAI_API_KEY") or None
            self.elevenlabs_api_key = os.getenv("ELEVENLABS_API_KEY") or None

            if os.getenv("OPENAI_MODEL"):
                self.chat.model = os.getenv("OPENAI_MODEL")
            if os.getenv("CHAT_TEMPERATURE"):
                self.chat.temperature = float(os.getenv("CHAT_TEMPERATURE"))
            if os.getenv("CHAT_MAX_TOKENS"):
                self.chat.max_tokens = int(os.getenv("CHAT_MAX_TOKENS"))
            if os.getenv("SYSTEM_PROMPT"):
                self.chat.system_prompt = os.getenv("SYSTEM_PROMPT")

            if os.getenv("ELEVENLABS_VOICE_ID"):
                self.speech.voice_id = os.getenv("ELEVENLABS_VOICE_ID")
            if os.getenv("ELEVENLABS_MODEL_ID"):
                self.speech.model_id = os.getenv("ELEVENLABS_MODEL_ID")

            if os.getenv("HOST"):
                self.server.host = os.getenv("HOST")
            if os.getenv("PORT"):
                self.server.port = int(os.getenv("PORT"))

            if os.getenv("AGENT_SERVER_URL"):
                self.client.server_url = os.getenv("AGENT_SERVER_URL")

            if os.getenv("LOG_LEVEL"):
                self.logging.level = os.getenv("LOG_LEVEL").upper()
            if os.getenv("LOG_FORMAT"):
                self.logging.format = os.getenv("LOG_FORMAT")
            if os.getenv("LOG_FILE_ENABLED"):
                self.logging.file_enabled = os.getenv("LOG_FILE_ENABLED").lower() == "true"

    @property
    def chat_configured(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def speech_configured(self) -> bool:
        return bool(self.elevenlabs_api_key)

    def reload(self) -> None:
        """Reload settings from file and environment."""
        with self._lock:
            if self.config_file and self.config_file.exists():
                self.load_from_file()
            self.load_from_env()
            logger.info("Settings reloaded")

    def validate(self) -> list[str]:
        """Validate current settings and return list of issues."""
        issues = []

        if not 0.0 <= self.chat.temperature <= 2.0:
            issues.append(f"Invalid chat temperature: {self.chat.temperature}")
        if self.chat.max_tokens <= 0:
            issues.append(f"Invalid chat max tokens: {self.chat.max_tokens}")
        if not self.chat.system_prompt.strip():
            issues.append("System prompt is empty")

        for name in ("stability", "similarity_boost"):
            value = getattr(self.speech, name)
            if not 0.0 <= value <= 1.0:
                issues.append(f"Invalid speech {name}: {value}")

        if not 0 < self.server.port < 65536:
            issues.append(f"Invalid port: {self.server.port}")
        if self.logging.level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            issues.append(f"Invalid log level: {self.logging.level}")

        return issues

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to a dictionary. Credentials are reported as set/unset only."""
        return {
            "chat": {
                "model": self.chat.model,
                "temperature": self.chat.temperature,
                "max_tokens": self.chat.max_tokens,
                "system_prompt": self.chat.system_prompt,
                "configured": self.chat_configured,
            },
            "speech": {
                "voice_id": self.speech.voice_id,
                "model_id": self.speech.model_id,
                "stability": self.speech.stability,
                "similarity_boost": self.speech.similarity_boost,
                "configured": self.speech_configured,
            },
            "server": {
                "host": self.server.host,
                "port": self.server.port,
            },
            "client": {
                "server_url": self.client.server_url,
            },
            "logging": {
                "level": self.logging.level,
                "format": self.logging.format,
                "file_enabled": self.logging.file_enabled,
                "file_rotation_mb": self.logging.file_rotation_mb,
                "file_backup_count": self.logging.file_backup_count,
            },
        }


# Global settings instance
settings = Settings()
