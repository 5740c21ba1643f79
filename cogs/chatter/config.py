"""
Configuration for the Chatter Module
====================================

Settings are read from the process environment (optionally seeded from a
``.env`` file) into plain dataclasses.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationException

# Discord's hard ceiling for a single message
MAX_MESSAGE_LENGTH = 2000


@dataclass
class ProviderConfig:
    """Connection settings for one LLM provider."""
    name: str
    api_key: Optional[str]
    url: str
    model: str
    vision_model: str
    model_version: str = ""
    max_tokens: int = 200
    timeout: float = 60.0
    image_timeout: float = 90.0

    def is_valid(self) -> bool:
        return bool(self.api_key and self.url and self.model)


@dataclass
class DeliveryConfig:
    """Tunables for splitting and pacing a reply."""
    max_message_length: int = MAX_MESSAGE_LENGTH
    short_message_threshold: int = 500
    fallback_chunk_size: int = 800
    min_delay: float = 5.0
    max_delay: float = 8.0
    per_char_delay: float = 0.05 / 80
    typing_refresh_interval: float = 8.0
    segmentation_timeout: float = 30.0
    image_download_timeout: float = 30.0
    shutdown_grace_period: float = 30.0


@dataclass
class LoggingConfig:
    log_level: str = "INFO"


@dataclass
class ChatterConfig:
    """Top-level configuration for the chatter cog."""
    discord_token: Optional[str] = None
    command_prefix: str = "!"
    providers: Dict[str, ProviderConfig] = field(default_factory=dict)
    delivery: DeliveryConfig = field(default_factory=DeliveryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env") -> "ChatterConfig":
        """Build the configuration from environment variables."""
        if env_file:
            # The file is optional; production sets real environment variables
            load_dotenv(env_file)

        providers = {
            "grok": ProviderConfig(
                name="grok",
                api_key=os.getenv("XAI_API_KEY"),
                url="https://api.x.ai/v1/chat/completions",
                model="grok-3",
                vision_model="grok-vision-beta",
                model_version="2024-11-17",
            ),
            "openai": ProviderConfig(
                name="openai",
                api_key=os.getenv("OPENAI_API_KEY"),
                url="https://api.openai.com/v1/chat/completions",
                model="gpt-4o",
                vision_model="gpt-4o",
                model_version="2024-05-13",
            ),
        }

        delivery = DeliveryConfig(
            shutdown_grace_period=float(os.getenv("SHUTDOWN_GRACE_SECONDS", "30")),
        )

        return cls(
            discord_token=os.getenv("DISCORD_TOKEN"),
            command_prefix=os.getenv("COMMAND_PREFIX", "!"),
            providers=providers,
            delivery=delivery,
            logging=LoggingConfig(log_level=os.getenv("LOG_LEVEL", "INFO").upper()),
        )

    def validate(self) -> None:
        """Raise ``ConfigurationException`` if the bot cannot start."""
        if not self.discord_token:
            raise ConfigurationException("DISCORD_TOKEN", "environment variable is required")

        if not any(p.api_key for p in self.providers.values()):
            raise ConfigurationException(
                "XAI_API_KEY or OPENAI_API_KEY",
                "at least one AI API key must be set"
            )
