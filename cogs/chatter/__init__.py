"""
Chatter Module - Human-paced AI replies for Discord
===================================================

This module provides:
- Two interchangeable LLM providers (xAI Grok, OpenAI)
- Prefix commands that build prompts from channel history
- A delivery pipeline that splits long replies into natural chunks and
  sends them with realistic typing pauses
"""

from .cog import Chatter, setup
from .config import ChatterConfig, DeliveryConfig, ProviderConfig
from .exceptions import (
    AuthenticationException,
    ChatException,
    ConfigurationException,
    ProviderException,
    TimeoutException
)
from .gateway import ChatGateway, DiscordGateway
from .providers import LLMProviderManager, Provider
from .services import DeliveryPipeline

__all__ = [
    'Chatter',
    'setup',
    'ChatterConfig',
    'DeliveryConfig',
    'ProviderConfig',
    'ChatGateway',
    'DiscordGateway',
    'LLMProviderManager',
    'Provider',
    'DeliveryPipeline',
    'ChatException',
    'ProviderException',
    'TimeoutException',
    'AuthenticationException',
    'ConfigurationException'
]

__version__ = '1.0.0'
