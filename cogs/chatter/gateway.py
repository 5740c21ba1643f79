"""
Chat Gateway
============

The narrow slice of Discord the delivery pipeline and commands depend on.
Keeping it behind an interface lets tests drive the pipeline with mocks.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

import discord

logger = logging.getLogger(__name__)


class ChatGateway(ABC):
    """Operations the bot performs against the chat platform."""

    @abstractmethod
    async def send_message(self, channel_id: int, text: str) -> discord.Message:
        """Post ``text`` to a channel."""

    @abstractmethod
    async def trigger_typing(self, channel_id: int) -> None:
        """Show the typing indicator in a channel (visible for ~10 seconds)."""

    @abstractmethod
    async def fetch_recent_messages(self, channel_id: int, limit: int) -> List[discord.Message]:
        """Return up to ``limit`` messages, newest first."""

    @abstractmethod
    async def fetch_message(self, channel_id: int, message_id: int) -> discord.Message:
        """Return a single message."""

    @abstractmethod
    async def fetch_member(self, guild_id: int, user_id: int) -> discord.Member:
        """Return a guild member."""


class DiscordGateway(ChatGateway):
    """``ChatGateway`` backed by a connected discord.py client."""

    def __init__(self, client: discord.Client):
        self.client = client

    async def _channel(self, channel_id: int) -> discord.abc.Messageable:
        channel = self.client.get_channel(channel_id)
        if channel is None:
            channel = await self.client.fetch_channel(channel_id)
        return channel

    async def send_message(self, channel_id: int, text: str) -> discord.Message:
        channel = await self._channel(channel_id)
        return await channel.send(text)

    async def trigger_typing(self, channel_id: int) -> None:
        channel = await self._channel(channel_id)
        await channel.typing()

    async def fetch_recent_messages(self, channel_id: int, limit: int) -> List[discord.Message]:
        channel = await self._channel(channel_id)
        return [message async for message in channel.history(limit=limit)]

    async def fetch_message(self, channel_id: int, message_id: int) -> discord.Message:
        channel = await self._channel(channel_id)
        return await channel.fetch_message(message_id)

    async def fetch_member(self, guild_id: int, user_id: int) -> discord.Member:
        guild = self.client.get_guild(guild_id)
        if guild is None:
            guild = await self.client.fetch_guild(guild_id)
        return await guild.fetch_member(user_id)
