"""Channel history helpers used to build prompts."""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Tuple

import discord

from ..gateway import ChatGateway

logger = logging.getLogger(__name__)

# Upper bound on the lookback window for a single user's messages
MAX_LOOKBACK_DAYS = 365


async def member_display_name(
    gateway: ChatGateway,
    guild_id: Optional[int],
    user: discord.abc.User
) -> str:
    """Server nickname of ``user`` in ``guild_id``, falling back to the username."""
    if guild_id is not None:
        try:
            member = await gateway.fetch_member(guild_id, user.id)
            if member.nick:
                return member.nick
        except discord.HTTPException as e:
            logger.debug(f"Could not fetch member {user.id}: {e}")
    return user.name


async def display_name(
    gateway: ChatGateway,
    message: discord.Message,
    cache: Optional[Dict[int, str]] = None
) -> str:
    """Display name of the message author, cached per author id."""
    author = message.author
    if cache is not None and author.id in cache:
        return cache[author.id]

    guild_id = message.guild.id if message.guild is not None else None
    name = await member_display_name(gateway, guild_id, author)

    if cache is not None:
        cache[author.id] = name
    return name


async def format_channel_history(gateway: ChatGateway, channel_id: int, limit: int) -> str:
    """The last ``limit`` messages as ``name: content`` lines, oldest first."""
    messages = await gateway.fetch_recent_messages(channel_id, limit)
    names: Dict[int, str] = {}

    lines = []
    for message in reversed(messages):
        lines.append(f"{await display_name(gateway, message, names)}: {message.content}")
    return "\n".join(lines)


async def fetch_user_messages(
    gateway: ChatGateway,
    channel_id: int,
    user_id: int,
    days: int,
    max_messages: int
) -> List[str]:
    """Lines written by one user within the last ``days`` days."""
    days = max(0, min(days, MAX_LOOKBACK_DAYS))
    after = datetime.now(timezone.utc) - timedelta(days=days)
    messages = await gateway.fetch_recent_messages(channel_id, max_messages)
    names: Dict[int, str] = {}

    lines = []
    for message in messages:
        if message.author.id == user_id and message.created_at > after:
            lines.append(f"{await display_name(gateway, message, names)}: {message.content}")
    return lines


async def fetch_and_count_messages(
    gateway: ChatGateway,
    channel_id: int,
    limit: int
) -> Tuple[List[str], Counter]:
    """Non-bot lines oldest first, plus a per-name message count."""
    messages = await gateway.fetch_recent_messages(channel_id, limit)
    names: Dict[int, str] = {}
    counts: Counter = Counter()

    lines = []
    for message in reversed(messages):
        if message.author.bot:
            continue
        name = await display_name(gateway, message, names)
        lines.append(f"{name}: {message.content}")
        counts[name] += 1
    return lines, counts


def top_active_users(counts: Counter, top_n: int = 5) -> List[str]:
    return [name for name, _ in counts.most_common(top_n)]
