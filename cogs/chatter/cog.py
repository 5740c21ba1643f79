"""
Main Chatter Cog
================

Prefix commands that build a prompt, ask a provider and hand the reply to
the delivery pipeline.
"""

import logging
from typing import Optional

import discord
from discord.ext import commands

from .commands import (
    DEFAULT_HISTORY_MESSAGE_COUNT,
    DEFAULT_MOST_MESSAGE_COUNT,
    DEFAULT_WHO_WON_MESSAGE_COUNT,
    TOP_ACTIVE_USERS_COUNT,
    extract_provider_and_args,
    most_prompt,
    parse_count,
    parse_user_opinion_args,
    split_image_args
)
from .config import ChatterConfig
from .exceptions import ChatException
from .gateway import ChatGateway, DiscordGateway
from .personas import OPENAI_PERSONA, persona_for
from .providers import DEFAULT_PROVIDER, LLMProviderManager, Provider
from .services import DeliveryPipeline
from .services.history import (
    fetch_and_count_messages,
    fetch_user_messages,
    format_channel_history,
    member_display_name,
    top_active_users
)

logger = logging.getLogger(__name__)


class Chatter(commands.Cog):
    """
    AI chat commands for Discord.

    Every command that produces a reply goes through ``DeliveryPipeline``,
    so long answers arrive as several paced messages instead of one block.
    """

    def __init__(
        self,
        bot: commands.Bot,
        config: Optional[ChatterConfig] = None,
        gateway: Optional[ChatGateway] = None,
        providers: Optional[LLMProviderManager] = None
    ):
        self.bot = bot
        self.config = config or ChatterConfig.from_env()

        logging.getLogger(__name__).setLevel(
            getattr(logging, self.config.logging.log_level, logging.INFO)
        )

        self.gateway = gateway or DiscordGateway(bot)
        self.providers = providers or LLMProviderManager(
            self.config.providers,
            self.config.delivery.image_download_timeout
        )
        self.pipeline = DeliveryPipeline(self.gateway, self.providers, self.config.delivery)

    async def cog_unload(self) -> None:
        """Close provider sessions when the cog is unloaded."""
        await self.providers.close_all()
        logger.info("Chatter cog unloaded")

    # ==================== Helpers ====================

    async def _send_thinking(self, ctx: commands.Context, provider: Provider, vision: bool = False) -> None:
        model, version = self.providers.model_for(provider, vision=vision)
        logger.info(f"Sending thinking message (provider: {provider.display_name}, model: {model})")
        await ctx.send(f"Thinking with {model} - knowledge cutoff {version} ...")

    async def _ask_provider(
        self,
        ctx: commands.Context,
        command: str,
        provider: Provider,
        prompt: str,
        system_prompt: str
    ) -> Optional[str]:
        """Run a completion; on failure report it in the channel and return None."""
        try:
            return await self.providers.get(provider).complete(system_prompt, prompt)
        except ChatException as e:
            logger.error(f"AI request failed (command: {command}, provider: {provider.value}): {e}")
            await ctx.send(f"Error: {e}")
            return None

    async def _history(self, ctx: commands.Context, limit: int) -> Optional[str]:
        try:
            return await format_channel_history(self.gateway, ctx.channel.id, limit)
        except discord.HTTPException as e:
            logger.error(f"Failed to fetch channel history: {e}")
            await ctx.send(f"Error fetching messages: {e}")
            return None

    async def _member_name(self, ctx: commands.Context, user: discord.abc.User) -> str:
        guild_id = ctx.guild.id if ctx.guild is not None else None
        return await member_display_name(self.gateway, guild_id, user)

    async def _deliver(self, ctx: commands.Context, reply: str) -> None:
        await self.pipeline.deliver(ctx.channel.id, reply)

    # ==================== Commands ====================

    @commands.command(name="ping")
    async def ping(self, ctx: commands.Context) -> None:
        """Check the bot is alive."""
        await ctx.send("Pong!")

    @commands.command(name="ask")
    async def ask(self, ctx: commands.Context, *args: str) -> None:
        """Ask the AI a question: !ask [grok|openai] <question>"""
        provider, args = extract_provider_and_args(args, DEFAULT_PROVIDER)
        prompt = " ".join(args)
        if not prompt:
            await ctx.send("Usage: !ask [grok|openai] <question>")
            return

        await self._send_thinking(ctx, provider)

        response = await self._ask_provider(ctx, "ask", provider, prompt, persona_for(provider))
        if response is not None:
            await self._deliver(ctx, response)

    @commands.command(name="opinion")
    async def opinion(self, ctx: commands.Context, *args: str) -> None:
        """Weigh in on the recent conversation: !opinion [grok|openai] [messages]"""
        await ctx.send("Let me think about what everyone has been saying...")

        provider, args = extract_provider_and_args(args, DEFAULT_PROVIDER)
        count = parse_count(args, DEFAULT_HISTORY_MESSAGE_COUNT)

        history = await self._history(ctx, count)
        if history is None:
            return

        system_prompt = (
            f"{persona_for(provider)}\nHere are the last {count} messages in this channel:\n{history}\n"
            "Form an opinion or summary about the conversation."
        )
        response = await self._ask_provider(
            ctx, "opinion", provider, "What is your opinion on the recent conversation?", system_prompt
        )
        if response is not None:
            await self._deliver(ctx, response)

    @commands.command(name="who_won")
    async def who_won(self, ctx: commands.Context, *args: str) -> None:
        """Judge the recent arguments: !who_won [grok|openai] [messages]"""
        await ctx.send("Analyzing the last arguments...")

        provider, args = extract_provider_and_args(args, DEFAULT_PROVIDER)
        count = parse_count(args, DEFAULT_WHO_WON_MESSAGE_COUNT)

        history = await self._history(ctx, count)
        if history is None:
            return

        system_prompt = (
            f"{persona_for(provider)}\nHere are the last {count} messages in this channel:\n{history}\n"
            "Based on the arguments and discussions, determine who won the arguments and why. "
            "Be specific and fair, and explain your reasoning."
        )
        response = await self._ask_provider(
            ctx, "who_won", provider, "Who won the arguments in the recent conversation?", system_prompt
        )
        if response is not None:
            await self._deliver(ctx, response)

    @commands.command(name="user_opinion")
    async def user_opinion(self, ctx: commands.Context, *args: str) -> None:
        """Give an opinion of one member: !user_opinion @user [grok|openai] [days] [max_messages]"""
        if not args:
            await ctx.send("Usage: !user_opinion @user [grok|openai] [days] [max_messages]")
            return

        if not ctx.message.mentions:
            await ctx.send("Please mention a user to analyze.")
            return
        target = ctx.message.mentions[0]

        await ctx.send(f"Analyzing {target.name}...")

        provider, days, max_messages = parse_user_opinion_args(args)

        try:
            lines = await fetch_user_messages(self.gateway, ctx.channel.id, target.id, days, max_messages)
        except discord.HTTPException as e:
            logger.error(f"Failed to fetch user messages: {e}")
            await ctx.send(f"Error fetching messages: {e}")
            return

        if not lines:
            await ctx.send(f"No messages found for {target.name} in the last {days} days.")
            return

        history = "\n".join(lines)
        system_prompt = (
            f"Here are all the messages sent by {target.name} in the last {days} days "
            f"in this channel:\n{history}\n"
        )
        response = await self._ask_provider(
            ctx, "user_opinion", provider, f"What is your opinion of {target.name}?", system_prompt
        )
        if response is not None:
            await self._deliver(ctx, response)

    @commands.command(name="most")
    async def most(self, ctx: commands.Context, *args: str) -> None:
        """Answer a "who is the most ..." question: !most [grok|openai] <question>"""
        if not args:
            await ctx.send("Usage: !most [grok|openai] <question>")
            return

        count = DEFAULT_MOST_MESSAGE_COUNT
        await ctx.send(f"Analyzing: {' '.join(args)} (last {count} messages)...")

        provider, args = extract_provider_and_args(args, Provider.OPENAI)
        question = " ".join(args)

        try:
            lines, counts = await fetch_and_count_messages(self.gateway, ctx.channel.id, count)
        except discord.HTTPException as e:
            logger.error(f"Failed to fetch messages: {e}")
            await ctx.send(f"Error fetching messages: {e}")
            return

        active_users = top_active_users(counts, TOP_ACTIVE_USERS_COUNT)
        history = "\n".join(lines)

        system_prompt = (
            f"{persona_for(provider)}\nHere are the last {count} messages in this channel:\n{history}\n"
            f"Among the most active users ({', '.join(active_users)}), answer the following question: "
            f"{question}. Explain your reasoning as Coonbot."
        )
        response = await self._ask_provider(ctx, "most", provider, most_prompt(question), system_prompt)
        if response is not None:
            await self._deliver(ctx, response)

    @commands.command(name="image_opinion")
    async def image_opinion(self, ctx: commands.Context, *args: str) -> None:
        """Opinion on an attached, replied-to or linked image: !image_opinion [grok|openai] [url] [prompt]"""
        provider, args = extract_provider_and_args(args, Provider.OPENAI)
        image_url, prompt = "", " ".join(args)

        if ctx.message.attachments:
            image_url = ctx.message.attachments[0].url
        elif ctx.message.reference is not None and ctx.message.reference.message_id:
            try:
                referenced = await self.gateway.fetch_message(ctx.channel.id, ctx.message.reference.message_id)
            except discord.HTTPException as e:
                logger.error(f"Failed to fetch referenced message: {e}")
                await ctx.send(f"Could not fetch replied message: {e}")
                return
            if referenced.attachments:
                image_url = referenced.attachments[0].url
        else:
            image_url, prompt = split_image_args(args)

        if not image_url:
            await ctx.send(
                "Please attach an image, provide a valid image URL (starting with http/https), "
                "or reply to a message with an image."
            )
            return

        await ctx.send("Analyzing image, one sec...")
        if provider is Provider.OPENAI:
            await self._send_thinking(ctx, provider, vision=True)

        try:
            opinion = await self.providers.get(provider).complete_with_image(
                image_url, OPENAI_PERSONA, prompt or None
            )
        except ChatException as e:
            logger.error(f"Image analysis failed (provider: {provider.value}): {e}")
            await ctx.send(f"Error analyzing image: {e}")
            return

        await self._deliver(ctx, opinion)

    @commands.command(name="roast")
    async def roast(self, ctx: commands.Context, *args: str) -> None:
        """Roast a mentioned member, or the author of the message being replied to."""
        if ctx.message.mentions:
            target_name = await self._member_name(ctx, ctx.message.mentions[0])
            system_prompt = (
                f"{OPENAI_PERSONA}\nRoast {target_name} as if you were a Boston comedian "
                "who grew up in the Bronx. Be really, really mean."
            )
            prompt = f"Roast {target_name}."
        elif ctx.message.reference is not None and ctx.message.reference.message_id:
            try:
                referenced = await self.gateway.fetch_message(ctx.channel.id, ctx.message.reference.message_id)
            except discord.HTTPException as e:
                logger.error(f"Failed to fetch referenced message: {e}")
                await ctx.send(f"Could not fetch replied message: {e}")
                return

            target_name = await self._member_name(ctx, referenced.author)
            system_prompt = (
                f"{OPENAI_PERSONA}\nRoast {target_name} based on this message: '{referenced.content}'. "
                "Be a Boston comedian from the Bronx and don't hold back."
            )
            prompt = f"Roast {target_name} for saying: {referenced.content}"
        else:
            await ctx.send("Please mention a user or reply to a message to roast.")
            return

        await ctx.send(f"Cooking up a roast for {target_name}...")

        response = await self._ask_provider(ctx, "roast", Provider.OPENAI, prompt, system_prompt)
        if response is not None:
            await self._deliver(ctx, response)

    # ==================== Status Handlers ====================

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        """Called when the cog is ready."""
        logger.info("=" * 50)
        logger.info(f"Chatter cog is ready as {self.bot.user}")
        logger.info(f"Providers: {self.providers.get_provider_names()}")
        logger.info("=" * 50)

    @commands.Cog.listener()
    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        """Handle command errors gracefully."""
        if isinstance(error, commands.CommandNotFound):
            logger.info(f"Unknown command: {ctx.invoked_with}")
            return

        if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)) and ctx.command:
            await ctx.send(f"Usage: {ctx.prefix}{ctx.command.qualified_name} {ctx.command.signature}")
            return

        logger.error(f"Command error in {ctx.command}: {error}", exc_info=error)
        await ctx.send("An error occurred while processing the command.")


async def setup(bot: commands.Bot) -> None:
    """Set up the Chatter cog."""
    await bot.add_cog(Chatter(bot, config=getattr(bot, "config", None)))
