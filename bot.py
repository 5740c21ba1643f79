"""Chatter - Discord bot entrypoint.

Loads configuration, sets up logging, connects to Discord and, on
SIGINT/SIGTERM, gives in-flight replies a grace period before closing.
"""

import asyncio
import logging
import signal
import sys

import discord
from discord.ext import commands

from cogs.chatter import ChatterConfig, ConfigurationException

logger = logging.getLogger("chatter")


def setup_logging(level: str = "INFO") -> None:
    """Log to stdout with timestamps."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    ))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.INFO))

    # discord.py is chatty at INFO about gateway internals
    logging.getLogger("discord").setLevel(logging.WARNING)


class ChatterBot(commands.Bot):
    """Bot carrying the loaded configuration for its extensions."""

    def __init__(self, config: ChatterConfig):
        intents = discord.Intents.default()
        intents.message_content = True
        super().__init__(command_prefix=config.command_prefix, intents=intents, help_command=None)
        self.config = config

    async def setup_hook(self) -> None:
        await self.load_extension("cogs.chatter")

    async def on_ready(self) -> None:
        logger.info(f"Logged in as {self.user} (ID: {self.user.id})")


async def run(config: ChatterConfig) -> None:
    bot = ChatterBot(config)
    stop = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows: Ctrl-C still raises KeyboardInterrupt
            pass

    async with bot:
        runner = asyncio.create_task(bot.start(config.discord_token))
        waiter = asyncio.create_task(stop.wait())
        done, _ = await asyncio.wait({runner, waiter}, return_when=asyncio.FIRST_COMPLETED)

        if runner in done:
            waiter.cancel()
            runner.result()
            return

        logger.info("Shutting down bot...")
        cog = bot.get_cog("Chatter")
        if cog is not None:
            await cog.pipeline.drain(config.delivery.shutdown_grace_period)

        await bot.close()
        await asyncio.gather(runner, return_exceptions=True)
        logger.info("Bot shutdown complete")


def main() -> int:
    config = ChatterConfig.from_env()
    setup_logging(config.logging.log_level)

    try:
        config.validate()
    except ConfigurationException as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    logger.info("Configuration loaded successfully")

    try:
        asyncio.run(run(config))
    except discord.LoginFailure as e:
        logger.error(f"Failed to start bot: {e}")
        return 1
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    sys.exit(main())
