"""
Rolebot Discord Bot
Prefix commands for self-assignable cosmetic roles, using discord.py 2.x
"""

import asyncio
import logging
import signal
import sys

# Load .env before importing config, BotConfig reads the environment at import time
from dotenv import load_dotenv

load_dotenv(encoding="utf-8")

import discord  # noqa: E402
from discord.ext import commands  # noqa: E402

from .config import BotConfig, ConfigStore, JsonFileStorage  # noqa: E402
from .core.logging import setup_logging  # noqa: E402
from .errors import ConfigLoadError  # noqa: E402

logger = logging.getLogger("rolebot")


class RolebotClient(commands.Bot):
    """Role bot client"""

    def __init__(self, store: ConfigStore):
        intents = discord.Intents.default()
        intents.message_content = True  # read command text
        intents.members = True  # member roles and nicknames

        # Prefix commands go through the roles cog dispatcher, not discord.py's parser
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
        )

        self.store = store
        self.initial_extensions = [
            "rolebot.cogs.roles",
        ]
        self.close_task: asyncio.Task | None = None

    async def setup_hook(self):
        loaded = []
        failed = []

        for extension in self.initial_extensions:
            try:
                await self.load_extension(extension)
                loaded.append(extension.split(".")[-1])
            except commands.ExtensionError as e:
                logger.exception(f"Failed to load {extension}")
                failed.append(f"{extension.split('.')[-1]} ({e})")

        if loaded:
            logger.info(f"Loaded cogs: {', '.join(loaded)}")
        if failed:
            logger.error(f"Failed to load: {', '.join(failed)}")

        logger.info("Connecting to Discord...")

    async def on_ready(self):
        await self.change_presence(
            status=BotConfig.get_status(),
            activity=BotConfig.get_activity(self.store.prefix),
        )
        logger.info(f"Bot ready: {self.user} (ID: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guilds | discord.py {discord.__version__}")

    def request_close(self) -> asyncio.Task:
        """Schedule a close from a signal handler, keeping the task referenced"""
        if self.close_task is None or self.close_task.done():
            self.close_task = asyncio.create_task(self.close())
        return self.close_task

    async def on_command_error(self, ctx: commands.Context, error: commands.CommandError):
        # Only mention-prefixed input reaches discord.py's command parser
        if isinstance(error, commands.CommandNotFound):
            return
        logger.error(f"Command error: {error}", exc_info=error)


def _install_signal_handlers(bot: RolebotClient) -> None:
    loop = asyncio.get_running_loop()

    def _shutdown(sig: signal.Signals) -> None:
        logger.info(f"Received {sig.name}, closing connection")
        bot.request_close()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _shutdown, sig)
        except NotImplementedError:
            # Windows event loops; Ctrl+C still raises KeyboardInterrupt
            logger.debug(f"Signal handler for {sig.name} not supported on this platform")


async def main() -> int:
    """Load the config and run the bot until it is closed"""
    try:
        store = ConfigStore.load(JsonFileStorage(BotConfig.CONFIG_PATH), token=BotConfig.TOKEN or None)
    except ConfigLoadError as e:
        logger.error(f"Could not load config: {e}")
        return 1

    async with RolebotClient(store) as bot:
        _install_signal_handlers(bot)
        try:
            await bot.start(store.config.token)
        except discord.LoginFailure as e:
            logger.error(f"Login failed: {e}")
            return 1
        except (KeyboardInterrupt, asyncio.CancelledError):
            if not bot.is_closed():
                await bot.close()

    logger.info("Bot stopped")
    return 0


def run() -> None:
    setup_logging()
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Bot stopped manually")


if __name__ == "__main__":
    run()
