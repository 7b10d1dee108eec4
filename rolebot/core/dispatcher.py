"""Prefix command dispatcher

Runs every incoming message through the same steps: ignore our own
messages and non-command traffic, resolve the member, gate on the bot
channels, parse, look up the handler, then render the result as a reply
and a ✅ / ❌ reaction.
"""

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

import discord

from ..errors import CommandError, CommandNotFoundError, PlatformFetchError
from .context import CommandContext
from .parser import extract_command, extract_params
from .permissions import display_name
from .registry import CommandRegistry

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..config import ConfigStore

logger = logging.getLogger(__name__)

POSITIVE_REACTION = "✅"
NEGATIVE_REACTION = "❌"


class Outcome(Enum):
    IGNORED = "ignored"
    CHANNEL_REJECTED = "channel_rejected"
    NOT_FOUND = "not_found"
    FAILED = "failed"
    SUCCEEDED = "succeeded"


def format_error(text: str) -> str:
    return f"⚠️ `{text}`"


class Dispatcher:
    def __init__(
        self,
        bot: "Bot",
        store: "ConfigStore",
        registry: CommandRegistry,
        delete_delay: float = 2.0,
    ):
        self.bot = bot
        self.store = store
        self.registry = registry
        self.delete_delay = delete_delay
        self._pending_deletes: dict[int, asyncio.Task] = {}

    @property
    def pending_deletes(self) -> dict[int, asyncio.Task]:
        return dict(self._pending_deletes)

    async def handle(self, message: discord.Message) -> Outcome:
        bot_user = self.bot.user
        if bot_user is not None and message.author.id == bot_user.id:
            return Outcome.IGNORED

        guild = message.guild
        prefix = self.store.prefix
        if guild is None or not message.content.startswith(prefix):
            return Outcome.IGNORED

        try:
            member = await guild.fetch_member(message.author.id)
        except discord.HTTPException as e:
            error = PlatformFetchError(f"Could not fetch member {message.author.id}: {e}")
            logger.warning(str(error))
            return Outcome.IGNORED

        if not self.store.is_channel_allowed(message.channel.id):
            logger.debug(f"Rejecting command from {display_name(member)} in channel {message.channel.id}")
            await self._react(message, NEGATIVE_REACTION)
            self._schedule_delete(message)
            return Outcome.CHANNEL_REJECTED

        command = extract_command(message.content, prefix)
        params = extract_params(message.content, command, prefix)

        handler = self.registry.get(command)
        if handler is None:
            await self._fail(message, CommandNotFoundError(command))
            return Outcome.NOT_FOUND

        ctx = CommandContext(
            params=params,
            bot=self.bot,
            message=message,
            member=member,
            store=self.store,
        )
        try:
            reply = await handler(ctx)
        except CommandError as e:
            logger.info(f"{command} failed for {display_name(member)}: {e}")
            await self._fail(message, e)
            return Outcome.FAILED
        except Exception:
            logger.exception(f"Unhandled error in command {command}")
            await self._react(message, NEGATIVE_REACTION)
            return Outcome.FAILED

        if reply:
            await self._send(message, reply)
        await self._react(message, POSITIVE_REACTION)
        logger.info(f"{display_name(member)} ran {command} {' '.join(params)}".rstrip())
        return Outcome.SUCCEEDED

    def cancel_pending_delete(self, message_id: int) -> bool:
        """Drop a scheduled delete for a message someone else already removed"""
        task = self._pending_deletes.pop(message_id, None)
        if task is None:
            return False
        task.cancel()
        return True

    def _schedule_delete(self, message: discord.Message) -> asyncio.Task:
        task = asyncio.create_task(self._delete_later(message))
        self._pending_deletes[message.id] = task
        return task

    async def _delete_later(self, message: discord.Message) -> None:
        try:
            await asyncio.sleep(self.delete_delay)
            await message.delete()
        except discord.NotFound:
            logger.debug(f"Message {message.id} was already deleted")
        except discord.HTTPException as e:
            logger.warning(f"Could not delete message {message.id}: {e}")
        finally:
            self._pending_deletes.pop(message.id, None)

    async def _fail(self, message: discord.Message, error: CommandError) -> None:
        await self._send(message, format_error(str(error)))
        await self._react(message, NEGATIVE_REACTION)

    async def _send(self, message: discord.Message, text: str) -> None:
        try:
            await message.channel.send(text)
        except discord.HTTPException as e:
            logger.warning(f"Could not send reply in channel {message.channel.id}: {e}")

    async def _react(self, message: discord.Message, emoji: str) -> None:
        try:
            await message.add_reaction(emoji)
        except discord.HTTPException as e:
            logger.warning(f"Could not react to message {message.id}: {e}")
