"""
Self-assignable role commands
Toggle cosmetic roles, list them, and let admins register new ones
"""

import logging

import discord
from discord.ext import commands

from ..config import BotConfig, ConfigStore
from ..core.context import CommandContext, Handler
from ..core.dispatcher import NEGATIVE_REACTION, Dispatcher
from ..core.permissions import (
    contains,
    contains_any,
    display_name,
    find_role_by_id,
    find_role_by_name,
    role_ids,
)
from ..core.registry import CommandRegistry
from ..errors import (
    DangerousOperationError,
    PermissionDeniedError,
    PlatformError,
    PlatformFetchError,
    RoleNotFoundError,
)

logger = logging.getLogger(__name__)


def _denied(member: discord.Member) -> PermissionDeniedError:
    return PermissionDeniedError(f"I'm sorry {display_name(member)}, I'm afraid I can't do that.")


async def _react_failed(ctx: CommandContext) -> None:
    try:
        await ctx.message.add_reaction(NEGATIVE_REACTION)
    except discord.HTTPException as e:
        logger.warning(f"Could not react to message {ctx.message.id}: {e}")


async def _fetch_roles(guild: discord.Guild) -> list[discord.Role]:
    try:
        return list(await guild.fetch_roles())
    except discord.HTTPException as e:
        raise PlatformFetchError(f"Could not fetch the role list: {e}") from e


async def toggle_roles(ctx: CommandContext) -> str:
    """Add or remove each named role on the invoker, stopping at the first failure"""
    member = ctx.member
    name = display_name(member)
    allowed = ctx.store.allowed_role_ids
    current = set(role_ids(member))

    for arg in ctx.params:
        role = find_role_by_name(arg, ctx.guild.roles)
        if role is None:
            raise RoleNotFoundError(f"Sorry {name}, I could not find the role {arg}!")

        role_id = str(role.id)
        if not contains(role_id, allowed):
            raise _denied(member)

        try:
            if role_id in current:
                await member.remove_roles(role, reason="Self-assigned role toggle")
                current.discard(role_id)
                logger.info(f"Removed role {role.name} from {name}")
            else:
                await member.add_roles(role, reason="Self-assigned role toggle")
                current.add(role_id)
                logger.info(f"Added role {role.name} to {name}")
        except discord.HTTPException as e:
            raise PlatformError(f"Sorry {name}, I could not update the role {role.name}!") from e

    return ""


async def register_roles(ctx: CommandContext) -> str:
    """Admin only: make role ids self-assignable.

    Every id is validated before any is added, so a bad id leaves the
    allow-list untouched.
    """
    member = ctx.member
    name = display_name(member)
    admin_ids = ctx.store.admin_role_ids
    if not contains_any(admin_ids, role_ids(member)):
        raise _denied(member)

    roles = await _fetch_roles(ctx.guild)
    for role_id in ctx.params:
        if find_role_by_id(role_id, roles) is None:
            await _react_failed(ctx)
            raise RoleNotFoundError(f"Sorry {name}, I could not find the role id {role_id}!")
        if contains(role_id, admin_ids):
            await _react_failed(ctx)
            raise DangerousOperationError(
                f"Sorry {name}, adding an admin role as settable is a dangerous operation; "
                "and thus is not permitted."
            )

    await ctx.store.register_roles(ctx.params)
    return ""


async def list_roles(ctx: CommandContext) -> str:
    allowed = ctx.store.allowed_role_ids
    roles = await _fetch_roles(ctx.guild)
    names = "".join(f"{role.name}\n" for role in roles if str(role.id) in allowed)
    return f"```\n{names}```"


async def show_help(ctx: CommandContext) -> str:
    prefix = ctx.store.prefix
    return (
        "```\n"
        f"{prefix}role/pronoun/neuro name (name...)     - Set cosmetic roles for pronouns and neurodiverse traits.\n"
        f"{prefix}listroles                             - List the available roles\n"
        "```"
    )


COMMANDS: dict[str, Handler] = {
    "role": toggle_roles,
    "pronoun": toggle_roles,
    "neuro": toggle_roles,
    "addrole": register_roles,
    "help": show_help,
    "listroles": list_roles,
}


def build_registry() -> CommandRegistry:
    return CommandRegistry(COMMANDS)


class Roles(commands.Cog):
    """Routes prefix commands in the bot channels to the role handlers"""

    def __init__(self, bot: commands.Bot, store: ConfigStore, delete_delay: float = 2.0):
        self.bot = bot
        self.dispatcher = Dispatcher(bot, store, build_registry(), delete_delay=delete_delay)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        await self.dispatcher.handle(message)

    @commands.Cog.listener()
    async def on_raw_message_delete(self, payload: discord.RawMessageDeleteEvent):
        self.dispatcher.cancel_pending_delete(payload.message_id)


async def setup(bot: commands.Bot):
    """Load the cog"""
    await bot.add_cog(Roles(bot, bot.store, delete_delay=BotConfig.DELETE_DELAY))
