"""Per-message command context and handler signature"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

import discord

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from ..config import ConfigStore


@dataclass
class CommandContext:
    params: list[str]
    bot: "Bot"
    message: discord.Message
    member: discord.Member
    store: "ConfigStore"

    @property
    def guild(self) -> discord.Guild:
        return self.member.guild


# Handlers return reply text ("" for none) or raise a CommandError
Handler = Callable[[CommandContext], Awaitable[str]]
