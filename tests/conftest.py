"""Pytest configuration and fake Discord objects shared by the tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

import discord
import pytest

_project_root = str(Path(__file__).resolve().parent.parent)
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from rolebot.cogs.roles import build_registry
from rolebot.config import Config, ConfigStore
from rolebot.core.dispatcher import Dispatcher
from rolebot.errors import PersistenceWriteError

BOT_USER_ID = 999
GUILD_ID = 1
BOT_CHANNEL_ID = 10
OTHER_CHANNEL_ID = 20

ADMIN_ROLE_ID = 100
NEURO_ROLE_ID = 201
HE_ROLE_ID = 202
SHE_ROLE_ID = 203
MOD_ROLE_ID = 300


class FakeResponse:
    def __init__(self, status: int, reason: str) -> None:
        self.status = status
        self.reason = reason


def http_error(status: int = 500) -> discord.HTTPException:
    return discord.HTTPException(FakeResponse(status, "Server Error"), "boom")


def not_found() -> discord.NotFound:
    return discord.NotFound(FakeResponse(404, "Not Found"), "Unknown Message")


class FakeRole:
    def __init__(self, role_id: int, name: str) -> None:
        self.id = role_id
        self.name = name

    def __repr__(self) -> str:
        return f"FakeRole({self.id}, {self.name!r})"


class FakeUser:
    def __init__(self, user_id: int, name: str = "user") -> None:
        self.id = user_id
        self.name = name


class FakeMember:
    def __init__(
        self,
        guild: "FakeGuild",
        user_id: int,
        name: str,
        *,
        nick: str | None = None,
        roles: list[FakeRole] | None = None,
    ) -> None:
        self.guild = guild
        self.id = user_id
        self.name = name
        self.nick = nick
        self.roles: list[FakeRole] = list(roles or [])
        self.fail_role_updates = False
        self.role_log: list[tuple[str, int]] = []

    async def add_roles(self, *roles: FakeRole, reason: str | None = None) -> None:
        if self.fail_role_updates:
            raise http_error(403)
        for role in roles:
            self.roles.append(role)
            self.role_log.append(("add", role.id))

    async def remove_roles(self, *roles: FakeRole, reason: str | None = None) -> None:
        if self.fail_role_updates:
            raise http_error(403)
        for role in roles:
            self.roles = [existing for existing in self.roles if existing.id != role.id]
            self.role_log.append(("remove", role.id))

    @property
    def role_ids(self) -> set[int]:
        return {role.id for role in self.roles}


class FakeGuild:
    def __init__(self, guild_id: int = GUILD_ID) -> None:
        self.id = guild_id
        self.roles: list[FakeRole] = []
        self.members: dict[int, FakeMember] = {}
        self.fail_fetch_roles = False
        self.fail_fetch_member = False
        self.role_fetches = 0

    def add_member(self, member: FakeMember) -> FakeMember:
        self.members[member.id] = member
        return member

    async def fetch_member(self, member_id: int) -> FakeMember:
        if self.fail_fetch_member or member_id not in self.members:
            raise http_error(404 if member_id not in self.members else 500)
        return self.members[member_id]

    async def fetch_roles(self) -> list[FakeRole]:
        self.role_fetches += 1
        if self.fail_fetch_roles:
            raise http_error()
        return list(self.roles)


class FakeChannel:
    def __init__(self, channel_id: int) -> None:
        self.id = channel_id
        self.sent: list[str] = []

    async def send(self, content: str) -> None:
        self.sent.append(content)


class FakeMessage:
    _next_id = 5000

    def __init__(
        self,
        content: str,
        *,
        author: Any,
        guild: FakeGuild | None,
        channel: FakeChannel,
    ) -> None:
        FakeMessage._next_id += 1
        self.id = FakeMessage._next_id
        self.content = content
        self.author = author
        self.guild = guild
        self.channel = channel
        self.reactions: list[str] = []
        self.deleted = False
        self.delete_calls = 0
        self.fail_reactions = False

    async def add_reaction(self, emoji: str) -> None:
        if self.fail_reactions:
            raise http_error(403)
        self.reactions.append(emoji)

    async def delete(self) -> None:
        self.delete_calls += 1
        if self.deleted:
            raise not_found()
        self.deleted = True


class FakeBot:
    def __init__(self) -> None:
        self.user = FakeUser(BOT_USER_ID, "rolebot")


class MemoryStorage:
    def __init__(self, payload: dict[str, Any] | None = None) -> None:
        self.payload = payload
        self.writes: list[dict[str, Any]] = []
        self.fail_writes = False

    def read(self) -> dict[str, Any]:
        return dict(self.payload or {})

    def write(self, payload: dict[str, Any]) -> None:
        if self.fail_writes:
            raise PersistenceWriteError("disk full")
        self.writes.append(payload)


@pytest.fixture
def guild() -> FakeGuild:
    guild = FakeGuild()
    guild.roles = [
        FakeRole(ADMIN_ROLE_ID, "Admin"),
        FakeRole(NEURO_ROLE_ID, "Neuro"),
        FakeRole(HE_ROLE_ID, "He/Him"),
        FakeRole(SHE_ROLE_ID, "She/Her"),
        FakeRole(MOD_ROLE_ID, "Mod"),
    ]
    return guild


@pytest.fixture
def member(guild: FakeGuild) -> FakeMember:
    return guild.add_member(FakeMember(guild, 42, "alice"))


@pytest.fixture
def admin(guild: FakeGuild) -> FakeMember:
    admin_role = next(role for role in guild.roles if role.id == ADMIN_ROLE_ID)
    return guild.add_member(FakeMember(guild, 7, "bob", nick="Bobby", roles=[admin_role]))


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> ConfigStore:
    config = Config(
        token="token",
        allowed_channels=frozenset({str(BOT_CHANNEL_ID)}),
        command_prefix="!",
        admin_role_ids=frozenset({str(ADMIN_ROLE_ID)}),
        allowed_role_ids=(str(NEURO_ROLE_ID), str(HE_ROLE_ID), str(SHE_ROLE_ID)),
    )
    return ConfigStore(config, storage)


@pytest.fixture
def bot() -> FakeBot:
    return FakeBot()


@pytest.fixture
def dispatcher(bot: FakeBot, store: ConfigStore) -> Dispatcher:
    return Dispatcher(bot, store, build_registry(), delete_delay=0)


@pytest.fixture
def make_message(guild: FakeGuild):
    def _make(
        content: str,
        author: Any,
        *,
        channel_id: int = BOT_CHANNEL_ID,
        in_guild: bool = True,
    ) -> FakeMessage:
        return FakeMessage(
            content,
            author=author,
            guild=guild if in_guild else None,
            channel=FakeChannel(channel_id),
        )

    return _make
