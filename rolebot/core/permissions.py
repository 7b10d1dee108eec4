"""Membership checks and role lookups used to gate commands"""

from collections.abc import Iterable
from typing import TypeVar

import discord

T = TypeVar("T")


def contains(value: T, items: Iterable[T]) -> bool:
    return value in set(items)


def contains_any(items: Iterable[T], candidates: Iterable[T]) -> bool:
    """True if any candidate appears in items; no overlap is simply False"""
    pool = set(items)
    return any(candidate in pool for candidate in candidates)


def find_role_by_name(name: str, roles: Iterable[discord.Role]) -> discord.Role | None:
    for role in roles:
        if role.name == name:
            return role
    return None


def find_role_by_id(role_id: str, roles: Iterable[discord.Role]) -> discord.Role | None:
    for role in roles:
        if str(role.id) == role_id:
            return role
    return None


def role_ids(member: discord.Member) -> list[str]:
    return [str(role.id) for role in member.roles]


def display_name(member: discord.Member) -> str:
    """Nickname if one is set, otherwise the username"""
    return member.nick or member.name
