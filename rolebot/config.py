"""Bot configuration

Environment settings live on ``BotConfig``; the role policy (token, bot
channels, prefix, admin/allowed roles) lives in a JSON file owned by
``ConfigStore``.
"""

import asyncio
import json
import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Protocol

import discord

from .errors import ConfigLoadError, DangerousOperationError, PersistenceWriteError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "!"


class BotConfig:
    CONFIG_PATH: str = os.getenv("ROLEBOT_CONFIG", "config.json")
    TOKEN: str = os.getenv("DISCORD_BOT_TOKEN", "")
    DELETE_DELAY: float = float(os.getenv("ROLEBOT_DELETE_DELAY", "2.0"))
    STATUS: str = os.getenv("DISCORD_STATUS", "")

    @classmethod
    def get_status(cls) -> discord.Status:
        status_map = {
            "online": discord.Status.online,
            "idle": discord.Status.idle,
            "dnd": discord.Status.dnd,
            "invisible": discord.Status.invisible,
        }
        return status_map.get(cls.STATUS.lower(), discord.Status.online)

    @classmethod
    def get_activity(cls, prefix: str) -> discord.Game:
        return discord.Game(name=f"Say {prefix}help for help")


class ConfigStorage(Protocol):
    def read(self) -> dict[str, Any]: ...

    def write(self, payload: dict[str, Any]) -> None: ...


class JsonFileStorage:
    """Reads and writes the config file, replacing it atomically on write"""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def read(self) -> dict[str, Any]:
        try:
            with self.path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except FileNotFoundError as e:
            raise ConfigLoadError(f"Config file not found: {self.path}") from e
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigLoadError(f"Could not read config file {self.path}: {e}") from e

        if not isinstance(payload, dict):
            raise ConfigLoadError(f"Config file {self.path} must contain a JSON object")
        return payload

    def write(self, payload: dict[str, Any]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            with tmp_path.open("w", encoding="utf-8") as handle:
                json.dump(payload, handle, indent=2)
                handle.write("\n")
            os.replace(tmp_path, self.path)
        except OSError as e:
            raise PersistenceWriteError(f"Could not write config file {self.path}: {e}") from e


def _normalize_ids(raw: object, key: str) -> tuple[str, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, (list, tuple)):
        raise ConfigLoadError(f"'{key}' must be a list of ids")

    ids: list[str] = []
    for item in raw:
        if not isinstance(item, (str, int)) or isinstance(item, bool):
            raise ConfigLoadError(f"'{key}' contains an invalid id: {item!r}")
        text = str(item).strip()
        if text and text not in ids:
            ids.append(text)
    return tuple(ids)


@dataclass(frozen=True)
class Config:
    token: str
    allowed_channels: frozenset[str] = field(default_factory=frozenset)
    command_prefix: str = DEFAULT_PREFIX
    admin_role_ids: frozenset[str] = field(default_factory=frozenset)
    allowed_role_ids: tuple[str, ...] = ()
    # Token as written in the file; None when it was never loaded from one
    file_token: str | None = field(default=None, repr=False)

    @classmethod
    def from_payload(cls, payload: dict[str, Any], token: str | None = None) -> "Config":
        file_token = payload.get("token")
        if file_token is not None and not isinstance(file_token, str):
            raise ConfigLoadError("'token' must be a string")
        token = token or file_token
        if not token or not isinstance(token, str):
            raise ConfigLoadError("Config is missing a bot token")

        prefix = payload.get("prefix")
        if prefix is not None and not isinstance(prefix, str):
            raise ConfigLoadError("'prefix' must be a string")

        roles = payload.get("roles") or {}
        if not isinstance(roles, dict):
            raise ConfigLoadError("'roles' must be an object")

        admins = _normalize_ids(roles.get("admins"), "roles.admins")
        allowed = _normalize_ids(roles.get("allowed"), "roles.allowed")
        overlap = [role_id for role_id in allowed if role_id in admins]
        if overlap:
            logger.warning(
                f"Dropping admin roles from the self-assignable list: {', '.join(overlap)}"
            )
            allowed = tuple(role_id for role_id in allowed if role_id not in admins)

        return cls(
            token=token,
            allowed_channels=frozenset(_normalize_ids(payload.get("botchannels"), "botchannels")),
            command_prefix=prefix or DEFAULT_PREFIX,
            admin_role_ids=frozenset(admins),
            allowed_role_ids=allowed,
            file_token=file_token or "",
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "token": self.token if self.file_token is None else self.file_token,
            "botchannels": sorted(self.allowed_channels),
            "prefix": self.command_prefix,
            "roles": {
                "admins": sorted(self.admin_role_ids),
                "allowed": list(self.allowed_role_ids),
            },
        }


class ConfigStore:
    """Holds the running configuration and the only path that mutates it.

    Readers get a frozen ``Config`` snapshot. ``register_roles`` runs
    validate, append and persist under one lock, since discord.py may run
    several message handlers concurrently.
    """

    def __init__(self, config: Config, storage: ConfigStorage | None = None):
        self._config = config
        self._storage = storage
        self._lock = asyncio.Lock()

    @classmethod
    def load(cls, storage: ConfigStorage, token: str | None = None) -> "ConfigStore":
        config = Config.from_payload(storage.read(), token=token)
        logger.info(
            f"Loaded config: prefix={config.command_prefix!r}, "
            f"channels={len(config.allowed_channels)}, "
            f"admin roles={len(config.admin_role_ids)}, "
            f"allowed roles={len(config.allowed_role_ids)}"
        )
        return cls(config, storage)

    @property
    def config(self) -> Config:
        return self._config

    @property
    def prefix(self) -> str:
        return self._config.command_prefix

    @property
    def admin_role_ids(self) -> frozenset[str]:
        return self._config.admin_role_ids

    @property
    def allowed_role_ids(self) -> frozenset[str]:
        return frozenset(self._config.allowed_role_ids)

    def is_channel_allowed(self, channel_id: int | str) -> bool:
        return str(channel_id) in self._config.allowed_channels

    def save(self) -> bool:
        """Persist the current config; returns False if the write failed"""
        if self._storage is None:
            return True
        try:
            self._storage.write(self._config.to_payload())
        except PersistenceWriteError as e:
            logger.error(f"{e}; keeping in-memory config until the next successful save")
            return False
        return True

    async def register_roles(self, role_ids: Sequence[str]) -> list[str]:
        """Add role ids to the self-assignable list and persist.

        Raises ``DangerousOperationError`` without changing anything if any
        id is an admin role. Returns the ids that were newly added.
        """
        async with self._lock:
            config = self._config
            for role_id in role_ids:
                if role_id in config.admin_role_ids:
                    raise DangerousOperationError(
                        f"Role id {role_id} is an admin role and cannot be self-assignable"
                    )

            added = _new_ids(role_ids, config.allowed_role_ids)
            if not added:
                return []

            self._config = replace(config, allowed_role_ids=config.allowed_role_ids + tuple(added))
            self.save()
            logger.info(f"Registered self-assignable roles: {', '.join(added)}")
            return added


def _new_ids(candidates: Iterable[str], existing: Sequence[str]) -> list[str]:
    added: list[str] = []
    for role_id in candidates:
        if role_id not in existing and role_id not in added:
            added.append(role_id)
    return added
