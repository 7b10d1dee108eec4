"""Static command name to handler table"""

from collections.abc import Mapping
from types import MappingProxyType

from .context import Handler


class CommandRegistry:
    """Immutable, case-insensitive lookup of command handlers"""

    def __init__(self, commands: Mapping[str, Handler]):
        self._commands = MappingProxyType({name.lower(): handler for name, handler in commands.items()})

    def get(self, name: str) -> Handler | None:
        return self._commands.get(name.lower())

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._commands

    def __len__(self) -> int:
        return len(self._commands)

    @property
    def names(self) -> list[str]:
        return sorted(self._commands)
