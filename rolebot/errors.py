"""Exceptions raised by the bot"""


class RolebotError(Exception):
    """Base class for all bot errors"""


class ConfigLoadError(RolebotError):
    """Config file is missing or malformed; the bot must not connect"""


class PersistenceWriteError(RolebotError):
    """Config could not be written back to disk"""


class CommandError(RolebotError):
    """A failure reported back to the invoking member"""


class CommandNotFoundError(CommandError):
    def __init__(self, command: str):
        self.command = command
        super().__init__(f"Command {command} not found!")


class RoleNotFoundError(CommandError):
    pass


class PermissionDeniedError(CommandError):
    pass


class DangerousOperationError(CommandError):
    pass


class PlatformError(CommandError):
    """A Discord API call failed"""


class PlatformFetchError(PlatformError):
    pass
