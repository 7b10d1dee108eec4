"""Core modules for the role bot."""

from .context import CommandContext, Handler
from .dispatcher import Dispatcher, Outcome
from .logging import setup_logging
from .parser import extract_command, extract_params
from .registry import CommandRegistry

__all__ = [
    # Dispatch
    "CommandContext",
    "CommandRegistry",
    "Dispatcher",
    "Handler",
    "Outcome",
    # Parsing
    "extract_command",
    "extract_params",
    # Logging
    "setup_logging",
]
