"""Logging configuration"""

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

NOISY_LOGGERS = ("discord", "discord.http", "discord.gateway", "aiohttp")


def _rich_handler() -> RichHandler:
    handler = RichHandler(
        console=Console(width=120),
        show_time=True,
        show_level=True,
        show_path=False,
        # Role names are user input, keep them out of rich markup
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        tracebacks_width=120,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%Y-%m-%d %H:%M:%S]"))
    return handler


def setup_logging(level: str | None = None) -> None:
    """Route all logging through a Rich handler.

    ``level`` falls back to ``LOG_LEVEL`` and then INFO. If the Rich handler
    cannot be built the plain stderr format is used instead.
    """
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, name, logging.INFO)

    try:
        logging.basicConfig(level=resolved, handlers=[_rich_handler()], force=True)
    except Exception as e:
        logging.basicConfig(
            level=resolved,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            force=True,
        )
        logging.getLogger(__name__).warning(f"Rich logging setup failed: {e}, using standard logging")

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
