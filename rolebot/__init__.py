"""Discord bot for self-assignable cosmetic roles."""

__version__ = "1.0.0"
