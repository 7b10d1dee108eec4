"""Prefix command parsing"""


def extract_command(raw_text: str, prefix: str) -> str:
    """Return the first space-delimited token with the prefix stripped"""
    if not prefix or not raw_text.startswith(prefix):
        raise ValueError(f"Message does not start with prefix {prefix!r}")
    return raw_text.split(" ")[0][len(prefix):]


def extract_params(raw_text: str, command: str, prefix: str) -> list[str]:
    """Split whatever follows the command and one separating space.

    Tokens are split on single spaces and passed through unmodified, so
    role names keep their case.
    """
    offset = len(prefix) + len(command) + 1
    if len(raw_text) <= offset:
        return []
    return raw_text[offset:].split(" ")
