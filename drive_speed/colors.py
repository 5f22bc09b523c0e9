"""ANSI color functions for consistent console output."""


def red(text: str) -> str:
    """Format text in red ANSI color."""
    return f"\033[0;31m{text}\033[0m"


def green(text: str) -> str:
    """Format text in green ANSI color."""
    return f"\033[0;32m{text}\033[0m"


def yellow(text: str) -> str:
    """Format text in yellow ANSI color."""
    return f"\033[0;33m{text}\033[0m"


def blue(text: str) -> str:
    """Format text in blue (cyan) ANSI color."""
    return f"\033[0;36m{text}\033[0m"


def purple(text: str) -> str:
    """Format text in purple (magenta) ANSI color."""
    return f"\033[0;35m{text}\033[0m"
