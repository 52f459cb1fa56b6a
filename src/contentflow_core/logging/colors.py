"""ANSI color codes for terminal output.

All colors use the 256-color palette.

Usage:
    from contentflow_core.logging.colors import GREEN, RESET

    print(f"{GREEN}Success!{RESET}")
"""

RESET = "\033[0m"

# Status
GREEN = "\033[38;5;82m"  # Success
RED = "\033[38;5;196m"  # Failure
YELLOW = "\033[38;5;226m"  # Warnings, fallbacks
ORANGE = "\033[38;5;208m"  # Auth handshake

# Information
LIGHT_BLUE = "\033[38;5;153m"  # Context payloads
CYAN = "\033[38;5;51m"  # Info
MAGENTA = "\033[38;5;201m"  # Pipeline

__all__ = [
    "RESET",
    "GREEN",
    "RED",
    "YELLOW",
    "ORANGE",
    "LIGHT_BLUE",
    "CYAN",
    "MAGENTA",
]
