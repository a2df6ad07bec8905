"""Global configuration for imgbot."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    """Read a positive integer, falling back to default when unset or invalid."""
    try:
        value = int(os.getenv(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


def _float_env(name: str, default: float) -> float:
    try:
        value = float(os.getenv(name, ""))
    except ValueError:
        return default
    return value if value > 0 else default


# Discord
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")

# Messages must start with this word to be handled
TRIGGER = os.getenv("IMGBOT_TRIGGER", "imgbot")

# Image fetch limits
MAX_CONTENT_LENGTH = _int_env("MAX_CONTENT_LENGTH", 10_000_000)
FETCH_TIMEOUT = _float_env("FETCH_TIMEOUT", 30.0)

# Logging
LOG_LEVEL = os.getenv("IMGBOT_LOG_LEVEL", "INFO").upper()
LOG_DIR = Path(os.environ["IMGBOT_LOG_DIR"]) if os.getenv("IMGBOT_LOG_DIR") else None
