"""Global configuration and constants for the roster dashboard."""

from __future__ import annotations

import os
from typing import Final


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


API_BASE_URL: Final = os.environ.get("ROSTERWATCH_API_URL", "http://localhost:8900/")
DEFAULT_USER_AGENT: Final = "RosterWatch/0.1"
DEFAULT_TIMEOUT: Final = 5  # seconds, per request; no retry
POLL_INTERVAL_MS: Final = _env_int("ROSTERWATCH_POLL_INTERVAL_MS", 1000)
DATA_DIR: Final = os.environ.get("ROSTERWATCH_DATA_DIR", "data")
