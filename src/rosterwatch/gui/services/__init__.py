"""Service layer exports.

Responsibilities:
 - EventBus publish/subscribe core
 - Column catalog, sort engine and sort-header state
 - View preference persistence
 - Roster polling and fire-and-forget player actions
"""

from .event_bus import EventBus, GUIEvent  # noqa: F401
from .sort_engine import SortDirection, sort_records  # noqa: F401
from .sort_state import DEFAULT_SORT_STATE, SortState  # noqa: F401

__all__ = [
    "EventBus",
    "GUIEvent",
    "SortDirection",
    "sort_records",
    "SortState",
    "DEFAULT_SORT_STATE",
]
