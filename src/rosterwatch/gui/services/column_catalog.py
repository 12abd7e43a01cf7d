"""Roster column catalog and visibility resolution.

The catalog order is the canonical header order. A user's enabled-column
selection only toggles presence; it never reorders headers. An empty (or
missing) selection means "no restriction" and shows the whole catalog.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

__all__ = [
    "ColumnSpec",
    "COLUMN_CATALOG",
    "COLUMN_KEYS",
    "DEFAULT_ENABLED_COLUMNS",
    "column_spec",
    "normalize_columns",
    "visible_columns",
]


@dataclass(frozen=True)
class ColumnSpec:
    key: str
    label: str
    numeric: bool
    tooltip: str


COLUMN_CATALOG: Tuple[ColumnSpec, ...] = (
    ColumnSpec("user_id", "uid", True, "Players in-game user id"),
    ColumnSpec("name", "name", False, "Players current name, as reported by the game server"),
    ColumnSpec("score", "score", True, "Players current score"),
    ColumnSpec("kills", "kills", True, "Players current kills"),
    ColumnSpec("deaths", "deaths", True, "Players current deaths"),
    ColumnSpec(
        "kpm",
        "kpm",
        True,
        "Players kills per minute. Calculated from when you first see the player "
        "in the server, not how long they have actually been in the server",
    ),
    ColumnSpec("connected", "time", True, "How long the player has been connected to the server"),
    ColumnSpec("map_time", "map time", True, "How long it has been since you first joined the map"),
    ColumnSpec("ping", "ping", True, "Players current latency"),
    ColumnSpec("health", "health", True, "Shows player current health"),
    ColumnSpec("alive", "alive", False, "Whether the player is currently alive"),
)

COLUMN_KEYS: Tuple[str, ...] = tuple(c.key for c in COLUMN_CATALOG)

# map_time is opt-in
DEFAULT_ENABLED_COLUMNS: Tuple[str, ...] = tuple(k for k in COLUMN_KEYS if k != "map_time")

_BY_KEY = {c.key: c for c in COLUMN_CATALOG}


def column_spec(key: str) -> ColumnSpec:
    try:
        return _BY_KEY[key]
    except KeyError:
        raise ValueError(f"unknown column: {key!r}") from None


def normalize_columns(keys: Iterable[object]) -> Tuple[str, ...]:
    """Reduce arbitrary input to known column keys in catalog order.

    Unknown entries and duplicates are dropped.
    """
    wanted = {k for k in keys if isinstance(k, str)}
    return tuple(k for k in COLUMN_KEYS if k in wanted)


def visible_columns(enabled: Optional[Iterable[str]]) -> List[ColumnSpec]:
    """Catalog columns present in ``enabled``, in catalog order.

    ``None`` or a selection with no known keys yields the full catalog.
    """
    keys = normalize_columns(enabled) if enabled is not None else ()
    if not keys:
        return list(COLUMN_CATALOG)
    chosen = set(keys)
    return [c for c in COLUMN_CATALOG if c.key in chosen]
