"""Sort-header interaction state.

One global ``SortState`` exists per table (there is no per-column memory).
Activating a header:

 - on the active column flips the direction
 - on any other column selects it, always ascending
"""

from __future__ import annotations

from dataclasses import dataclass

from .column_catalog import COLUMN_KEYS
from .sort_engine import SortDirection

__all__ = ["SortState", "DEFAULT_SORT_STATE"]


@dataclass(frozen=True)
class SortState:
    column: str
    direction: SortDirection

    def activate(self, column: str) -> "SortState":
        if column not in COLUMN_KEYS:
            raise ValueError(f"unknown sort column: {column!r}")
        if column == self.column:
            return SortState(column, self.direction.flipped())
        return SortState(column, SortDirection.ASC)

    def direction_for(self, column: str) -> SortDirection | None:
        """Direction shown on ``column``'s header, ``None`` when it is not active."""
        return self.direction if column == self.column else None


DEFAULT_SORT_STATE = SortState("name", SortDirection.DESC)
