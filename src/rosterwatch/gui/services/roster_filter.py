"""Matches-only roster filter."""

from __future__ import annotations

from typing import Iterable, List

from rosterwatch.gui.models import PlayerRecord

__all__ = ["filter_records"]


def filter_records(records: Iterable[PlayerRecord], matches_only: bool) -> List[PlayerRecord]:
    """Keep players with at least one flagged match when ``matches_only`` is set.

    Always returns a fresh list so callers can sort it in place.
    """
    if not matches_only:
        return list(records)
    return [r for r in records if getattr(r, "matches", None)]
