"""ViewModel for the live roster table.

Composes the roster snapshot, the sort-header state and the persisted view
preferences into the derived ``visible_rows`` sequence:

    visible_rows = sort(filter(snapshot, matches_only), column, direction)

The derivation is pure and memoized on the snapshot object (compared by
identity; snapshots are immutable and replaced on every refresh), the sort
state and the matches-only flag. No PyQt imports here; the widget layer
forwards events and renders whatever this model returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from rosterwatch.gui.models import PlayerRecord, RosterSnapshot, Team, format_seconds
from rosterwatch.gui.services.column_catalog import ColumnSpec, visible_columns
from rosterwatch.gui.services.event_bus import EventBus, GUIEvent
from rosterwatch.gui.services.roster_filter import filter_records
from rosterwatch.gui.services.sort_engine import sort_records
from rosterwatch.gui.services.sort_state import DEFAULT_SORT_STATE, SortState
from rosterwatch.gui.services.view_preferences import ViewPreferences, ViewPreferenceStore

__all__ = ["DEFAULT_MARK_ATTRIBUTES", "NoteDraft", "RosterSummary", "RosterViewModel", "cell_text"]

DEFAULT_MARK_ATTRIBUTES = ("cheater",)


@dataclass(frozen=True)
class NoteDraft:
    steam_id: int
    text: str


@dataclass(frozen=True)
class RosterSummary:
    blu_count: int = 0
    red_count: int = 0
    server_name: str = ""
    current_map: str = ""
    game_running: bool = False

    def as_text(self) -> str:
        return f"{self.blu_count} : {self.red_count}"


def cell_text(player: PlayerRecord, column: str) -> str:
    """Display text for one cell."""
    value = getattr(player, column, None)
    if value is None:
        return ""
    if column in ("connected", "map_time"):
        return format_seconds(value)
    if column == "kpm":
        return f"{value:.2f}"
    if column == "alive":
        return "yes" if value else "no"
    return str(value)


class RosterViewModel:
    def __init__(
        self,
        store: ViewPreferenceStore,
        *,
        event_bus: EventBus | None = None,
        sort_state: SortState = DEFAULT_SORT_STATE,
    ):
        self._store = store
        self._bus = event_bus
        self._snapshot = RosterSnapshot()
        self._sort = sort_state
        self._cache_snapshot: Optional[RosterSnapshot] = None
        self._cache_key: Optional[Tuple[SortState, bool]] = None
        self._cache_rows: Tuple[PlayerRecord, ...] = ()
        self.derivations = 0
        # Transient UI state, never persisted
        self.note_draft: Optional[NoteDraft] = None
        self.settings_open = False

    # Inputs ------------------------------------------------------------
    @property
    def snapshot(self) -> RosterSnapshot:
        return self._snapshot

    def set_snapshot(self, snapshot: RosterSnapshot) -> None:
        self._snapshot = snapshot

    @property
    def sort_state(self) -> SortState:
        return self._sort

    def request_sort(self, column: str) -> SortState:
        """Header activation: same column flips, other column starts ascending."""
        self._sort = self._sort.activate(column)
        if self._bus is not None:
            self._bus.publish(GUIEvent.SORT_CHANGED, self._sort)
        return self._sort

    @property
    def preferences(self) -> ViewPreferences:
        return self._store.preferences

    @property
    def matches_only(self) -> bool:
        return self._store.preferences.matches_only

    def toggle_matches_only(self) -> bool:
        return self._store.toggle_matches_only().matches_only

    def set_enabled_columns(self, columns: Sequence[str]) -> List[ColumnSpec]:
        self._store.set_enabled_columns(columns)
        return self.visible_columns()

    def set_column_enabled(self, key: str, enabled: bool) -> List[ColumnSpec]:
        """Toggle one column, starting from the effective (visible) set."""
        current = [c.key for c in self.visible_columns()]
        if enabled and key not in current:
            current.append(key)
        elif not enabled:
            current = [k for k in current if k != key]
        return self.set_enabled_columns(current)

    # Derived -----------------------------------------------------------
    def visible_columns(self) -> List[ColumnSpec]:
        return visible_columns(self._store.preferences.enabled_columns)

    def visible_rows(self) -> Tuple[PlayerRecord, ...]:
        key = (self._sort, self.matches_only)
        if self._cache_snapshot is not self._snapshot or key != self._cache_key:
            rows = filter_records(self._snapshot.players, key[1])
            self._cache_rows = tuple(sort_records(rows, self._sort.column, self._sort.direction))
            self._cache_snapshot = self._snapshot
            self._cache_key = key
            self.derivations += 1
        return self._cache_rows

    def summary(self) -> RosterSummary:
        snap = self._snapshot
        return RosterSummary(
            blu_count=snap.team_count(Team.BLU),
            red_count=snap.team_count(Team.RED),
            server_name=snap.server.server_name,
            current_map=snap.server.current_map,
            game_running=snap.game_running,
        )

    def known_attributes(self, tags: Iterable[str] = ()) -> List[str]:
        """Mark attributes offered in the context menu, case-insensitively sorted.

        ``tags`` are the detector's known tags (``UserSettings.unique_tags``);
        attributes already seen on a match in the snapshot are added.
        """
        seen = {a.lower(): a for a in DEFAULT_MARK_ATTRIBUTES}
        for tag in tags:
            if tag:
                seen.setdefault(tag.lower(), tag)
        for p in self._snapshot.players:
            for m in p.matches:
                for attr in m.attributes:
                    if attr:
                        seen.setdefault(attr.lower(), attr)
        return sorted(seen.values(), key=str.lower)

    def player_by_steam_id(self, steam_id: int) -> Optional[PlayerRecord]:
        for p in self._snapshot.players:
            if p.steam_id == steam_id:
                return p
        return None

    # Notes -------------------------------------------------------------
    def open_note(self, player: PlayerRecord) -> Optional[NoteDraft]:
        if player.steam_id is None:
            return None
        self.note_draft = NoteDraft(steam_id=player.steam_id, text=player.notes)
        return self.note_draft

    def update_note(self, text: str) -> None:
        if self.note_draft is not None:
            self.note_draft = NoteDraft(self.note_draft.steam_id, text)

    def close_note(self) -> None:
        self.note_draft = None

    def save_note(self, save: Callable[[int, str], Any]) -> Any:
        """Issue the save command for the open draft and return its future.

        The draft is left untouched here; the owner reports the outcome via
        ``note_save_completed`` from the GUI thread.
        """
        draft = self.note_draft
        if draft is None:
            return None
        return save(draft.steam_id, draft.text)

    def note_save_completed(self, steam_id: Optional[int], ok: bool) -> bool:
        """Close the draft after a successful save; returns True when closed.

        A failed save, or a result for another player, keeps the draft open.
        """
        if not ok or self.note_draft is None or self.note_draft.steam_id != steam_id:
            return False
        self.note_draft = None
        return True
