"""Roster Table View.

Live player table with:
 - matches-only filter toggle, column menu, settings and (inert) launch buttons
 - faction counts, server name and current map
 - header click sorting (one active column, see ``SortState``)
 - row context menu: edit notes, whitelist toggle, mark as, copy steam id

All derivation lives in ``RosterViewModel``; the widget forwards user events
to it and re-renders. Background work (polling, player actions) reports back
through Qt signals so every update lands on the GUI thread.
"""

from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from PyQt6.QtCore import QPoint, Qt, pyqtSignal
from PyQt6.QtGui import QAction, QGuiApplication
from PyQt6.QtWidgets import (
    QAbstractItemView,
    QHBoxLayout,
    QLabel,
    QMenu,
    QTableWidget,
    QTableWidgetItem,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from rosterwatch.gui.models import PlayerRecord, RosterSnapshot
from rosterwatch.gui.services.column_catalog import COLUMN_CATALOG
from rosterwatch.gui.services.event_bus import EventBus, GUIEvent, Subscription
from rosterwatch.gui.services.player_actions import PlayerActionService
from rosterwatch.gui.services.roster_poller import RosterPoller
from rosterwatch.gui.services.sort_engine import SortDirection
from rosterwatch.gui.services.user_settings import UserSettings
from rosterwatch.gui.viewmodels.roster_viewmodel import RosterViewModel, cell_text
from rosterwatch.gui.views.note_editor_dialog import NoteEditorDialog
from rosterwatch.gui.views.settings_editor_dialog import SettingsEditorDialog

logger = logging.getLogger(__name__)

_STEAM_ID_ROLE = Qt.ItemDataRole.UserRole


class RosterTableView(QWidget):
    # Re-emitted on the GUI thread from player action completions.
    actionCompleted = pyqtSignal(object)

    def __init__(
        self,
        viewmodel: RosterViewModel,
        *,
        poller: RosterPoller | None = None,
        actions: PlayerActionService | None = None,
        event_bus: EventBus | None = None,
        user_settings: UserSettings | None = None,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self.vm = viewmodel
        self._poller = poller
        self._actions = actions
        self._bus = event_bus
        self._user_settings = user_settings or UserSettings()
        self._rows: Tuple[PlayerRecord, ...] = ()
        self._column_actions: Dict[str, QAction] = {}
        self._subscriptions: list[Subscription] = []
        self.note_dialog: NoteEditorDialog | None = None
        self._build_ui()
        if poller is not None:
            poller.snapshotChanged.connect(self.on_snapshot)  # type: ignore
            self.vm.set_snapshot(poller.snapshot)
        if event_bus is not None:
            self._subscriptions.append(
                event_bus.subscribe(
                    GUIEvent.PLAYER_ACTION_COMPLETED,
                    lambda evt: self.actionCompleted.emit(evt.payload),
                )
            )
            # Store writes happen on the GUI thread, so this is delivered in place.
            self._subscriptions.append(
                event_bus.subscribe(GUIEvent.VIEW_PREFERENCES_CHANGED, self._on_preferences_changed)
            )
        self.actionCompleted.connect(self._on_action_completed)  # type: ignore
        self.refresh()

    # UI -----------------------------------------------------------------
    def _build_ui(self) -> None:
        root = QVBoxLayout(self)
        toolbar = QHBoxLayout()

        self.filter_button = QToolButton()
        self.filter_button.setText("Matches only")
        self.filter_button.setCheckable(True)
        self.filter_button.setChecked(self.vm.matches_only)
        self.filter_button.setToolTip("Show only players with some sort of negative status")
        self.filter_button.toggled.connect(self._on_filter_toggled)  # type: ignore
        toolbar.addWidget(self.filter_button)

        self.columns_button = QToolButton()
        self.columns_button.setText("Columns")
        self.columns_button.setToolTip("Configure which columns are shown")
        self.columns_button.setPopupMode(QToolButton.ToolButtonPopupMode.InstantPopup)
        menu = QMenu(self.columns_button)
        enabled = {c.key for c in self.vm.visible_columns()}
        for spec in COLUMN_CATALOG:
            act = QAction(spec.label, menu)
            act.setCheckable(True)
            act.setChecked(spec.key in enabled)
            act.toggled.connect(lambda checked, k=spec.key: self._on_column_toggled(k, checked))  # type: ignore
            menu.addAction(act)
            self._column_actions[spec.key] = act
        self.columns_button.setMenu(menu)
        toolbar.addWidget(self.columns_button)

        self.settings_button = QToolButton()
        self.settings_button.setText("Settings")
        self.settings_button.setToolTip("Open the settings dialogue")
        self.settings_button.clicked.connect(self.open_settings)  # type: ignore
        toolbar.addWidget(self.settings_button)

        # Launch control is display-only
        self.launch_button = QToolButton()
        self.launch_button.setEnabled(False)
        toolbar.addWidget(self.launch_button)

        self.counts_label = QLabel("0 : 0")
        self.counts_label.setObjectName("teamCountsLabel")
        toolbar.addWidget(self.counts_label)
        self.server_label = QLabel("")
        self.server_label.setObjectName("serverNameLabel")
        toolbar.addWidget(self.server_label)
        self.map_label = QLabel("")
        self.map_label.setObjectName("currentMapLabel")
        toolbar.addWidget(self.map_label)
        toolbar.addStretch(1)
        root.addLayout(toolbar)

        self.table = QTableWidget(0, 0)
        self.table.setEditTriggers(QAbstractItemView.EditTrigger.NoEditTriggers)
        self.table.setSelectionBehavior(QAbstractItemView.SelectionBehavior.SelectRows)
        self.table.verticalHeader().setVisible(False)
        header = self.table.horizontalHeader()
        header.setSortIndicatorShown(True)
        header.setSectionsClickable(True)
        header.sectionClicked.connect(self._on_header_clicked)  # type: ignore
        self.table.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.table.customContextMenuRequested.connect(self._on_context_menu)  # type: ignore
        root.addWidget(self.table)

    # Rendering ----------------------------------------------------------
    def refresh(self) -> None:
        columns = self.vm.visible_columns()
        rows = self.vm.visible_rows()
        self._rows = rows
        self.table.setColumnCount(len(columns))
        for idx, spec in enumerate(columns):
            item = QTableWidgetItem(spec.label)
            item.setToolTip(spec.tooltip)
            self.table.setHorizontalHeaderItem(idx, item)
        self.table.setRowCount(len(rows))
        for r, player in enumerate(rows):
            for c, spec in enumerate(columns):
                item = QTableWidgetItem(cell_text(player, spec.key))
                if spec.numeric:
                    item.setTextAlignment(
                        Qt.AlignmentFlag.AlignRight | Qt.AlignmentFlag.AlignVCenter
                    )
                item.setData(_STEAM_ID_ROLE, player.steam_id)
                if player.matches:
                    item.setToolTip(", ".join(m.origin for m in player.matches if m.origin))
                self.table.setItem(r, c, item)
        self._apply_sort_indicator(columns)
        self._refresh_summary()

    def _apply_sort_indicator(self, columns) -> None:
        header = self.table.horizontalHeader()
        state = self.vm.sort_state
        keys = [c.key for c in columns]
        if state.column not in keys:
            header.setSortIndicator(-1, Qt.SortOrder.AscendingOrder)
            return
        order = (
            Qt.SortOrder.AscendingOrder
            if state.direction is SortDirection.ASC
            else Qt.SortOrder.DescendingOrder
        )
        header.setSortIndicator(keys.index(state.column), order)

    def _refresh_summary(self) -> None:
        summary = self.vm.summary()
        self.counts_label.setText(summary.as_text())
        self.server_label.setText(summary.server_name)
        self.map_label.setText(summary.current_map)
        if summary.game_running:
            self.launch_button.setText("Game running")
            self.launch_button.setToolTip("Game is currently running")
        else:
            self.launch_button.setText("Launch TF2")
            self.launch_button.setToolTip("Launch TF2!")

    def row_player(self, row: int) -> Optional[PlayerRecord]:
        if 0 <= row < len(self._rows):
            return self._rows[row]
        return None

    # Event handlers -----------------------------------------------------
    def on_snapshot(self, snapshot: RosterSnapshot) -> None:
        self.vm.set_snapshot(snapshot)
        self.refresh()

    def _on_header_clicked(self, section: int) -> None:
        columns = self.vm.visible_columns()
        if 0 <= section < len(columns):
            self.vm.request_sort(columns[section].key)
            self.refresh()

    def _on_filter_toggled(self, checked: bool) -> None:
        if checked != self.vm.matches_only:
            self.vm.toggle_matches_only()
        self.refresh()

    def _on_column_toggled(self, key: str, checked: bool) -> None:
        self.vm.set_column_enabled(key, checked)
        self.sync_controls()
        self.refresh()

    def _on_preferences_changed(self, _evt) -> None:
        self.sync_controls()
        self.refresh()

    def sync_controls(self) -> None:
        """Mirror the effective preferences into the toolbar without re-firing toggles."""
        # An emptied selection falls back to every column.
        shown = {c.key for c in self.vm.visible_columns()}
        for k, act in self._column_actions.items():
            if act.isChecked() != (k in shown):
                act.blockSignals(True)
                act.setChecked(k in shown)
                act.blockSignals(False)
        if self.filter_button.isChecked() != self.vm.matches_only:
            self.filter_button.blockSignals(True)
            self.filter_button.setChecked(self.vm.matches_only)
            self.filter_button.blockSignals(False)

    def _on_context_menu(self, pos: QPoint) -> None:  # pragma: no cover - GUI path
        player = self.row_player(self.table.rowAt(pos.y()))
        if player is None or player.steam_id is None:
            return
        menu = self.build_context_menu(player)
        menu.exec(self.table.viewport().mapToGlobal(pos))

    def build_context_menu(self, player: PlayerRecord) -> QMenu:
        menu = QMenu(self)
        notes = menu.addAction("Edit Notes")
        notes.triggered.connect(lambda: self.open_notes(player))  # type: ignore
        if player.whitelisted:
            wl = menu.addAction("Remove from whitelist")
            wl.triggered.connect(lambda: self._whitelist(player, False))  # type: ignore
        else:
            wl = menu.addAction("Whitelist Player")
            wl.triggered.connect(lambda: self._whitelist(player, True))  # type: ignore
        mark_menu = menu.addMenu("Mark As...")
        for attr in self.vm.known_attributes(self._user_settings.unique_tags):
            act = mark_menu.addAction(attr)
            act.triggered.connect(lambda _c=False, a=attr: self._mark(player, a))  # type: ignore
        copy = menu.addAction("Copy Steam ID")
        copy.triggered.connect(  # type: ignore
            lambda: QGuiApplication.clipboard().setText(str(player.steam_id))
        )
        return menu

    def _mark(self, player: PlayerRecord, attr: str) -> None:
        if self._actions is None or player.steam_id is None:
            return
        self._actions.mark(player.steam_id, [attr])

    def _whitelist(self, player: PlayerRecord, enable: bool) -> None:
        if self._actions is None or player.steam_id is None:
            return
        if enable:
            self._actions.whitelist(player.steam_id)
        else:
            self._actions.unwhitelist(player.steam_id)

    # Notes --------------------------------------------------------------
    def open_notes(self, player: PlayerRecord) -> Optional[NoteEditorDialog]:
        draft = self.vm.open_note(player)
        if draft is None:
            return None
        dialog = NoteEditorDialog(draft.steam_id, draft.text, self)
        dialog.buttons.accepted.connect(self._on_note_save)  # type: ignore
        dialog.rejected.connect(self._on_note_closed)  # type: ignore
        self.note_dialog = dialog
        dialog.open()
        return dialog

    def _on_note_save(self) -> None:
        if self.note_dialog is None or self._actions is None:
            return
        self.vm.update_note(self.note_dialog.text())
        self.vm.save_note(self._actions.save_note)

    def _on_note_closed(self) -> None:
        self.vm.close_note()
        self.note_dialog = None

    def _on_action_completed(self, payload: dict) -> None:
        if payload.get("action") != "save_note" or self.note_dialog is None:
            return
        if payload.get("steam_id") != self.note_dialog.steam_id:
            return
        if self.vm.note_save_completed(payload.get("steam_id"), bool(payload.get("ok"))):
            dialog, self.note_dialog = self.note_dialog, None
            dialog.accept()
        else:
            self.note_dialog.show_error(str(payload.get("error", "")))

    # Settings -----------------------------------------------------------
    def open_settings(self) -> None:  # pragma: no cover - modal GUI path
        self.vm.settings_open = True
        dialog = SettingsEditorDialog(self._user_settings, self)
        try:
            if dialog.exec() == SettingsEditorDialog.DialogCode.Accepted:
                self._user_settings = dialog.current_settings()
                if self._actions is not None:
                    self._actions.save_settings(self._user_settings.to_dict())
        finally:
            self.vm.settings_open = False

    # Teardown -----------------------------------------------------------
    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.teardown()
        super().closeEvent(event)

    def teardown(self) -> None:
        if self._poller is not None:
            self._poller.shutdown()
        if self._bus is not None:
            for sub in self._subscriptions:
                self._bus.unsubscribe(sub)
        self._subscriptions.clear()


__all__ = ["RosterTableView"]
