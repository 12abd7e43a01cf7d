"""Main window hosting the live roster table and the recent log dock."""

from __future__ import annotations

from typing import Optional

from PyQt6.QtCore import Qt
from PyQt6.QtWidgets import QDockWidget, QMainWindow, QWidget

from rosterwatch.gui.services.column_catalog import column_spec
from rosterwatch.gui.services.event_bus import Event, EventBus, GUIEvent, Subscription
from rosterwatch.gui.services.logging_service import LoggingService
from rosterwatch.gui.services.sort_engine import SortDirection
from rosterwatch.gui.views.log_panel import LogPanel
from rosterwatch.gui.views.roster_table_view import RosterTableView


class MainWindow(QMainWindow):
    def __init__(
        self,
        table: RosterTableView,
        *,
        event_bus: EventBus | None = None,
        logging_service: LoggingService | None = None,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self.setWindowTitle("Roster Watch")
        self.table_view = table
        self.setCentralWidget(table)
        self._bus = event_bus
        self._subs: list[Subscription] = []
        self.log_panel: LogPanel | None = None
        if logging_service is not None:
            self.log_panel = LogPanel(logging_service, event_bus=event_bus)
            dock = QDockWidget("Log", self)
            dock.setObjectName("logDock")
            dock.setWidget(self.log_panel)
            self.addDockWidget(Qt.DockWidgetArea.BottomDockWidgetArea, dock)
        if event_bus is not None:
            self._subs.append(event_bus.subscribe(GUIEvent.ROSTER_FETCH_FAILED, self._on_fetch_failed))
            self._subs.append(event_bus.subscribe(GUIEvent.ROSTER_UPDATED, self._on_updated))
            self._subs.append(event_bus.subscribe(GUIEvent.SORT_CHANGED, self._on_sort_changed))
        self.resize(1100, 640)

    # Roster events come from RosterPoller.deliver, sort events from header clicks;
    # both on the GUI thread.
    def _on_fetch_failed(self, evt: Event) -> None:
        self.statusBar().showMessage(f"Roster refresh failed: {evt.payload}")

    def _on_updated(self, evt: Event) -> None:
        self.statusBar().showMessage(f"{len(evt.payload.players)} players")

    def _on_sort_changed(self, evt: Event) -> None:
        state = evt.payload
        direction = "ascending" if state.direction is SortDirection.ASC else "descending"
        self.statusBar().showMessage(f"Sorted by {column_spec(state.column).label} ({direction})")

    def teardown(self) -> None:
        self.table_view.teardown()
        if self.log_panel is not None:
            self.log_panel.teardown()
        if self._bus is not None:
            for sub in self._subs:
                self._bus.unsubscribe(sub)
            self._subs.clear()

    def closeEvent(self, event) -> None:  # type: ignore[override]
        self.teardown()
        super().closeEvent(event)


__all__ = ["MainWindow"]
