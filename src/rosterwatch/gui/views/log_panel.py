"""Recent log panel.

Shows the ``LoggingService`` ring buffer so the operator can see why the
roster went stale (fetch failures, persistence fallbacks, failed player
actions) without a terminal. Records may be logged from worker threads; the
panel re-renders through a Qt signal so updates land on the GUI thread.
"""

from __future__ import annotations

import time
from typing import Optional

from PyQt6.QtCore import pyqtSignal
from PyQt6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QHBoxLayout,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from rosterwatch.gui.services.event_bus import EventBus, GUIEvent, Subscription
from rosterwatch.gui.services.logging_service import LogEntry, LoggingService

_LEVELS = ("All", "INFO", "WARNING", "ERROR")


def format_entry(entry: LogEntry) -> str:
    stamp = time.strftime("%H:%M:%S", time.localtime(entry.created))
    return f"{stamp} {entry.level:<7} {entry.name}: {entry.message}"


class LogPanel(QWidget):
    recordAdded = pyqtSignal()

    def __init__(
        self,
        service: LoggingService,
        *,
        event_bus: EventBus | None = None,
        limit: int = 200,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self._svc = service
        self._bus = event_bus
        self._limit = limit
        self._subscription: Subscription | None = None

        root = QVBoxLayout(self)
        bar = QHBoxLayout()
        self.level_combo = QComboBox()
        self.level_combo.addItems(_LEVELS)
        self.level_combo.currentTextChanged.connect(lambda _t: self.render())  # type: ignore
        bar.addWidget(self.level_combo)
        self.clear_button = QPushButton("Clear")
        self.clear_button.clicked.connect(self.clear)  # type: ignore
        bar.addWidget(self.clear_button)
        self.export_button = QPushButton("Export…")
        self.export_button.clicked.connect(self._on_export_clicked)  # type: ignore
        bar.addWidget(self.export_button)
        bar.addStretch(1)
        root.addLayout(bar)
        self.text = QPlainTextEdit()
        self.text.setReadOnly(True)
        self.text.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        root.addWidget(self.text)

        self.recordAdded.connect(self.render)  # type: ignore
        if event_bus is not None:
            self._subscription = event_bus.subscribe(
                GUIEvent.LOG_RECORD_ADDED, lambda _evt: self.recordAdded.emit()
            )
        self.render()

    def level(self) -> Optional[str]:
        text = self.level_combo.currentText()
        return None if text == "All" else text

    def entries(self) -> list[LogEntry]:
        return self._svc.filter(level=self.level())[-self._limit :]

    def render(self) -> None:
        self.text.setPlainText("\n".join(format_entry(e) for e in self.entries()))

    def clear(self) -> None:
        self._svc.clear()
        self.render()

    def export(self, path: str) -> int:
        return self._svc.export_jsonl(path, level=self.level())

    def _on_export_clicked(self) -> None:  # pragma: no cover - modal GUI path
        path, _ = QFileDialog.getSaveFileName(self, "Export log", "rosterwatch_logs.jsonl")
        if path:
            self.export(path)

    def teardown(self) -> None:
        if self._subscription is not None and self._bus is not None:
            self._bus.unsubscribe(self._subscription)
            self._subscription = None


__all__ = ["LogPanel", "format_entry"]
