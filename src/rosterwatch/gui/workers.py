"""Background worker threads used by the GUI."""

from __future__ import annotations

from typing import Any, Callable

from PyQt6.QtCore import QThread, pyqtSignal


class RosterFetchWorker(QThread):
    """Runs one roster fetch off the GUI thread.

    ``completed`` is emitted exactly once with ``(payload, error)``; ``error``
    is an empty string on success. Because the worker lives in the GUI thread,
    connected slots run back on the GUI thread (queued connection).
    """

    completed = pyqtSignal(object, str)

    def __init__(self, fetch: Callable[[], Any], generation: int = 0):
        super().__init__()
        self._fetch = fetch
        self.generation = generation

    def run(self) -> None:  # type: ignore[override]
        try:
            payload = self._fetch()
        except Exception as e:  # noqa: BLE001 - reported through the signal
            self.completed.emit(None, f"{type(e).__name__}: {e}")
            return
        self.completed.emit(payload, "")
