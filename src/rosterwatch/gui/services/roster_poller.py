"""Polling roster data source.

A ``QTimer`` fires every ``interval_ms``; each tick starts at most one fetch.
When the previous fetch is still in flight the tick is skipped (slow
responses are never stacked). A successful fetch replaces the published
snapshot wholesale and notifies subscribers; a failed one (transport error,
error status, malformed body) is logged and the previous snapshot stays
published. Failures are never surfaced to the view as an error state.

Everything runs on the GUI thread except the fetch itself, which runs in a
``RosterFetchWorker`` when ``threaded`` is set. Tests pass ``threaded=False``
and drive ``tick()`` directly for deterministic, timer-free behaviour.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional, Set

from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from rosterwatch.config import settings
from rosterwatch.gui.models import RosterSnapshot
from rosterwatch.gui.workers import RosterFetchWorker

from .event_bus import EventBus, GUIEvent, Subscription

__all__ = ["PollHandle", "RosterPoller"]

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Any]


@dataclass
class PollHandle:
    """Token returned by ``RosterPoller.start``; stopping a stale handle is a no-op."""

    poller: "RosterPoller"
    generation: int

    @property
    def active(self) -> bool:
        return self.poller.is_running and self.poller.generation == self.generation

    def stop(self) -> None:
        self.poller.stop(self)


class RosterPoller(QObject):
    snapshotChanged = pyqtSignal(object)

    def __init__(
        self,
        fetch: Fetcher,
        *,
        event_bus: EventBus | None = None,
        threaded: bool = True,
        parent: QObject | None = None,
    ):
        super().__init__(parent)
        self._fetch = fetch
        self._bus = event_bus or EventBus()
        self._threaded = threaded
        self._snapshot = RosterSnapshot()
        self._in_flight = False
        self._running = False
        self._generation = 0
        self._workers: Set[RosterFetchWorker] = set()
        self._timer = QTimer(self)
        self._timer.timeout.connect(self.tick)  # type: ignore[arg-type]

    # State -------------------------------------------------------------
    @property
    def snapshot(self) -> RosterSnapshot:
        return self._snapshot

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def event_bus(self) -> EventBus:
        return self._bus

    def subscribe(self, handler: Callable[[RosterSnapshot], None]) -> Subscription:
        """Call ``handler(snapshot)`` after every successful refresh."""
        return self._bus.subscribe(GUIEvent.ROSTER_UPDATED, lambda evt: handler(evt.payload))

    def unsubscribe(self, sub: Subscription) -> None:
        self._bus.unsubscribe(sub)

    # Lifecycle ---------------------------------------------------------
    def start(self, interval_ms: int | None = None) -> PollHandle:
        interval = settings.POLL_INTERVAL_MS if interval_ms is None else int(interval_ms)
        if interval <= 0:
            raise ValueError("poll interval must be positive")
        self._generation += 1
        self._running = True
        self._timer.start(interval)
        logger.info("Roster polling started (every %d ms)", interval)
        return PollHandle(self, self._generation)

    def stop(self, handle: Optional[PollHandle] = None) -> None:
        """Stop the timer. Safe to call repeatedly or with a stale handle."""
        if handle is not None and handle.generation != self._generation:
            return
        if not self._running:
            return
        self._timer.stop()
        self._running = False
        logger.info("Roster polling stopped")

    def shutdown(self, wait_ms: int = 2000) -> None:
        """Stop polling and give running fetch threads a chance to finish."""
        self.stop()
        for worker in list(self._workers):
            if worker.isRunning() and not worker.wait(wait_ms):
                logger.warning("Roster fetch thread still running at shutdown")

    # Ticks -------------------------------------------------------------
    def tick(self) -> bool:
        """Start one fetch. Returns False when skipped because one is in flight."""
        if self._in_flight:
            logger.debug("Skipping roster tick: previous fetch still in flight")
            return False
        self._in_flight = True
        if not self._threaded:
            try:
                payload = self._fetch()
            except Exception as e:  # noqa: BLE001 - failures keep last snapshot
                self.deliver(None, f"{type(e).__name__}: {e}")
            else:
                self.deliver(payload, "")
            return True
        worker = RosterFetchWorker(self._fetch, generation=self._generation)
        worker.completed.connect(self._on_worker_completed)  # type: ignore[arg-type]
        worker.finished.connect(lambda w=worker: self._workers.discard(w))  # type: ignore[arg-type]
        self._workers.add(worker)
        worker.start()
        return True

    def _on_worker_completed(self, payload: Any, error: str) -> None:
        worker = self.sender()
        generation = getattr(worker, "generation", self._generation)
        if not self._running or generation != self._generation:
            # Result of a fetch started before stop(); the view may be gone.
            self._in_flight = False
            logger.debug("Dropping roster result from stopped poll cycle")
            return
        self.deliver(payload, error)

    def deliver(self, payload: Any, error: str = "") -> RosterSnapshot:
        """Apply one fetch outcome and return the snapshot now published."""
        self._in_flight = False
        if error:
            logger.warning("Roster fetch failed, keeping previous snapshot: %s", error)
            self._bus.publish(GUIEvent.ROSTER_FETCH_FAILED, error)
            return self._snapshot
        try:
            snapshot = RosterSnapshot.from_payload(payload)
        except (TypeError, ValueError, OverflowError) as e:
            logger.warning("Malformed roster payload, keeping previous snapshot: %s", e)
            self._bus.publish(GUIEvent.ROSTER_FETCH_FAILED, str(e))
            return self._snapshot
        self._snapshot = snapshot
        self.snapshotChanged.emit(snapshot)
        self._bus.publish(GUIEvent.ROSTER_UPDATED, snapshot)
        return snapshot
