"""EventBus core.

Synchronous publish/subscribe used to decouple the roster poller, the view
preference store and the player action commands from the widgets that react
to them. No Qt dependency so it can be exercised headless.

 - Handlers run in subscription order on the publishing thread
 - One failing handler never breaks the publish cycle (see ``errors``)
 - ``once`` subscriptions are dropped after their first successful call
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from threading import RLock
from time import perf_counter
from typing import Any, Dict, List, Protocol

__all__ = [
    "GUIEvent",
    "Event",
    "EventBus",
    "EventHandler",
    "Subscription",
]


class GUIEvent(str, Enum):
    ROSTER_UPDATED = "roster_updated"
    ROSTER_FETCH_FAILED = "roster_fetch_failed"
    VIEW_PREFERENCES_CHANGED = "view_preferences_changed"
    SORT_CHANGED = "sort_changed"
    PLAYER_ACTION_COMPLETED = "player_action_completed"
    LOG_RECORD_ADDED = "log_record_added"


@dataclass
class Event:
    name: str
    payload: Any
    timestamp: float


class EventHandler(Protocol):
    def __call__(self, event: Event) -> None: ...  # pragma: no cover - structural


@dataclass
class Subscription:
    event: str
    handler: EventHandler
    once: bool
    active: bool = True

    def cancel(self) -> None:
        self.active = False


def _key(name: str | GUIEvent) -> str:
    return name.value if isinstance(name, GUIEvent) else name


class EventBus:
    """Synchronous event dispatcher.

    Subscriber lists are guarded by a re-entrant lock, but handlers are
    invoked on a copy taken before dispatch, so a handler may subscribe or
    unsubscribe while an event is being delivered.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._subs: Dict[str, List[Subscription]] = {}
        self._errors: List[tuple[Event, BaseException]] = []

    def subscribe(
        self, name: str | GUIEvent, handler: EventHandler, *, once: bool = False
    ) -> Subscription:
        sub = Subscription(event=_key(name), handler=handler, once=once)
        with self._lock:
            self._subs.setdefault(sub.event, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription) -> None:
        with self._lock:
            bucket = self._subs.get(sub.event)
            if bucket:
                self._subs[sub.event] = [s for s in bucket if s is not sub]
                if not self._subs[sub.event]:
                    del self._subs[sub.event]
        sub.active = False

    def publish(self, name: str | GUIEvent, payload: Any = None) -> Event:
        key = _key(name)
        evt = Event(name=key, payload=payload, timestamp=perf_counter())
        with self._lock:
            subs = list(self._subs.get(key, ()))
        spent: List[Subscription] = []
        for sub in subs:
            if not sub.active:
                continue
            try:
                sub.handler(evt)
            except Exception as exc:  # noqa: BLE001 - isolate handler failures
                with self._lock:
                    self._errors.append((evt, exc))
            else:
                if sub.once:
                    spent.append(sub)
        for sub in spent:
            self.unsubscribe(sub)
        return evt

    def subscriber_count(self, name: str | GUIEvent) -> int:
        with self._lock:
            return len(self._subs.get(_key(name), ()))

    @property
    def errors(self) -> list[tuple[Event, BaseException]]:
        with self._lock:
            return list(self._errors)

    def clear(self) -> None:
        with self._lock:
            self._subs.clear()
            self._errors.clear()
