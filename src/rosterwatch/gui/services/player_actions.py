"""Fire-and-forget mutation commands (notes, whitelist, marks, settings).

Each command runs on a small thread pool and returns a ``Future``. Results
are never merged into the roster snapshot; the next poll reflects whatever
the detector stored. Failures are logged from a done-callback and announced
as ``GUIEvent.PLAYER_ACTION_COMPLETED`` with ``ok=False`` so a dialog can stay
open for a retry.

All commands are keyed by ``steam_id``: ``user_id`` is reassigned when a
player reconnects and must not be used to address a player.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable, Iterable, Optional

from rosterwatch.core.api_client import RosterApiClient

from .event_bus import EventBus, GUIEvent

__all__ = ["PlayerActionService"]

logger = logging.getLogger(__name__)


class PlayerActionService:
    def __init__(
        self,
        client: RosterApiClient,
        *,
        executor: Optional[Executor] = None,
        event_bus: EventBus | None = None,
    ):
        self._client = client
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="player-action"
        )
        self._bus = event_bus

    def shutdown(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=False)

    def save_note(self, steam_id: int, note: str) -> Future:
        return self._submit("save_note", steam_id, self._client.save_user_note, steam_id, note)

    def whitelist(self, steam_id: int) -> Future:
        return self._submit("whitelist", steam_id, self._client.add_whitelist, steam_id)

    def unwhitelist(self, steam_id: int) -> Future:
        return self._submit("unwhitelist", steam_id, self._client.remove_whitelist, steam_id)

    def mark(self, steam_id: int, attrs: Iterable[str]) -> Future:
        return self._submit("mark", steam_id, self._client.mark_player, steam_id, list(attrs))

    def save_settings(self, data: dict) -> Future:
        return self._submit("save_settings", None, self._client.save_user_settings, data)

    def _submit(
        self, action: str, steam_id: Optional[int], fn: Callable[..., Any], *args: Any
    ) -> Future:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(lambda f: self._on_done(action, steam_id, f))
        return future

    def _on_done(self, action: str, steam_id: Optional[int], future: Future) -> None:
        error = future.exception()
        if error is None:
            logger.info("Player action %s succeeded for %s", action, steam_id)
        else:
            logger.warning("Player action %s failed for %s: %s", action, steam_id, error)
        if self._bus is not None:
            self._bus.publish(
                GUIEvent.PLAYER_ACTION_COMPLETED,
                {
                    "action": action,
                    "steam_id": steam_id,
                    "ok": error is None,
                    "error": "" if error is None else str(error),
                },
            )
