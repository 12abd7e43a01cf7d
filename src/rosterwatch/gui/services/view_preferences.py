"""View preference persistence (enabled columns + matches-only filter).

Preferences live in a small string key/value area, mirroring a browser's
local storage:

``enabledColumns``
    JSON list of column keys.
``matchesOnly``
    ``"true"`` / ``"false"``.

Reads never raise: a missing or unparsable value falls back to its default.
Writes update the in-memory value first; a failed write is logged and the
in-memory value stays authoritative for the rest of the session.

Sort state is intentionally not stored here; it resets on every launch.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Dict, Iterable, Optional, Protocol, Tuple

from .column_catalog import DEFAULT_ENABLED_COLUMNS, normalize_columns
from .event_bus import EventBus, GUIEvent

__all__ = [
    "ENABLED_COLUMNS_KEY",
    "MATCHES_ONLY_KEY",
    "PreferenceBackend",
    "MemoryPreferenceBackend",
    "JsonFilePreferenceBackend",
    "ViewPreferences",
    "ViewPreferenceStore",
]

logger = logging.getLogger(__name__)

ENABLED_COLUMNS_KEY = "enabledColumns"
MATCHES_ONLY_KEY = "matchesOnly"


class PreferenceBackend(Protocol):
    def get(self, key: str) -> Optional[str]: ...  # pragma: no cover - structural

    def set(self, key: str, value: str) -> None: ...  # pragma: no cover - structural


class MemoryPreferenceBackend:
    """Dict-backed store for tests and ephemeral sessions."""

    def __init__(self, initial: Dict[str, str] | None = None):
        self.values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.values.get(key)

    def set(self, key: str, value: str) -> None:
        self.values[key] = value


class JsonFilePreferenceBackend:
    """Key/value strings persisted as one JSON object inside ``base_dir``.

    An unparsable file is moved aside (``<name>.corrupt.<timestamp>``) and
    treated as empty; a file that cannot be read is left in place. ``set`` raises
    ``OSError`` when the file cannot be written.
    """

    FILENAME = "view_preferences.json"

    def __init__(self, base_dir: str):
        self.base_dir = base_dir
        self.path = os.path.join(base_dir, self.FILENAME)
        self._cache: Dict[str, str] | None = None

    def _read(self) -> Dict[str, str]:
        if self._cache is not None:
            return self._cache
        data: Dict[str, str] = {}
        if os.path.exists(self.path):
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    raw = json.load(f)
            except OSError as e:
                # Possibly transient (permissions, lock); keep the file and retry next read.
                logger.warning("Could not read preference file %s: %s", self.path, e)
                return {}
            except ValueError as e:
                logger.warning("Discarding unparsable preference file %s: %s", self.path, e)
                self._backup_corrupt()
                raw = {}
            if not isinstance(raw, dict):
                logger.warning("Discarding preference file %s: not a JSON object", self.path)
                self._backup_corrupt()
                raw = {}
            data = {str(k): v for k, v in raw.items() if isinstance(v, str)}
        self._cache = data
        return data

    def _backup_corrupt(self) -> None:
        backup = self.path + f".corrupt.{datetime.now().strftime('%Y%m%d%H%M%S')}"
        try:
            os.replace(self.path, backup)
        except OSError:  # pragma: no cover - best effort
            logger.debug("Could not move corrupt preference file aside", exc_info=True)

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = dict(self._read())
        data[key] = value
        os.makedirs(self.base_dir, exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        os.replace(tmp, self.path)
        self._cache = data


@dataclass(frozen=True)
class ViewPreferences:
    enabled_columns: Tuple[str, ...] = DEFAULT_ENABLED_COLUMNS
    matches_only: bool = False


def _parse_columns(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return DEFAULT_ENABLED_COLUMNS
    try:
        value = json.loads(raw)
    except ValueError:
        logger.info("Ignoring unparsable %s preference", ENABLED_COLUMNS_KEY)
        return DEFAULT_ENABLED_COLUMNS
    if not isinstance(value, list):
        return DEFAULT_ENABLED_COLUMNS
    # An empty or unrecognised list is kept as-is: it means "no restriction".
    return normalize_columns(value)


def _parse_bool(raw: Optional[str]) -> bool:
    if raw is None:
        return False
    try:
        return json.loads(raw) is True
    except ValueError:
        return False


class ViewPreferenceStore:
    """In-memory view preferences backed by a durable key/value area."""

    def __init__(self, backend: PreferenceBackend, *, event_bus: EventBus | None = None):
        self._backend = backend
        self._bus = event_bus
        self._prefs = self.load()

    @property
    def preferences(self) -> ViewPreferences:
        return self._prefs

    def load(self) -> ViewPreferences:
        """Read both keys from the backend, falling back to defaults."""
        try:
            cols_raw = self._backend.get(ENABLED_COLUMNS_KEY)
            flag_raw = self._backend.get(MATCHES_ONLY_KEY)
        except Exception:  # noqa: BLE001 - backend failures degrade to defaults
            logger.warning("Preference backend unreadable, using defaults", exc_info=True)
            return ViewPreferences()
        return ViewPreferences(
            enabled_columns=_parse_columns(cols_raw), matches_only=_parse_bool(flag_raw)
        )

    def set_enabled_columns(self, columns: Iterable[str]) -> ViewPreferences:
        cols = normalize_columns(columns)
        self._prefs = replace(self._prefs, enabled_columns=cols)
        self._persist(ENABLED_COLUMNS_KEY, json.dumps(list(cols)))
        return self._prefs

    def set_matches_only(self, flag: bool) -> ViewPreferences:
        self._prefs = replace(self._prefs, matches_only=bool(flag))
        self._persist(MATCHES_ONLY_KEY, "true" if flag else "false")
        return self._prefs

    def toggle_matches_only(self) -> ViewPreferences:
        return self.set_matches_only(not self._prefs.matches_only)

    def _persist(self, key: str, value: str) -> bool:
        ok = True
        try:
            self._backend.set(key, value)
        except Exception:  # noqa: BLE001 - in-memory state stays authoritative
            logger.error("Failed to persist view preference %s", key, exc_info=True)
            ok = False
        if self._bus is not None:
            self._bus.publish(GUIEvent.VIEW_PREFERENCES_CHANGED, self._prefs)
        return ok
