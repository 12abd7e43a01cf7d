import json
import os

from rosterwatch.gui.services.column_catalog import COLUMN_KEYS, DEFAULT_ENABLED_COLUMNS
from rosterwatch.gui.services.event_bus import EventBus, GUIEvent
from rosterwatch.gui.services.view_preferences import (
    ENABLED_COLUMNS_KEY,
    MATCHES_ONLY_KEY,
    JsonFilePreferenceBackend,
    MemoryPreferenceBackend,
    ViewPreferenceStore,
)


class FailingBackend(MemoryPreferenceBackend):
    def set(self, key, value):
        raise OSError("disk full")


def test_missing_keys_use_defaults():
    store = ViewPreferenceStore(MemoryPreferenceBackend())
    prefs = store.preferences
    assert prefs.enabled_columns == DEFAULT_ENABLED_COLUMNS
    assert prefs.matches_only is False


def test_enabled_columns_round_trip_through_file(tmp_path):
    store = ViewPreferenceStore(JsonFilePreferenceBackend(str(tmp_path)))
    store.set_enabled_columns(["score", "name"])
    reloaded = ViewPreferenceStore(JsonFilePreferenceBackend(str(tmp_path)))
    assert reloaded.preferences.enabled_columns == ("name", "score")
    with open(os.path.join(tmp_path, JsonFilePreferenceBackend.FILENAME), encoding="utf-8") as f:
        raw = json.load(f)
    assert json.loads(raw[ENABLED_COLUMNS_KEY]) == ["name", "score"]


def test_matches_only_stored_as_string(tmp_path):
    backend = MemoryPreferenceBackend()
    store = ViewPreferenceStore(backend)
    store.set_matches_only(True)
    assert backend.values[MATCHES_ONLY_KEY] == "true"
    store.toggle_matches_only()
    assert backend.values[MATCHES_ONLY_KEY] == "false"
    assert store.preferences.matches_only is False


def test_unparsable_values_fall_back():
    backend = MemoryPreferenceBackend({ENABLED_COLUMNS_KEY: "{not json", MATCHES_ONLY_KEY: "maybe"})
    prefs = ViewPreferenceStore(backend).preferences
    assert prefs.enabled_columns == DEFAULT_ENABLED_COLUMNS
    assert prefs.matches_only is False
    backend = MemoryPreferenceBackend({ENABLED_COLUMNS_KEY: '{"a": 1}'})
    assert ViewPreferenceStore(backend).preferences.enabled_columns == DEFAULT_ENABLED_COLUMNS


def test_empty_list_kept_as_no_restriction():
    backend = MemoryPreferenceBackend({ENABLED_COLUMNS_KEY: "[]"})
    assert ViewPreferenceStore(backend).preferences.enabled_columns == ()


def test_unknown_column_ids_dropped():
    backend = MemoryPreferenceBackend({ENABLED_COLUMNS_KEY: '["ping", "bogus", "ping"]'})
    assert ViewPreferenceStore(backend).preferences.enabled_columns == ("ping",)


def test_write_failure_keeps_in_memory_value(caplog):
    store = ViewPreferenceStore(FailingBackend())
    prefs = store.set_enabled_columns(["kills"])
    assert prefs.enabled_columns == ("kills",)
    assert store.preferences.enabled_columns == ("kills",)
    assert any("Failed to persist" in r.getMessage() for r in caplog.records)


def test_corrupt_file_moved_aside(tmp_path):
    path = tmp_path / JsonFilePreferenceBackend.FILENAME
    path.write_text("{ broken", encoding="utf-8")
    store = ViewPreferenceStore(JsonFilePreferenceBackend(str(tmp_path)))
    assert store.preferences.enabled_columns == DEFAULT_ENABLED_COLUMNS
    assert not path.exists()
    assert any(p.name.startswith(JsonFilePreferenceBackend.FILENAME + ".corrupt.") for p in tmp_path.iterdir())


def test_unwritable_directory_is_not_fatal(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    store = ViewPreferenceStore(JsonFilePreferenceBackend(str(blocker / "sub")))
    store.set_matches_only(True)
    assert store.preferences.matches_only is True


def test_changes_published_on_bus():
    bus = EventBus()
    seen = []
    bus.subscribe(GUIEvent.VIEW_PREFERENCES_CHANGED, lambda evt: seen.append(evt.payload))
    store = ViewPreferenceStore(MemoryPreferenceBackend(), event_bus=bus)
    store.set_enabled_columns(COLUMN_KEYS)
    assert seen and seen[-1].enabled_columns == COLUMN_KEYS


def test_unreadable_file_is_not_moved_aside(tmp_path, caplog):
    # A directory in the file's place makes open() fail with an OSError
    path = tmp_path / JsonFilePreferenceBackend.FILENAME
    path.mkdir()
    backend = JsonFilePreferenceBackend(str(tmp_path))
    store = ViewPreferenceStore(backend)
    assert store.preferences.enabled_columns == DEFAULT_ENABLED_COLUMNS
    assert path.is_dir()
    assert [p.name for p in tmp_path.iterdir()] == [JsonFilePreferenceBackend.FILENAME]
    assert any("Could not read" in r.getMessage() for r in caplog.records)


def test_read_error_is_retried_on_next_read(tmp_path):
    path = tmp_path / JsonFilePreferenceBackend.FILENAME
    path.mkdir()
    backend = JsonFilePreferenceBackend(str(tmp_path))
    assert backend.get(MATCHES_ONLY_KEY) is None
    path.rmdir()
    path.write_text(json.dumps({MATCHES_ONLY_KEY: "true"}), encoding="utf-8")
    assert backend.get(MATCHES_ONLY_KEY) == "true"


def test_non_object_file_moved_aside(tmp_path):
    path = tmp_path / JsonFilePreferenceBackend.FILENAME
    path.write_text("[1, 2]", encoding="utf-8")
    backend = JsonFilePreferenceBackend(str(tmp_path))
    assert backend.get(MATCHES_ONLY_KEY) is None
    assert not path.exists()
