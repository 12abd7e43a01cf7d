from concurrent.futures import Future, ThreadPoolExecutor

from rosterwatch.gui.models import PlayerRecord, RosterSnapshot
from rosterwatch.gui.services.event_bus import EventBus, GUIEvent
from rosterwatch.gui.services.sort_engine import SortDirection
from rosterwatch.gui.services.sort_state import SortState
from rosterwatch.gui.services.view_preferences import MemoryPreferenceBackend, ViewPreferenceStore
from rosterwatch.gui.viewmodels.roster_viewmodel import NoteDraft, RosterViewModel, cell_text

from roster_test_util import player


def make_vm(**kwargs):
    store = ViewPreferenceStore(MemoryPreferenceBackend())
    return RosterViewModel(store, **kwargs)


def scored_snapshot():
    return RosterSnapshot.from_payload(
        [player(1, "p1", 10), player(2, "p2", 10), player(3, "p3", 5)]
    )


def names(rows):
    return [p.name for p in rows]


def test_score_sort_keeps_server_order_for_ties():
    vm = make_vm(sort_state=SortState("score", SortDirection.DESC))
    vm.set_snapshot(scored_snapshot())
    assert names(vm.visible_rows()) == ["p1", "p2", "p3"]
    state = vm.request_sort("score")
    assert state == SortState("score", SortDirection.ASC)
    assert names(vm.visible_rows()) == ["p3", "p1", "p2"]


def test_default_sort_is_name_descending():
    vm = make_vm()
    vm.set_snapshot(scored_snapshot())
    assert names(vm.visible_rows()) == ["p3", "p2", "p1"]


def test_header_clicks_reach_score_descending():
    vm = make_vm()
    vm.set_snapshot(scored_snapshot())
    vm.request_sort("score")
    vm.request_sort("score")
    assert vm.sort_state == SortState("score", SortDirection.DESC)
    assert names(vm.visible_rows()) == ["p1", "p2", "p3"]


def test_matches_only_filters_then_sorts():
    vm = make_vm(sort_state=SortState("score", SortDirection.ASC))
    vm.set_snapshot(
        RosterSnapshot.from_payload(
            [
                player(1, "clean", 1),
                player(2, "flag-b", 9, matches=[{"origin": "x"}]),
                player(3, "flag-a", 3, matches=[{"origin": "y"}]),
            ]
        )
    )
    vm.toggle_matches_only()
    assert vm.matches_only is True
    assert names(vm.visible_rows()) == ["flag-a", "flag-b"]


def test_visible_rows_memoized_until_inputs_change():
    vm = make_vm()
    snap = scored_snapshot()
    vm.set_snapshot(snap)
    first = vm.visible_rows()
    assert vm.visible_rows() is first
    assert vm.derivations == 1
    vm.set_snapshot(snap)  # same object, nothing to recompute
    vm.visible_rows()
    assert vm.derivations == 1
    vm.set_snapshot(scored_snapshot())  # equal content, new snapshot
    vm.visible_rows()
    assert vm.derivations == 2
    vm.request_sort("kills")
    vm.visible_rows()
    assert vm.derivations == 3
    vm.toggle_matches_only()
    vm.visible_rows()
    assert vm.derivations == 4


def test_sort_change_published():
    bus = EventBus()
    seen = []
    bus.subscribe(GUIEvent.SORT_CHANGED, lambda evt: seen.append(evt.payload))
    vm = make_vm(event_bus=bus)
    vm.request_sort("ping")
    assert seen == [SortState("ping", SortDirection.ASC)]


def test_column_toggle_starts_from_visible_set():
    vm = make_vm()
    cols = vm.set_column_enabled("kills", False)
    assert "kills" not in [c.key for c in cols]
    cols = vm.set_column_enabled("map_time", True)
    keys = [c.key for c in cols]
    assert keys.index("map_time") < keys.index("ping")


def test_disabling_last_column_shows_all():
    vm = make_vm()
    vm.set_enabled_columns(["name"])
    cols = vm.set_column_enabled("name", False)
    assert len(cols) == 11


def test_summary_counts_teams_and_server():
    vm = make_vm()
    vm.set_snapshot(
        RosterSnapshot.from_payload(
            {
                "players": [player(1, "a", team=2), player(2, "b", team=3), player(3, "c", team=3)],
                "server": {"server_name": "srv", "current_map": "cp_process"},
                "game_running": True,
            }
        )
    )
    summary = vm.summary()
    assert summary.as_text() == "1 : 2"
    assert (summary.server_name, summary.current_map, summary.game_running) == (
        "srv",
        "cp_process",
        True,
    )


def test_note_draft_closes_only_on_successful_save():
    vm = make_vm()
    vm.set_snapshot(RosterSnapshot.from_payload([player(5, "a", notes="old"), player(6, "b")]))
    draft = vm.open_note(vm.player_by_steam_id(5))
    assert draft.text == "old"
    vm.update_note("new")
    pending: Future = Future()
    saved = []

    def save(sid, text):
        saved.append((sid, text))
        return pending

    assert vm.save_note(save) is pending
    assert saved == [(5, "new")]
    assert vm.note_save_completed(5, False) is False
    assert vm.note_draft == NoteDraft(5, "new")
    assert vm.note_save_completed(6, True) is False
    assert vm.note_draft is not None
    assert vm.note_save_completed(5, True) is True
    assert vm.note_draft is None
    assert vm.note_save_completed(5, True) is False


def test_save_future_completion_leaves_draft_alone():
    vm = make_vm()
    vm.set_snapshot(RosterSnapshot.from_payload([player(5, "a")]))
    vm.open_note(vm.player_by_steam_id(5))
    with ThreadPoolExecutor(max_workers=1) as pool:
        fut = vm.save_note(lambda sid, text: pool.submit(lambda: None))
        fut.result(timeout=2)
    assert vm.note_draft == NoteDraft(5, "")


def test_note_without_steam_id_not_opened():
    vm = make_vm()
    vm.set_snapshot(RosterSnapshot.from_payload([{"name": "anon"}]))
    assert vm.open_note(vm.snapshot.players[0]) is None
    assert vm.save_note(lambda sid, text: None) is None


def test_cell_text_formats():
    rec = RosterSnapshot.from_payload(
        [player(1, "a", connected=3725, kills=3, kpm=1.234, health=0)]
    ).players[0]
    assert cell_text(rec, "connected") == "1:02:05"
    assert cell_text(rec, "kpm") == "1.23"
    assert cell_text(rec, "alive") == "no"
    assert cell_text(rec, "name") == "a"
    assert cell_text(rec, "user_id") == "1"


def test_cell_text_with_non_finite_duration():
    rec = PlayerRecord(steam_id=1, user_id=1, connected=float("inf"))
    assert cell_text(rec, "connected") == ""


def test_known_attributes_merge_tags_and_matches():
    vm = make_vm()
    assert vm.known_attributes() == ["cheater"]
    vm.set_snapshot(
        RosterSnapshot.from_payload(
            [
                player(1, "a", matches=[{"origin": "list", "attributes": ["Racist", "cheater"]}]),
                player(2, "b", matches=[{"origin": "list", "attributes": ["bot", ""]}]),
            ]
        )
    )
    assert vm.known_attributes(["suspicious", "Cheater", "BOT", ""]) == [
        "BOT",
        "cheater",
        "Racist",
        "suspicious",
    ]
