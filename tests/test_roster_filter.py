from rosterwatch.gui.models import PlayerRecord
from rosterwatch.gui.services.roster_filter import filter_records

from roster_test_util import player


def make_rows():
    flagged = player(2, "cheater", matches=[{"origin": "list", "attributes": ["cheater"]}])
    return [PlayerRecord.from_dict(p) for p in (player(1, "clean"), flagged, player(3, "also"))]


def test_matches_only_keeps_flagged_players():
    rows = make_rows()
    out = filter_records(rows, True)
    assert [p.name for p in out] == ["cheater"]


def test_disabled_filter_returns_all_as_new_list():
    rows = make_rows()
    out = filter_records(rows, False)
    assert out == rows
    assert out is not rows


def test_filter_is_idempotent():
    rows = make_rows()
    once = filter_records(rows, True)
    assert filter_records(once, True) == once


def test_empty_match_list_is_not_a_match():
    rows = [PlayerRecord.from_dict(player(1, "x", matches=[]))]
    assert filter_records(rows, True) == []
