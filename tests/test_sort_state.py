import pytest

from rosterwatch.gui.services.sort_engine import SortDirection
from rosterwatch.gui.services.sort_state import DEFAULT_SORT_STATE, SortState


def test_default_is_name_descending():
    assert DEFAULT_SORT_STATE == SortState("name", SortDirection.DESC)


def test_same_column_flips_direction():
    state = SortState("score", SortDirection.ASC)
    state = state.activate("score")
    assert state == SortState("score", SortDirection.DESC)
    assert state.activate("score") == SortState("score", SortDirection.ASC)


def test_other_column_always_starts_ascending():
    state = SortState("score", SortDirection.DESC)
    assert state.activate("kills") == SortState("kills", SortDirection.ASC)
    state = SortState("score", SortDirection.ASC)
    assert state.activate("kills").direction is SortDirection.ASC


def test_no_per_column_memory():
    state = DEFAULT_SORT_STATE.activate("score").activate("score")  # score desc
    state = state.activate("kills").activate("score")
    assert state == SortState("score", SortDirection.ASC)


def test_unknown_column_rejected():
    with pytest.raises(ValueError):
        DEFAULT_SORT_STATE.activate("bogus")


def test_direction_for():
    state = SortState("ping", SortDirection.DESC)
    assert state.direction_for("ping") is SortDirection.DESC
    assert state.direction_for("name") is None
