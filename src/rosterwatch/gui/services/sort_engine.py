"""Stable single-key sorting for roster rows.

Rows are decorated with their input index before sorting. Descending order is
the negated ascending comparison, and ties always fall back to the original
index, in both directions. The server-reported order therefore survives for
players with equal values, and rows do not jitter between refreshes.

Value comparison rules:
 - missing values (attribute absent or ``None``) sort as the minimum
 - values of incomparable types compare equal (the index decides)
"""

from __future__ import annotations

from enum import Enum
from functools import cmp_to_key
from typing import Any, Callable, Iterable, List, Tuple, TypeVar

__all__ = ["SortDirection", "compare_values", "sort_records"]

T = TypeVar("T")

_MISSING = object()


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


def _field_value(record: Any, key: str) -> Any:
    if isinstance(record, dict):
        value = record.get(key, _MISSING)
    else:
        value = getattr(record, key, _MISSING)
    return _MISSING if value is None else value


def compare_values(a: Any, b: Any) -> int:
    """Natural three-way comparison that never raises."""
    a = _MISSING if a is None else a
    b = _MISSING if b is None else b
    if a is _MISSING or b is _MISSING:
        if a is b:
            return 0
        return -1 if a is _MISSING else 1
    try:
        if a < b:
            return -1
        if b < a:
            return 1
    except TypeError:
        return 0
    return 0


def sort_records(
    records: Iterable[T],
    key: str,
    direction: SortDirection = SortDirection.ASC,
    *,
    value_getter: Callable[[Any, str], Any] | None = None,
) -> List[T]:
    """Return a new list of ``records`` ordered by field ``key``.

    ``value_getter`` overrides attribute/dict lookup (e.g. for derived cells).
    """
    getter = value_getter or _field_value
    sign = -1 if direction is SortDirection.DESC else 1

    def _get(record: Any) -> Any:
        try:
            value = getter(record, key)
        except Exception:  # noqa: BLE001 - malformed rows sort as missing
            return _MISSING
        return _MISSING if value is None else value

    decorated: List[Tuple[int, Any, T]] = [(i, _get(r), r) for i, r in enumerate(records)]

    def _cmp(x: Tuple[int, Any, T], y: Tuple[int, Any, T]) -> int:
        order = sign * compare_values(x[1], y[1])
        if order:
            return order
        return x[0] - y[0]

    decorated.sort(key=cmp_to_key(_cmp))
    return [r for _, _, r in decorated]
