"""
Grid queries: free-text filter, column sort, and the sort-header toggle.
"""
from __future__ import annotations

import numbers
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Sequence, TypeVar

T = TypeVar("T")


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class SortConfig:
    key: str
    direction: SortDirection = SortDirection.ASC


def toggle_sort(current: Optional[SortConfig], key: str) -> Optional[SortConfig]:
    """Repeated clicks on one column cycle asc → desc → unsorted."""
    if current is not None and current.key == key:
        if current.direction == SortDirection.ASC:
            return SortConfig(key, SortDirection.DESC)
        return None
    return SortConfig(key, SortDirection.ASC)


def _as_mapping(item: Any) -> Mapping[str, Any]:
    if hasattr(item, "to_dict"):
        return item.to_dict()
    return item


def _stringify(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ",".join(_stringify(v) for v in value)
    return str(value)


def filter_records(records: Iterable[T], term: str | None) -> list[T]:
    """Keep records where any field value contains `term`, ignoring case."""
    if not term:
        return list(records)
    needle = term.lower()
    return [
        item for item in records
        if any(needle in _stringify(v).lower() for v in _as_mapping(item).values())
    ]


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == () or value == []


def _sort_key(value: Any) -> tuple:
    # numbers sort before strings so mixed columns never compare int to str
    if isinstance(value, numbers.Real) and not isinstance(value, bool):
        return (0, value, "")
    return (1, 0, _stringify(value))


def sort_records(records: Sequence[T], key: str, direction: SortDirection | str = SortDirection.ASC) -> list[T]:
    """Sort by one field's native ordering.

    Ties keep their input order and blank values go last in both directions.
    """
    direction = SortDirection(direction)
    values = [(item, _as_mapping(item).get(key)) for item in records]
    present = [pair for pair in values if not _is_blank(pair[1])]
    blank = [item for item, value in values if _is_blank(value)]

    present.sort(key=lambda pair: _sort_key(pair[1]), reverse=direction == SortDirection.DESC)
    return [item for item, _ in present] + blank


def query_view(records: Sequence[T], term: str | None = None, sort: Optional[SortConfig] = None) -> list[T]:
    """What the grid renders: filter first, then sort."""
    view = filter_records(records, term)
    if sort is not None:
        view = sort_records(view, sort.key, sort.direction)
    return view
