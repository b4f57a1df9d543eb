"""Row selection criteria.

A matcher is exactly one of five shapes. The first three are *direct*: they
resolve through a single structural address. The last two are *derived*:
every visible row has to be read before the match can be decided.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Union

from .models import RowData


@dataclass(frozen=True, slots=True)
class ByAriaPosition:
    position: int


@dataclass(frozen=True, slots=True)
class ByStableId:
    stable_id: str


@dataclass(frozen=True, slots=True)
class ByViewportIndex:
    index: int


@dataclass(frozen=True, slots=True)
class ByCellValues:
    values: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ByPredicate:
    predicate: Callable[[RowData], bool]
    description: str | None = None


RowMatcher = Union[ByAriaPosition, ByStableId, ByViewportIndex, ByCellValues, ByPredicate]
DIRECT_MATCHERS = (ByAriaPosition, ByStableId, ByViewportIndex)


def by_aria_position(position: int) -> ByAriaPosition:
    return ByAriaPosition(int(position))


def by_stable_id(stable_id: str | int) -> ByStableId:
    return ByStableId(str(stable_id))


def by_viewport_index(index: int) -> ByViewportIndex:
    return ByViewportIndex(int(index))


def by_cell_values(values: Mapping[str, Any] | None = None, **columns: Any) -> ByCellValues:
    merged = dict(values or {})
    merged.update(columns)
    return ByCellValues(merged)


def by_predicate(predicate: Callable[[RowData], bool], description: str | None = None) -> ByPredicate:
    return ByPredicate(predicate, description)


def is_direct_matcher(matcher: RowMatcher) -> bool:
    return isinstance(matcher, DIRECT_MATCHERS)


def normalize_for_comparison(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip().lower()


def matches_cell_values(row: RowData, expected: Mapping[str, Any]) -> bool:
    for column_id, expected_value in expected.items():
        actual = row.cells.get(column_id)
        if normalize_for_comparison(expected_value) != normalize_for_comparison(actual):
            return False
    return True


def matches_row(row: RowData, matcher: RowMatcher) -> bool:
    if isinstance(matcher, ByCellValues):
        return matches_cell_values(row, matcher.values)
    if isinstance(matcher, ByPredicate):
        return bool(matcher.predicate(row))
    if isinstance(matcher, ByAriaPosition):
        return row.aria_position == matcher.position
    if isinstance(matcher, ByStableId):
        return row.stable_id == matcher.stable_id
    if isinstance(matcher, ByViewportIndex):
        return row.viewport_index == matcher.index
    raise TypeError(f"Unsupported row matcher: {matcher!r}")


def format_cell_values(values: Mapping[str, Any], display_names: Mapping[str, str] | None = None) -> str:
    names = display_names or {}
    parts = [f'{names.get(key, key)}="{_display(value)}"' for key, value in values.items()]
    return "{" + ", ".join(parts) + "}"


def format_row_matcher(matcher: RowMatcher) -> str:
    if isinstance(matcher, ByAriaPosition):
        return f"ariaRowIndex={matcher.position}"
    if isinstance(matcher, ByStableId):
        return f'rowId="{matcher.stable_id}"'
    if isinstance(matcher, ByViewportIndex):
        return f"rowIndex={matcher.index}"
    if isinstance(matcher, ByCellValues):
        if not matcher.values:
            return "(empty matcher)"
        return f"cellValues={format_cell_values(matcher.values)}"
    if isinstance(matcher, ByPredicate):
        label = matcher.description or getattr(matcher.predicate, "__name__", "") or "function"
        if label == "<lambda>":
            label = "function"
        return f"predicate=[{label}]"
    raise TypeError(f"Unsupported row matcher: {matcher!r}")


def _display(value: Any) -> str:
    if value is None:
        return ""
    return str(value)
