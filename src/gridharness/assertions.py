from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from .config import DEFAULT_ASSERTION_TIMEOUT_MS, column_display_name, display_names
from .errors import AssertionTimeoutError, GridAssertionError
from .matchers import (
    ByCellValues,
    RowMatcher,
    format_cell_values,
    format_row_matcher,
    matches_cell_values,
    normalize_for_comparison,
)
from .models import ClosestMatchResult, RowCountRange, RowData
from .row_data import count_visible_rows, find_row, get_all_visible_row_data, is_row_selected
from .scoring import closest_match
from .state import get_sort_state
from .waits import is_no_rows_overlay_visible, poll_until

if TYPE_CHECKING:
    from .locators import LocatorContext


def _grid_label(ctx: LocatorContext) -> str:
    return f'Grid "{ctx.config.address}"'


def _timeout(timeout: int | None) -> int:
    return DEFAULT_ASSERTION_TIMEOUT_MS if timeout is None else timeout


async def expect_row_count(
    ctx: LocatorContext,
    count: int | None = None,
    *,
    min: int | None = None,
    max: int | None = None,
    timeout: int | None = None,
) -> None:
    if count is None and min is None and max is None:
        raise TypeError("expect_row_count needs an exact count or a min/max range")
    bounds = RowCountRange(min=count, max=count) if count is not None else RowCountRange(min=min, max=max)
    expectation = f"exactly {count}" if count is not None else bounds.describe()
    timeout_ms = _timeout(timeout)
    observed = 0

    async def in_range() -> bool:
        nonlocal observed
        observed = await count_visible_rows(ctx)
        return bounds.contains(observed)

    if await poll_until(in_range, timeout_ms):
        return
    raise AssertionTimeoutError(
        f"{_grid_label(ctx)} has {observed} rows, expected {expectation}",
        timeout_ms=timeout_ms,
        condition=f"{expectation} rows",
    )


async def expect_row_contains(
    ctx: LocatorContext,
    values: Mapping[str, Any],
    timeout: int | None = None,
) -> RowData:
    """Poll until a rendered row matches ``values``; return that row's data.

    On expiry the error reports how many rows were checked and, when any
    were rendered, the closest candidate with its mismatched fields.
    """
    matcher = ByCellValues(dict(values))
    timeout_ms = _timeout(timeout)

    async def lookup():
        return await find_row(ctx, matcher)

    match = await poll_until(lookup, timeout_ms)
    if match:
        return match.data

    rendered = await get_all_visible_row_data(ctx)
    closest = closest_match(rendered, values)
    raise AssertionTimeoutError(
        _format_missing_row(ctx, values, len(rendered), closest),
        timeout_ms=timeout_ms,
        condition=f"row matching {format_row_matcher(matcher)}",
        closest_match=closest,
    )


def _format_missing_row(
    ctx: LocatorContext,
    values: Mapping[str, Any],
    scanned: int,
    closest: ClosestMatchResult | None,
) -> str:
    names = display_names(ctx.config)
    lines = [
        f"{_grid_label(ctx)} does not contain a row matching:",
        f"   Expected: {format_cell_values(values, names)}",
        "",
        f"   Visible rows checked: {scanned}",
    ]
    if closest is None:
        lines.append("   No rows were rendered")
    else:
        lines.append(
            f"   Closest match ({closest.matched_field_count}/{closest.total_field_count} fields): "
            f"{format_cell_values(closest.candidate_row.cells, names)}"
        )
        lines.append("   Mismatched fields:")
        for mismatch in closest.mismatches:
            lines.append(
                f'     - {column_display_name(ctx.config, mismatch.field)}: '
                f'expected "{mismatch.expected}", got "{_shown(mismatch.actual)}"'
            )
    lines.append("")
    lines.append("   Rows outside the rendered window are not checked; scroll them into view first.")
    return "\n".join(lines)


def _shown(value: Any) -> str:
    return "" if value is None else str(value)


async def expect_row_not_contains(
    ctx: LocatorContext,
    values: Mapping[str, Any],
    timeout: int | None = None,
) -> None:
    timeout_ms = _timeout(timeout)

    async def absent() -> bool:
        rows = await get_all_visible_row_data(ctx)
        return not any(matches_cell_values(row, values) for row in rows)

    if await poll_until(absent, timeout_ms):
        return
    raise AssertionTimeoutError(
        f"{_grid_label(ctx)} contains a row matching:\n"
        f"   {format_cell_values(values, display_names(ctx.config))}\n\n"
        "   Expected this row to NOT exist.",
        timeout_ms=timeout_ms,
        condition=f"no row matching {format_cell_values(values)}",
    )


async def expect_cell_value(
    ctx: LocatorContext,
    matcher: RowMatcher,
    column_id: str,
    expected: Any,
    *,
    exact: bool = False,
) -> None:
    match = await find_row(ctx, matcher)
    if match is None:
        raise GridAssertionError(f"{_grid_label(ctx)}: could not find row matching {format_row_matcher(matcher)}")

    actual = match.data.cells.get(column_id)
    display_name = column_display_name(ctx.config, column_id)
    if exact:
        if actual != expected:
            raise GridAssertionError(
                f'{_grid_label(ctx)}: cell "{display_name}" has value "{_shown(actual)}", '
                f'expected exactly "{expected}"'
            )
        return
    if normalize_for_comparison(actual) != normalize_for_comparison(expected):
        raise GridAssertionError(
            f'{_grid_label(ctx)}: cell "{display_name}" has value "{_shown(actual)}", expected "{expected}"'
        )


async def expect_sorted_by(ctx: LocatorContext, column_id: str, direction: str) -> None:
    sort_state = await get_sort_state(ctx)
    display_name = column_display_name(ctx.config, column_id)
    entry = next((item for item in sort_state if item.column_id == column_id), None)
    if entry is None:
        current = ", ".join(f"{item.column_id} ({item.direction})" for item in sort_state) or "none"
        raise GridAssertionError(
            f'{_grid_label(ctx)}: column "{display_name}" is not sorted. Currently sorted: {current}'
        )
    if entry.direction != direction:
        raise GridAssertionError(
            f'{_grid_label(ctx)}: column "{display_name}" is sorted "{entry.direction}", expected "{direction}"'
        )


async def expect_empty(ctx: LocatorContext, timeout: int | None = None) -> None:
    timeout_ms = _timeout(timeout)
    observed = 0

    async def empty() -> bool:
        nonlocal observed
        observed = await count_visible_rows(ctx)
        return observed == 0

    if await poll_until(empty, timeout_ms):
        return
    raise AssertionTimeoutError(
        f"{_grid_label(ctx)} has {observed} rows, expected it to be empty",
        timeout_ms=timeout_ms,
        condition="grid to be empty",
    )


async def expect_row_selected(ctx: LocatorContext, matcher: RowMatcher) -> None:
    match = await find_row(ctx, matcher)
    if match is None:
        raise GridAssertionError(f"{_grid_label(ctx)}: could not find row matching {format_row_matcher(matcher)}")
    if not await is_row_selected(match.locator):
        raise GridAssertionError(f"{_grid_label(ctx)}: row matching {format_row_matcher(matcher)} is not selected")


async def expect_no_rows_overlay(ctx: LocatorContext) -> None:
    if await is_no_rows_overlay_visible(ctx):
        return
    row_count = await count_visible_rows(ctx)
    raise GridAssertionError(f'{_grid_label(ctx)}: "no rows" overlay is not visible. Grid has {row_count} rows.')
