"""Master/detail rows and the grids nested inside them.

A detail grid is a new ``LocatorContext`` whose root lives inside the
detail region rendered under its master row. Contexts chain to their
parent, so nesting depth is simply the length of that chain.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING, Sequence

from . import selectors as sel
from .errors import ConfigurationError, GridActionError
from .grouping import is_row_expanded, toggle_all, toggle_row
from .locators import create_locator_context
from .matchers import RowMatcher, format_row_matcher
from .row_data import find_row, resolve_row
from .waits import wait_until

if TYPE_CHECKING:
    from .locators import LocatorContext
    from .models import RowData

MAX_DETAIL_PATH_DEPTH = 10


async def is_detail_expanded(ctx: LocatorContext, matcher: RowMatcher) -> bool:
    row = await resolve_row(ctx, matcher)
    if await row.count() == 0:
        raise GridActionError(f"No rendered master row matches {format_row_matcher(matcher)}")
    if await row.get_attribute(sel.ATTR_ARIA_EXPANDED) is not None:
        return await is_row_expanded(row)
    stable_id = await row.get_attribute(sel.ATTR_ROW_ID)
    if stable_id:
        return await ctx.grid().locator(sel.build_detail_region_selector(stable_id)).count() > 0
    return await is_row_expanded(row)


async def expand_master_row(ctx: LocatorContext, matcher: RowMatcher) -> None:
    if await is_detail_expanded(ctx, matcher):
        return
    await toggle_row(ctx, matcher, True, sel.MASTER_EXPAND_CONTROL)
    ctx.child_logger("master_detail").info("Expanded master row %s", format_row_matcher(matcher))


async def collapse_master_row(ctx: LocatorContext, matcher: RowMatcher) -> None:
    if not await is_detail_expanded(ctx, matcher):
        return
    await toggle_row(ctx, matcher, False, sel.MASTER_COLLAPSE_CONTROL)
    ctx.child_logger("master_detail").info("Collapsed master row %s", format_row_matcher(matcher))


async def _expanded_rows_before(ctx: LocatorContext, master: RowData) -> int:
    rows = ctx.rows()
    count = await rows.count()
    before = 0
    for index in range(count):
        row = rows.nth(index)
        position = sel.parse_int_attribute(await row.get_attribute(sel.ATTR_ROW_INDEX))
        if 0 <= position < master.viewport_index and await row.get_attribute(sel.ATTR_ARIA_EXPANDED) == "true":
            before += 1
    return before


async def detail_grid(ctx: LocatorContext, matcher: RowMatcher) -> LocatorContext:
    """Context for the grid rendered in the detail region of a master row.

    The region is addressed by the master's row id. Masters without one fall
    back to the position of their region among all rendered detail regions.
    """
    match = await find_row(ctx, matcher)
    if match is None:
        raise GridActionError(f"No rendered master row matches {format_row_matcher(matcher)}")

    if match.data.stable_id:
        address = sel.build_detail_region_selector(match.data.stable_id)
        index = 0
    else:
        address = sel.DETAILS_ROW
        index = await _expanded_rows_before(ctx, match.data)

    child = create_locator_context(ctx.page, replace(ctx.config, address=address), parent=ctx, detail_index=index)
    ctx.child_logger("master_detail").info(
        "Opened detail grid at depth %d for %s", child.depth, format_row_matcher(matcher)
    )
    return child


async def detail_grid_by_path(ctx: LocatorContext, path: Sequence[RowMatcher]) -> LocatorContext:
    if not path:
        raise ConfigurationError("detail path must name at least one master row")
    current = ctx
    for matcher in path:
        current = await detail_grid(current, matcher)
    return current


def _check_path(path: Sequence[RowMatcher]) -> None:
    if not path:
        raise ConfigurationError("detail path must name at least one master row")
    if len(path) > MAX_DETAIL_PATH_DEPTH:
        raise ConfigurationError(f"detail path is {len(path)} levels deep, the limit is {MAX_DETAIL_PATH_DEPTH}")


async def expand_detail_path(ctx: LocatorContext, path: Sequence[RowMatcher]) -> LocatorContext:
    """Expand each master row along ``path`` and return the innermost detail grid."""
    _check_path(path)
    current = ctx
    for matcher in path:
        await expand_master_row(current, matcher)
        current = await detail_grid(current, matcher)
        grid = current.grid()

        async def rendered() -> bool:
            return await grid.count() > 0

        await wait_until(rendered, current.config.timeouts.row_load, f"detail grid at depth {current.depth}")
    return current


async def collapse_detail_path(ctx: LocatorContext, path: Sequence[RowMatcher]) -> None:
    """Collapse every master row along ``path``, deepest level first."""
    _check_path(path)
    levels = [ctx]
    for matcher in path[:-1]:
        levels.append(await detail_grid(levels[-1], matcher))
    for level, matcher in reversed(list(zip(levels, path))):
        await collapse_master_row(level, matcher)


async def expand_all_details(ctx: LocatorContext) -> int:
    return await toggle_all(ctx, sel.MASTER_EXPAND_CONTROL, "master_detail", "Expand")


async def collapse_all_details(ctx: LocatorContext) -> int:
    return await toggle_all(ctx, sel.MASTER_COLLAPSE_CONTROL, "master_detail", "Collapse")
