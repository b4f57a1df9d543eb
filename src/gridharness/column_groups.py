from __future__ import annotations

from typing import TYPE_CHECKING

from . import selectors as sel
from .errors import GridActionError, GridAssertionError
from .extraction import normalize_text
from .models import ColumnGroupState
from .waits import wait_until

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .locators import LocatorContext

GROUP_HEADER = ".ag-header-group-cell"
GROUP_HEADER_ROW = ".ag-header-row-column-group"
GROUP_EXPAND_ICON = ".ag-header-expand-icon, .ag-column-group-icons"
GROUP_LABEL = ".ag-header-group-text"
ICON_EXPANDED = ".ag-icon-expanded"
ICON_CONTRACTED = ".ag-icon-contracted"

TOGGLE_TIMEOUT_MS = 5000


def column_group_header(ctx: LocatorContext, group_id: str) -> Locator:
    return ctx.grid().locator(sel.attribute_selector(GROUP_HEADER, sel.ATTR_COL_ID, group_id)).first


async def _existing_header(ctx: LocatorContext, group_id: str) -> Locator:
    header = column_group_header(ctx, group_id)
    if await header.count() == 0:
        raise GridActionError(f'Column group "{group_id}" not found in grid')
    return header


async def is_column_group_expanded(ctx: LocatorContext, group_id: str) -> bool:
    header = await _existing_header(ctx, group_id)
    aria = await header.get_attribute(sel.ATTR_ARIA_EXPANDED)
    if aria is not None:
        return aria == "true"
    if await header.locator(ICON_EXPANDED).count() > 0:
        return True
    class_attr = await header.get_attribute("class") or ""
    return "expanded" in class_attr


async def _set_expanded(ctx: LocatorContext, group_id: str, expand: bool) -> None:
    header = await _existing_header(ctx, group_id)
    if await is_column_group_expanded(ctx, group_id) == expand:
        return

    icon = header.locator(f"{GROUP_EXPAND_ICON}, {ICON_CONTRACTED if expand else ICON_EXPANDED}")
    if await icon.count() > 0:
        await icon.first.click()
    else:
        await header.click()

    async def settled() -> bool:
        return await is_column_group_expanded(ctx, group_id) == expand

    state = "expanded" if expand else "collapsed"
    await wait_until(settled, TOGGLE_TIMEOUT_MS, f'column group "{group_id}" to be {state}')
    ctx.child_logger("column_groups").info("Column group %s %s", group_id, state)


async def expand_column_group(ctx: LocatorContext, group_id: str) -> None:
    await _set_expanded(ctx, group_id, True)


async def collapse_column_group(ctx: LocatorContext, group_id: str) -> None:
    await _set_expanded(ctx, group_id, False)


async def toggle_column_group(ctx: LocatorContext, group_id: str) -> None:
    await _set_expanded(ctx, group_id, not await is_column_group_expanded(ctx, group_id))


async def get_column_group_ids(ctx: LocatorContext) -> list[str]:
    headers = ctx.grid().locator(GROUP_HEADER)
    count = await headers.count()
    group_ids: list[str] = []
    for index in range(count):
        group_id = await headers.nth(index).get_attribute(sel.ATTR_COL_ID)
        if group_id and group_id not in group_ids:
            group_ids.append(group_id)
    return group_ids


async def _span_of(header: Locator) -> int:
    return max(sel.parse_int_attribute(await header.get_attribute("colspan"), default=1), 1)


async def _group_column_window(ctx: LocatorContext, group_id: str) -> tuple[int, int] | None:
    """Start offset and width, in leaf columns, of a group within its header row."""
    group_rows = ctx.grid().locator(GROUP_HEADER_ROW)
    row_count = await group_rows.count()
    for row_index in range(row_count):
        headers = group_rows.nth(row_index).locator(GROUP_HEADER)
        header_count = await headers.count()
        offset = 0
        for index in range(header_count):
            header = headers.nth(index)
            span = await _span_of(header)
            if await header.get_attribute(sel.ATTR_COL_ID) == group_id:
                return offset, span
            offset += span
    return None


async def get_group_visible_columns(ctx: LocatorContext, group_id: str) -> list[str]:
    window = await _group_column_window(ctx, group_id)
    if window is None:
        return []
    start, span = window
    columns = ctx.grid().locator(sel.HEADER_ROW_COLUMN).first.locator(sel.HEADER_CELL)
    total = await columns.count()
    visible: list[str] = []
    for index in range(start, min(start + span, total)):
        column = columns.nth(index)
        if not await column.is_visible():
            continue
        column_id = await column.get_attribute(sel.ATTR_COL_ID)
        if column_id:
            visible.append(column_id)
    return visible


async def get_column_group_states(ctx: LocatorContext) -> list[ColumnGroupState]:
    states: list[ColumnGroupState] = []
    for group_id in await get_column_group_ids(ctx):
        states.append(
            ColumnGroupState(
                group_id=group_id,
                is_expanded=await is_column_group_expanded(ctx, group_id),
                visible_children=tuple(await get_group_visible_columns(ctx, group_id)),
            )
        )
    return states


async def expand_all_column_groups(ctx: LocatorContext) -> None:
    for group_id in await get_column_group_ids(ctx):
        await expand_column_group(ctx, group_id)


async def collapse_all_column_groups(ctx: LocatorContext) -> None:
    for group_id in await get_column_group_ids(ctx):
        await collapse_column_group(ctx, group_id)


async def column_group_display_name(ctx: LocatorContext, group_id: str) -> str:
    label = column_group_header(ctx, group_id).locator(GROUP_LABEL)
    if await label.count() == 0:
        return group_id
    return normalize_text(await label.first.text_content()) or group_id


async def expect_column_group_expanded(ctx: LocatorContext, group_id: str) -> None:
    if not await is_column_group_expanded(ctx, group_id):
        name = await column_group_display_name(ctx, group_id)
        raise GridAssertionError(f'Expected column group "{name}" ({group_id}) to be expanded, but it is collapsed')


async def expect_column_group_collapsed(ctx: LocatorContext, group_id: str) -> None:
    if await is_column_group_expanded(ctx, group_id):
        name = await column_group_display_name(ctx, group_id)
        raise GridAssertionError(f'Expected column group "{name}" ({group_id}) to be collapsed, but it is expanded')
