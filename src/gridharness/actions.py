from __future__ import annotations

from typing import TYPE_CHECKING

from . import selectors as sel
from .errors import GridActionError
from .matchers import RowMatcher
from .row_data import is_row_selected, resolve_cell, resolve_row
from .waits import wait_for_cell_editing

if TYPE_CHECKING:
    from .locators import LocatorContext

SETTLE_DELAY_MS = 100
MAX_SORT_CLICKS = 3


async def click_cell(ctx: LocatorContext, matcher: RowMatcher, column_id: str) -> None:
    cell = await resolve_cell(ctx, matcher, column_id)
    await cell.click()


async def right_click_cell(ctx: LocatorContext, matcher: RowMatcher, column_id: str) -> None:
    cell = await resolve_cell(ctx, matcher, column_id)
    await cell.click(button="right")


async def edit_cell(ctx: LocatorContext, matcher: RowMatcher, column_id: str, value: str) -> None:
    """Double-click into the cell editor, replace its content and commit with Enter."""
    cell = await resolve_cell(ctx, matcher, column_id)
    await cell.dblclick()
    await wait_for_cell_editing(cell, ctx.config.timeouts.cell_edit)
    editor = cell.locator(sel.CELL_EDIT_INPUT).first
    await editor.fill(value)
    await editor.press("Enter")
    await ctx.page.wait_for_timeout(SETTLE_DELAY_MS)


async def press_cell_key(ctx: LocatorContext, matcher: RowMatcher, column_id: str, key: str) -> None:
    cell = await resolve_cell(ctx, matcher, column_id)
    await cell.click()
    await cell.press(key)


async def sort_by_column(ctx: LocatorContext, column_id: str, direction: str | None = None) -> None:
    """Click a header until it reports ``direction``.

    Without a direction the header is clicked once. The header cycles through
    none, asc and desc, so three clicks reach any state.
    """
    header = ctx.header_cell(column_id)
    if direction is None:
        await header.click()
        return

    for _ in range(MAX_SORT_CLICKS):
        current = sel.sort_direction_from_aria(await header.get_attribute(sel.ATTR_ARIA_SORT))
        if current == direction:
            ctx.logger.info("Column %s sorted %s", column_id, direction)
            return
        await header.click()
        await ctx.page.wait_for_timeout(SETTLE_DELAY_MS)

    if sel.sort_direction_from_aria(await header.get_attribute(sel.ATTR_ARIA_SORT)) == direction:
        ctx.logger.info("Column %s sorted %s", column_id, direction)
        return
    raise GridActionError(f'Could not sort column "{column_id}" to "{direction}" after {MAX_SORT_CLICKS} attempts')


async def filter_column(ctx: LocatorContext, column_id: str, value: str) -> None:
    await ctx.filter_input(column_id).fill(value)
    await ctx.page.wait_for_timeout(SETTLE_DELAY_MS)


async def clear_filter(ctx: LocatorContext, column_id: str) -> None:
    await ctx.filter_input(column_id).clear()
    await ctx.page.wait_for_timeout(SETTLE_DELAY_MS)


async def clear_all_filters(ctx: LocatorContext) -> None:
    inputs = ctx.grid().locator(f"{sel.FLOATING_FILTER} input")
    count = await inputs.count()
    for index in range(count):
        field = inputs.nth(index)
        if await field.input_value():
            await field.clear()
    await ctx.page.wait_for_timeout(SETTLE_DELAY_MS)


async def select_row(ctx: LocatorContext, matcher: RowMatcher) -> None:
    row = await resolve_row(ctx, matcher)
    checkbox = row.locator(sel.SELECTION_CHECKBOX_INPUT)
    if await checkbox.count() > 0:
        if not await checkbox.first.is_checked():
            await checkbox.first.check()
        return
    if not await is_row_selected(row):
        await row.click()


async def deselect_row(ctx: LocatorContext, matcher: RowMatcher) -> None:
    row = await resolve_row(ctx, matcher)
    checkbox = row.locator(sel.SELECTION_CHECKBOX_INPUT)
    if await checkbox.count() > 0:
        if await checkbox.first.is_checked():
            await checkbox.first.uncheck()
        return
    if await is_row_selected(row):
        await row.click()


async def _select_all_checkbox(ctx: LocatorContext):
    checkbox = ctx.grid().locator(sel.HEADER_SELECT_ALL_INPUT)
    if await checkbox.count() == 0:
        raise GridActionError("Select all checkbox not found. Grid may not have row selection enabled.")
    return checkbox.first


async def select_all_rows(ctx: LocatorContext) -> None:
    checkbox = await _select_all_checkbox(ctx)
    await checkbox.check()


async def deselect_all_rows(ctx: LocatorContext) -> None:
    checkbox = await _select_all_checkbox(ctx)
    await checkbox.uncheck()


async def get_selected_row_ids(ctx: LocatorContext) -> list[str]:
    selected = ctx.grid().locator(sel.in_row_containers(f"{sel.ROW}{sel.ROW_SELECTED}"))
    count = await selected.count()
    ids: list[str] = []
    for index in range(count):
        row_id = await selected.nth(index).get_attribute(sel.ATTR_ROW_ID)
        if row_id and row_id not in ids:
            ids.append(row_id)
    return ids


async def drag_row_to(ctx: LocatorContext, source: RowMatcher, target: RowMatcher) -> None:
    source_row = await resolve_row(ctx, source)
    target_row = await resolve_row(ctx, target)
    handle = source_row.locator(sel.DRAG_HANDLE)
    drag_source = handle.first if await handle.count() > 0 else source_row
    await drag_source.drag_to(target_row)
