from __future__ import annotations

from typing import TYPE_CHECKING, Any

from . import selectors as sel
from .errors import GridActionError, GridAssertionError
from .extraction import normalize_text
from .keyboard import platform_modifier
from .matchers import ByAriaPosition, format_row_matcher
from .models import CellPosition, CellRange, RangeSelectionState
from .row_data import resolve_cell
from .waits import poll_until, wait_until

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .locators import LocatorContext

RANGE_SELECTED = ".ag-cell-range-selected"
RANGE_SELECTED_CLASS = "ag-cell-range-selected"
FILL_HANDLE = ".ag-fill-handle"
FLASHING_CELL = ".ag-cell-data-changed, .ag-cell-flash"

SELECTION_TIMEOUT_MS = 2000
DEFAULT_CELL_WIDTH = 100
DEFAULT_ROW_HEIGHT = 42
DRAG_STEPS = 10


async def _has_range_class(cell: Locator) -> bool:
    if await cell.count() == 0:
        return False
    class_attr = await cell.get_attribute("class") or ""
    return RANGE_SELECTED_CLASS in class_attr.split()


async def _wait_selected(cells: list[Locator], description: str) -> None:
    async def all_selected() -> bool:
        for cell in cells:
            if not await _has_range_class(cell):
                return False
        return True

    await wait_until(all_selected, SELECTION_TIMEOUT_MS, description)


def _describe(position: CellPosition) -> str:
    return f"({format_row_matcher(position.row)}, column {position.column_id})"


async def _midpoint(cell: Locator, position: CellPosition) -> tuple[float, float]:
    box = await cell.bounding_box()
    if not box:
        raise GridActionError(f"Cell {_describe(position)} has no bounding box")
    return box["x"] + box["width"] / 2, box["y"] + box["height"] / 2


async def select_cell_range(
    ctx: LocatorContext,
    cell_range: CellRange,
    *,
    add: bool = False,
    extend: bool = False,
) -> None:
    """Click the start cell, then shift-click the end cell."""
    start = await resolve_cell(ctx, cell_range.start.row, cell_range.start.column_id)
    end = await resolve_cell(ctx, cell_range.end.row, cell_range.end.column_id)
    modifiers = []
    if add:
        modifiers.append(platform_modifier())
    if extend:
        modifiers.append("Shift")

    await start.click(modifiers=modifiers or None)
    end_modifiers = ["Shift", *[item for item in modifiers if item != "Shift"]]
    await end.click(modifiers=end_modifiers)
    await _wait_selected(
        [start, end],
        f"range {_describe(cell_range.start)} to {_describe(cell_range.end)} to be selected",
    )


async def select_cells_by_drag(ctx: LocatorContext, start: CellPosition, end: CellPosition) -> None:
    start_cell = await resolve_cell(ctx, start.row, start.column_id)
    end_cell = await resolve_cell(ctx, end.row, end.column_id)
    start_x, start_y = await _midpoint(start_cell, start)
    end_x, end_y = await _midpoint(end_cell, end)

    mouse = ctx.page.mouse
    await mouse.move(start_x, start_y)
    await mouse.down()
    await mouse.move(end_x, end_y, steps=DRAG_STEPS)
    await mouse.up()
    await _wait_selected([start_cell, end_cell], f"drag selection {_describe(start)} to {_describe(end)}")


async def add_cell_to_selection(ctx: LocatorContext, position: CellPosition) -> None:
    cell = await resolve_cell(ctx, position.row, position.column_id)
    await cell.click(modifiers=[platform_modifier()])
    await _wait_selected([cell], f"cell {_describe(position)} to join the selection")


async def clear_range_selection(ctx: LocatorContext) -> None:
    await ctx.page.keyboard.press("Escape")
    box = await ctx.body_viewport().bounding_box()
    if box:
        await ctx.page.mouse.click(box["x"] + box["width"] - 10, box["y"] + box["height"] - 10)

    async def cleared() -> bool:
        return await ctx.grid().locator(RANGE_SELECTED).count() == 0

    await wait_until(cleared, SELECTION_TIMEOUT_MS, "range selection to clear")


async def _selected_cells(ctx: LocatorContext) -> list[tuple[int, Locator]]:
    """Range-selected cells paired with their row's aria position, in DOM order."""
    rows = ctx.row_elements()
    count = await rows.count()
    found: list[tuple[int, Locator]] = []
    for index in range(count):
        row = rows.nth(index)
        cells = row.locator(RANGE_SELECTED)
        cell_count = await cells.count()
        if cell_count == 0:
            continue
        aria = sel.parse_int_attribute(await row.get_attribute(sel.ATTR_ARIA_ROW_INDEX))
        found.extend((aria, cells.nth(cell_index)) for cell_index in range(cell_count))
    return found


async def get_range_selection_state(ctx: LocatorContext) -> RangeSelectionState:
    positions: list[tuple[int, str]] = []
    for aria, cell in await _selected_cells(ctx):
        column_id = await cell.get_attribute(sel.ATTR_COL_ID)
        if column_id and aria > 0:
            positions.append((aria, column_id))

    if not positions:
        return RangeSelectionState(ranges=(), cell_count=0, row_count=0, column_count=0)

    row_positions = {aria for aria, _ in positions}
    columns = list(dict.fromkeys(column_id for _, column_id in positions))
    bounding = CellRange(
        start=CellPosition(row=ByAriaPosition(min(row_positions)), column_id=columns[0]),
        end=CellPosition(row=ByAriaPosition(max(row_positions)), column_id=columns[-1]),
    )
    return RangeSelectionState(
        ranges=(bounding,),
        cell_count=len(positions),
        row_count=len(row_positions),
        column_count=len(columns),
    )


async def get_selected_range_values(ctx: LocatorContext) -> list[list[Any]]:
    """Selected cell text as rows of values, ordered by aria row then column index."""
    values: dict[tuple[int, int], str] = {}
    for aria_row, cell in await _selected_cells(ctx):
        aria_col = sel.parse_int_attribute(await cell.get_attribute(sel.ATTR_ARIA_COL_INDEX))
        if aria_row > 0 and aria_col > 0:
            values[(aria_row, aria_col)] = normalize_text(await cell.text_content())

    row_keys = sorted({row for row, _ in values})
    col_keys = sorted({col for _, col in values})
    return [[values.get((row, col)) for col in col_keys] for row in row_keys]


async def is_cell_selected(ctx: LocatorContext, position: CellPosition) -> bool:
    cell = await resolve_cell(ctx, position.row, position.column_id)
    return await _has_range_class(cell)


async def expect_range_selected(ctx: LocatorContext, cell_range: CellRange) -> None:
    for corner in (cell_range.start, cell_range.end):
        if not await is_cell_selected(ctx, corner):
            raise GridAssertionError(f"Expected cell {_describe(corner)} to be part of the selected range")


async def _fill_handle_origin(ctx: LocatorContext) -> tuple[float, float]:
    handle = ctx.grid().locator(FILL_HANDLE)
    box = await handle.first.bounding_box() if await handle.count() > 0 else None
    if not box:
        raise GridActionError("Fill handle not found or not visible")
    return box["x"] + box["width"] / 2, box["y"] + box["height"] / 2


async def _drag_fill_handle(ctx: LocatorContext, dx: float, dy: float, steps: int) -> None:
    start_x, start_y = await _fill_handle_origin(ctx)
    mouse = ctx.page.mouse
    await mouse.move(start_x, start_y)
    await mouse.down()
    await mouse.move(start_x + dx, start_y + dy, steps=max(steps, 1))
    await mouse.up()

    async def has_selection() -> bool:
        return await ctx.grid().locator(RANGE_SELECTED).count() > 0

    await wait_until(has_selection, SELECTION_TIMEOUT_MS, "fill handle drag to leave a selected range")


async def fill_down(ctx: LocatorContext, row_count: int) -> None:
    rows = ctx.rows()
    box = await rows.first.bounding_box() if await rows.count() > 0 else None
    row_height = box["height"] if box else DEFAULT_ROW_HEIGHT
    await _drag_fill_handle(ctx, 0, row_count * row_height, row_count * 2)


async def fill_right(ctx: LocatorContext, column_count: int) -> None:
    cells = ctx.grid().locator(f"{sel.ROW} {sel.CELL}")
    box = await cells.first.bounding_box() if await cells.count() > 0 else None
    cell_width = box["width"] if box else DEFAULT_CELL_WIDTH
    await _drag_fill_handle(ctx, column_count * cell_width, 0, column_count * 2)


async def copy_selected_cells(ctx: LocatorContext) -> None:
    await ctx.page.keyboard.press(f"{platform_modifier()}+c")


async def paste_to_selected_cells(ctx: LocatorContext) -> None:
    await ctx.page.keyboard.press(f"{platform_modifier()}+v")
    flashing = ctx.grid().locator(FLASHING_CELL)

    async def flashed() -> bool:
        return await flashing.count() > 0

    async def flash_done() -> bool:
        return await flashing.count() == 0

    # the change flash is cosmetic; its absence is not an error
    if await poll_until(flashed, 500):
        await poll_until(flash_done, 1000)
