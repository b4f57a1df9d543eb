from __future__ import annotations

import re
from typing import TYPE_CHECKING

from . import selectors as sel
from .models import GridState, SortEntry
from .row_data import count_selected_rows, count_visible_rows
from .waits import is_loading

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .locators import LocatorContext

_PAGING_TOTAL_PATTERN = re.compile(r"of\s*(\d[\d,]*)|total[:\s]*(\d[\d,]*)", re.IGNORECASE)
_STATUS_TOTAL_PATTERN = re.compile(r"(\d[\d,]*)\s*(rows?|records?|items?|total)", re.IGNORECASE)


async def _panel_text(panel: Locator) -> str | None:
    if await panel.count() == 0:
        return None
    return await panel.first.text_content()


def _parse_count(text: str) -> int:
    return int(text.replace(",", ""))


async def read_panel_total(ctx: LocatorContext) -> int | None:
    """Total rows announced by the paging panel, else the status bar.

    Counts may carry thousands separators ("1 to 100 of 1,234").
    """
    grid = ctx.grid()
    paging_text = await _panel_text(grid.locator(sel.PAGING_PANEL))
    if paging_text:
        match = _PAGING_TOTAL_PATTERN.search(paging_text)
        if match:
            return _parse_count(match.group(1) or match.group(2))

    status_text = await _panel_text(grid.locator(sel.STATUS_BAR))
    if status_text:
        match = _STATUS_TOTAL_PATTERN.search(status_text)
        if match:
            return _parse_count(match.group(1))
    return None


async def get_total_row_count(ctx: LocatorContext) -> int:
    """Total rows from the paging panel, else the status bar, else rendered rows.

    The last fallback undercounts when rows are virtualized out of the DOM.
    """
    total = await read_panel_total(ctx)
    if total is not None:
        return total
    return await count_visible_rows(ctx)


async def get_sort_state(ctx: LocatorContext) -> list[SortEntry]:
    headers = ctx.header_cells()
    count = await headers.count()
    entries: list[SortEntry] = []
    for index in range(count):
        header = headers.nth(index)
        direction = sel.sort_direction_from_aria(await header.get_attribute(sel.ATTR_ARIA_SORT))
        if direction is None:
            continue
        column_id = await header.get_attribute(sel.ATTR_COL_ID)
        if column_id:
            entries.append(SortEntry(column_id=column_id, direction=direction))
    return entries


async def get_grid_state(ctx: LocatorContext) -> GridState:
    sort_entries = await get_sort_state(ctx)
    return GridState(
        total_rows=await get_total_row_count(ctx),
        visible_rows=await count_visible_rows(ctx),
        selected_rows=await count_selected_rows(ctx),
        is_loading=await is_loading(ctx),
        sorted_by=tuple(sort_entries) if sort_entries else None,
    )
