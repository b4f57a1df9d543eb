from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from . import selectors as sel
from .errors import GridActionError
from .extraction import extract_cell_value
from .matchers import (
    ByAriaPosition,
    ByStableId,
    ByViewportIndex,
    RowMatcher,
    format_row_matcher,
    is_direct_matcher,
    matches_row,
)
from .models import ClosestMatchResult, RowData
from .scoring import closest_match

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .locators import LocatorContext


@dataclass(frozen=True, slots=True)
class RowMatch:
    locator: Locator
    data: RowData


async def _read_cell(ctx: LocatorContext, cell: Locator) -> tuple[str | None, Any]:
    column_id = await cell.get_attribute(sel.ATTR_COL_ID)
    if not column_id:
        return None, None
    value = await extract_cell_value(cell, ctx.config.column(column_id), ctx.config.renderer(column_id))
    return column_id, value


async def _pinned_parts(ctx: LocatorContext, aria_position: int, stable_id: str | None) -> list[Locator]:
    """Elements drawing the same row inside the grid's own pinned containers."""
    if aria_position > 0:
        part_selector = sel.build_row_selector(ByAriaPosition(aria_position))
    elif stable_id:
        part_selector = sel.build_row_selector(ByStableId(stable_id))
    else:
        return []
    parts = []
    for container in sel.PINNED_CONTAINERS:
        part = ctx.body_viewport().locator(container).first.locator(part_selector).first
        if await part.count() > 0:
            parts.append(part)
    return parts


async def _read_cells(ctx: LocatorContext, part: Locator) -> list[tuple[str | None, Any]]:
    cells = part.locator(sel.CELL)
    cell_count = await cells.count()
    return await asyncio.gather(*(_read_cell(ctx, cells.nth(index)) for index in range(cell_count)))


async def get_row_data(ctx: LocatorContext, row: Locator) -> RowData:
    """Read one rendered row, merging the cells of its pinned parts.

    Cells are read concurrently within each part.
    """
    row_index = await row.get_attribute(sel.ATTR_ROW_INDEX)
    aria_index = await row.get_attribute(sel.ATTR_ARIA_ROW_INDEX)
    stable_id = await row.get_attribute(sel.ATTR_ROW_ID)
    class_attr = await row.get_attribute("class") or ""
    expanded = await row.get_attribute(sel.ATTR_ARIA_EXPANDED)
    level = await row.get_attribute(sel.ATTR_ARIA_LEVEL)

    aria_position = sel.parse_int_attribute(aria_index)
    pairs = await _read_cells(ctx, row)
    for part in await _pinned_parts(ctx, aria_position, stable_id or None):
        pairs.extend(await _read_cells(ctx, part))

    return RowData(
        viewport_index=sel.parse_int_attribute(row_index),
        aria_position=aria_position,
        cells={column_id: value for column_id, value in pairs if column_id},
        stable_id=stable_id or None,
        is_group_row=sel.ROW_GROUP_CLASS in class_attr.split(),
        is_expanded=None if expanded is None else expanded == "true",
        group_level=None if level is None else sel.parse_int_attribute(level),
    )


async def get_all_visible_row_data(ctx: LocatorContext) -> list[RowData]:
    rows = ctx.rows()
    count = await rows.count()
    return [await get_row_data(ctx, rows.nth(index)) for index in range(count)]


async def find_row(ctx: LocatorContext, matcher: RowMatcher) -> RowMatch | None:
    row_selector = sel.build_row_selector(matcher)
    if row_selector is not None:
        candidates = ctx.row(matcher)
        if await candidates.count() == 0:
            ctx.logger.debug("No rendered row for %s", format_row_matcher(matcher))
            return None
        row = candidates.first
        return RowMatch(row, await get_row_data(ctx, row))

    rows = ctx.rows()
    count = await rows.count()
    ctx.logger.debug("Scanning %d rendered rows for %s", count, format_row_matcher(matcher))
    for index in range(count):
        row = rows.nth(index)
        data = await get_row_data(ctx, row)
        if matches_row(data, matcher):
            return RowMatch(row, data)
    return None


def direct_matcher_for(data: RowData) -> RowMatcher | None:
    """The most specific direct matcher that addresses an already-read row."""
    if data.aria_position > 0:
        return ByAriaPosition(data.aria_position)
    if data.stable_id:
        return ByStableId(data.stable_id)
    if data.viewport_index >= 0:
        return ByViewportIndex(data.viewport_index)
    return None


async def resolve_row(ctx: LocatorContext, matcher: RowMatcher) -> Locator:
    """Locator for a row about to be acted on; derived matchers are resolved now."""
    if is_direct_matcher(matcher):
        return ctx.row(matcher).first
    match = await find_row(ctx, matcher)
    if match is None:
        raise GridActionError(f"No rendered row matches {format_row_matcher(matcher)}")
    return match.locator


async def resolve_cell(ctx: LocatorContext, matcher: RowMatcher, column_id: str) -> Locator:
    if is_direct_matcher(matcher):
        return ctx.cell(matcher, column_id)
    match = await find_row(ctx, matcher)
    if match is None:
        raise GridActionError(f"No rendered row matches {format_row_matcher(matcher)}")
    direct = direct_matcher_for(match.data)
    if direct is None:
        return ctx.cell_in_row(match.locator, column_id)
    return ctx.cell(direct, column_id)


async def find_closest_match(ctx: LocatorContext, expected: Mapping[str, Any]) -> ClosestMatchResult | None:
    return closest_match(await get_all_visible_row_data(ctx), expected)


async def count_visible_rows(ctx: LocatorContext) -> int:
    return await ctx.rows().count()


async def count_selected_rows(ctx: LocatorContext) -> int:
    return await ctx.grid().locator(sel.in_row_containers(f"{sel.ROW}{sel.ROW_SELECTED}")).count()


async def is_row_selected(row: Locator) -> bool:
    class_attr = await row.get_attribute("class") or ""
    if sel.ROW_SELECTED_CLASS in class_attr.split():
        return True
    return await row.get_attribute(sel.ATTR_ARIA_SELECTED) == "true"
