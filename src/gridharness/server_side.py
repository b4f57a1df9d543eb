"""Server-side row model support.

Rows arrive from the server in blocks as the viewport moves. Placeholder
rows (loading cells or skeleton rows) stand in for a block until it lands.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from . import selectors as sel
from .models import LoadedRange, ServerSideState
from .scroll import SET_SCROLL_TOP_JS, viewport_metrics
from .state import read_panel_total
from .waits import is_loading, poll_until, wait_until

if TYPE_CHECKING:
    from .locators import LocatorContext

BLOCK_SIZE = 100
BLOCK_LOAD_TIMEOUT_MS = 30000
DEFAULT_ROW_HEIGHT = 42
LOADING_START_GRACE_MS = 500

LOADING_CELL = ".ag-loading"
SKELETON_ROW = ".ag-skeleton-row"
LOADING_PLACEHOLDER = f"{LOADING_CELL}, {SKELETON_ROW}"
LOADED_ROW = ".ag-row:not(.ag-details-row):not(.ag-loading):not(.ag-skeleton-row)"
TOTAL_ROWS_ATTRIBUTE = "data-total-rows"
REFRESH_BUTTON = '[data-action="refresh"], .ag-tool-panel-button[title*="Refresh"]'


async def _placeholders_gone(ctx: LocatorContext) -> bool:
    return await ctx.grid().locator(LOADING_PLACEHOLDER).count() == 0


async def _wait_for_placeholders(ctx: LocatorContext, timeout_ms: int) -> None:
    async def loading_started() -> bool:
        return not await _placeholders_gone(ctx)

    # a freshly triggered block may not show its placeholders yet
    await poll_until(loading_started, min(LOADING_START_GRACE_MS, timeout_ms))

    async def gone() -> bool:
        return await _placeholders_gone(ctx)

    await wait_until(gone, timeout_ms, "server-side blocks to finish loading")


async def estimate_row_height(ctx: LocatorContext) -> float:
    rows = ctx.rows()
    if await rows.count() == 0:
        return DEFAULT_ROW_HEIGHT
    box = await rows.first.bounding_box()
    if not box or not box.get("height"):
        return DEFAULT_ROW_HEIGHT
    return box["height"]


async def _scroll_to(ctx: LocatorContext, top: float) -> None:
    await ctx.body_viewport().evaluate(SET_SCROLL_TOP_JS, int(top))


async def wait_for_block_load(ctx: LocatorContext, row_index: int, timeout: int | None = None) -> None:
    """Scroll the block holding ``row_index`` (0-based) into range and wait for it."""
    timeout_ms = BLOCK_LOAD_TIMEOUT_MS if timeout is None else timeout
    row_height = await estimate_row_height(ctx)
    await _scroll_to(ctx, row_index * row_height)
    await _wait_for_placeholders(ctx, timeout_ms)

    async def row_loaded() -> bool:
        return await is_row_loaded(ctx, row_index)

    await wait_until(row_loaded, timeout_ms, f"server-side row {row_index} to load")
    ctx.child_logger("server_side").debug("Block containing row %d loaded", row_index)


async def refresh_server_side_data(ctx: LocatorContext, timeout: int | None = None) -> None:
    timeout_ms = BLOCK_LOAD_TIMEOUT_MS if timeout is None else timeout
    refresh = ctx.grid().locator(REFRESH_BUTTON)
    if await refresh.count() > 0:
        await refresh.first.click()
    else:
        # nudging the viewport makes the row model re-request its blocks
        await _scroll_to(ctx, 0)
        await _scroll_to(ctx, 1)
        await _scroll_to(ctx, 0)

    async def loading_started() -> bool:
        return await is_loading(ctx) or not await _placeholders_gone(ctx)

    await poll_until(loading_started, min(LOADING_START_GRACE_MS, timeout_ms))

    async def settled() -> bool:
        return not await is_loading(ctx) and await _placeholders_gone(ctx)

    await wait_until(settled, timeout_ms, "server-side refresh to finish")
    ctx.child_logger("server_side").info("Server-side data refreshed")


async def scroll_to_server_side_row(ctx: LocatorContext, row_index: int, timeout: int | None = None) -> None:
    """Walk the viewport toward ``row_index`` two viewport heights at a time.

    Each intermediate stop waits (bounded) for its blocks so the row model
    is not asked to skip over unloaded ranges.
    """
    timeout_ms = BLOCK_LOAD_TIMEOUT_MS if timeout is None else timeout
    row_height = await estimate_row_height(ctx)
    metrics = await viewport_metrics(ctx.body_viewport())
    target = max(0.0, row_index * row_height - metrics.client_height / 2)
    chunk = max(metrics.client_height * 2, row_height)
    position = float(metrics.scroll_top)
    direction = 1 if target > position else -1
    step_timeout = min(timeout_ms // 5, 5000)

    async def gone() -> bool:
        return await _placeholders_gone(ctx)

    while abs(position - target) > chunk:
        position += direction * chunk
        await _scroll_to(ctx, position)
        await poll_until(gone, step_timeout)

    await _scroll_to(ctx, target)
    await wait_for_block_load(ctx, row_index, timeout_ms)


async def is_row_loaded(ctx: LocatorContext, row_index: int) -> bool:
    row = ctx.grid().locator(sel.attribute_selector(LOADED_ROW, sel.ATTR_ARIA_ROW_INDEX, row_index + 1))
    if await row.count() == 0:
        return False
    cells = row.first.locator(sel.CELL)
    if await cells.count() == 0:
        return False
    return await cells.first.locator(LOADING_CELL).count() == 0


async def wait_for_loaded_rows(ctx: LocatorContext, min_rows: int, timeout: int | None = None) -> None:
    timeout_ms = BLOCK_LOAD_TIMEOUT_MS if timeout is None else timeout

    async def enough() -> bool:
        return await ctx.grid().locator(sel.in_row_containers(LOADED_ROW)).count() >= min_rows

    await wait_until(enough, timeout_ms, f"at least {min_rows} loaded rows")


async def get_loaded_range(ctx: LocatorContext) -> LoadedRange | None:
    rows = ctx.grid().locator(sel.in_row_containers(LOADED_ROW))
    count = await rows.count()
    indices = []
    for index in range(count):
        aria = sel.parse_int_attribute(await rows.nth(index).get_attribute(sel.ATTR_ARIA_ROW_INDEX))
        if aria > 0:
            indices.append(aria - 1)
    if not indices:
        return None
    return LoadedRange(start=min(indices), end=max(indices))


async def get_total_server_rows(ctx: LocatorContext) -> int:
    total = await read_panel_total(ctx)
    if total is not None:
        return total

    indicator = ctx.grid().locator(f"[{TOTAL_ROWS_ATTRIBUTE}]")
    if await indicator.count() > 0:
        value = sel.parse_int_attribute(await indicator.first.get_attribute(TOTAL_ROWS_ATTRIBUTE))
        if value >= 0:
            return value
    return -1


async def get_server_side_state(ctx: LocatorContext) -> ServerSideState:
    loaded = await get_loaded_range(ctx)
    cached_blocks = 0 if loaded is None else math.ceil((loaded.end - loaded.start + 1) / BLOCK_SIZE)
    return ServerSideState(
        is_loading=not await _placeholders_gone(ctx),
        loaded_range=loaded,
        total_server_rows=await get_total_server_rows(ctx),
        cached_blocks=cached_blocks,
    )
