from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from . import selectors as sel
from .errors import GridTimeoutError
from .matchers import RowMatcher, format_row_matcher
from .row_data import RowMatch, count_visible_rows, find_row

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .locators import LocatorContext

DEFAULT_POLL_INTERVAL_MS = 50


async def poll_until(
    check: Callable[[], Awaitable[Any]],
    timeout_ms: int,
    interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
) -> Any:
    """Evaluate ``check`` until it returns something truthy or the bound elapses.

    ``check`` always runs at least once. Returns the truthy result, or the
    last falsy one when time runs out.
    """
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max(timeout_ms, 0) / 1000
    while True:
        result = await check()
        if result:
            return result
        remaining = deadline - loop.time()
        if remaining <= 0:
            return result
        await asyncio.sleep(min(interval_ms / 1000, remaining))


async def wait_until(
    check: Callable[[], Awaitable[Any]],
    timeout_ms: int,
    condition: str,
    interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
) -> Any:
    result = await poll_until(check, timeout_ms, interval_ms)
    if not result:
        raise GridTimeoutError(
            f"Timed out after {timeout_ms}ms waiting for {condition}",
            timeout_ms=timeout_ms,
            condition=condition,
        )
    return result


async def is_overlay_visible(overlay: Locator) -> bool:
    if await overlay.count() == 0:
        return False
    if await overlay.locator(sel.OVERLAY_ACTIVE_MARKER).count() > 0:
        return True
    try:
        return await overlay.first.is_visible(timeout=100)
    except Exception:
        # overlays can be detached mid-transition
        return False


async def is_loading(ctx: LocatorContext) -> bool:
    return await is_overlay_visible(ctx.grid().locator(sel.LOADING_OVERLAY))


async def is_no_rows_overlay_visible(ctx: LocatorContext) -> bool:
    return await is_overlay_visible(ctx.grid().locator(sel.NO_ROWS_OVERLAY))


async def _is_present_and_visible(locator: Locator) -> bool:
    if await locator.count() == 0:
        return False
    try:
        return await locator.first.is_visible()
    except Exception:
        return False


async def wait_for_ready(ctx: LocatorContext, timeout: int | None = None) -> None:
    timeout_ms = ctx.config.timeouts.ready if timeout is None else timeout
    loop = asyncio.get_running_loop()
    started = loop.time()

    async def structure_visible() -> bool:
        grid = ctx.grid()
        return await _is_present_and_visible(grid) and await _is_present_and_visible(grid.locator(sel.HEADER))

    await wait_until(structure_visible, timeout_ms, f'grid "{ctx.config.address}" root and header to be visible')
    remaining = max(timeout_ms - int((loop.time() - started) * 1000), 0)
    await _wait_for_loading_overlay_gone(ctx, remaining)
    ctx.logger.debug('Grid "%s" is ready', ctx.config.address)


async def wait_for_data_loaded(ctx: LocatorContext, timeout: int | None = None) -> None:
    timeout_ms = ctx.config.timeouts.row_load if timeout is None else timeout
    await _wait_for_loading_overlay_gone(ctx, timeout_ms)


async def _wait_for_loading_overlay_gone(ctx: LocatorContext, timeout_ms: int) -> None:
    async def overlay_gone() -> bool:
        return not await is_loading(ctx)

    await wait_until(overlay_gone, timeout_ms, f'loading overlay of grid "{ctx.config.address}" to disappear')


async def wait_for_row_count(ctx: LocatorContext, count: int, timeout: int | None = None) -> None:
    timeout_ms = ctx.config.timeouts.row_load if timeout is None else timeout
    observed: list[int] = []

    async def count_matches() -> bool:
        current = await count_visible_rows(ctx)
        observed.append(current)
        return current == count

    try:
        await wait_until(count_matches, timeout_ms, f"{count} visible rows")
    except GridTimeoutError as exc:
        last = observed[-1] if observed else 0
        raise GridTimeoutError(
            f"Timed out after {timeout_ms}ms waiting for {count} visible rows "
            f'in grid "{ctx.config.address}" (last seen: {last})',
            timeout_ms=timeout_ms,
            condition=exc.condition,
        ) from None


async def wait_for_row(ctx: LocatorContext, matcher: RowMatcher, timeout: int | None = None) -> RowMatch:
    timeout_ms = ctx.config.timeouts.row_load if timeout is None else timeout

    async def lookup() -> RowMatch | None:
        return await find_row(ctx, matcher)

    return await wait_until(lookup, timeout_ms, f"row matching {format_row_matcher(matcher)}")


async def wait_for_no_rows_overlay(ctx: LocatorContext, timeout: int | None = None) -> None:
    timeout_ms = ctx.config.timeouts.row_load if timeout is None else timeout

    async def overlay_shown() -> bool:
        return await is_no_rows_overlay_visible(ctx)

    await wait_until(overlay_shown, timeout_ms, f'"no rows" overlay of grid "{ctx.config.address}"')


async def wait_for_cell_editing(cell: Locator, timeout_ms: int) -> None:
    async def editing() -> bool:
        if await cell.count() == 0:
            return False
        class_attr = await cell.get_attribute("class") or ""
        if sel.CELL_EDITING.lstrip(".") in class_attr.split():
            return True
        return await cell.locator(sel.CELL_EDIT_INPUT).count() > 0

    await wait_until(editing, timeout_ms, "cell to enter edit mode")
