"""Viewport scrolling for virtualized rows and columns.

Rows and columns outside the rendered window do not exist in the DOM, so
reaching them means moving the body viewport step by step and re-checking
after each step.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

from . import selectors as sel
from .errors import GridActionError
from .matchers import ByAriaPosition, RowMatcher, format_row_matcher
from .models import ScrollPosition, ViewportMetrics
from .row_data import find_row

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .locators import LocatorContext

VIEWPORT_METRICS_JS = (
    "(el) => ({scrollTop: el.scrollTop, scrollLeft: el.scrollLeft, clientHeight: el.clientHeight,"
    " clientWidth: el.clientWidth, scrollHeight: el.scrollHeight, scrollWidth: el.scrollWidth})"
)
SET_SCROLL_TOP_JS = "(el, value) => { el.scrollTop = value; }"
SET_SCROLL_LEFT_JS = "(el, value) => { el.scrollLeft = value; }"

MAX_SCROLL_STEPS = 100
ROW_STEP_RATIO = 0.8
COLUMN_STEP_RATIO = 0.5


def _metrics_from(raw: Mapping[str, Any] | None) -> ViewportMetrics:
    raw = raw or {}
    return ViewportMetrics(
        scroll_top=int(raw.get("scrollTop") or 0),
        scroll_left=int(raw.get("scrollLeft") or 0),
        client_height=int(raw.get("clientHeight") or 0),
        client_width=int(raw.get("clientWidth") or 0),
        scroll_height=int(raw.get("scrollHeight") or 0),
        scroll_width=int(raw.get("scrollWidth") or 0),
    )


async def viewport_metrics(viewport: Locator) -> ViewportMetrics:
    return _metrics_from(await viewport.evaluate(VIEWPORT_METRICS_JS))


async def _set_scroll_top(ctx: LocatorContext, value: int) -> None:
    await ctx.body_viewport().evaluate(SET_SCROLL_TOP_JS, value)
    await ctx.page.wait_for_timeout(ctx.config.timeouts.scroll)


async def _set_scroll_left(ctx: LocatorContext, value: int) -> None:
    await ctx.body_viewport().evaluate(SET_SCROLL_LEFT_JS, value)
    await ctx.page.wait_for_timeout(ctx.config.timeouts.scroll)


async def _rendered_aria_bounds(ctx: LocatorContext) -> tuple[int, int] | None:
    rows = ctx.rows()
    count = await rows.count()
    positions = []
    for index in range(count):
        value = sel.parse_int_attribute(await rows.nth(index).get_attribute(sel.ATTR_ARIA_ROW_INDEX))
        if value > 0:
            positions.append(value)
    if not positions:
        return None
    return min(positions), max(positions)


async def _step_direction(ctx: LocatorContext, matcher: RowMatcher) -> int:
    if not isinstance(matcher, ByAriaPosition):
        return 1
    bounds = await _rendered_aria_bounds(ctx)
    if bounds is not None and matcher.position < bounds[0]:
        return -1
    return 1


async def scroll_to_row(ctx: LocatorContext, matcher: RowMatcher) -> Locator:
    """Scroll until a row matching ``matcher`` is rendered and return it.

    Aria positions steer the direction of travel. Other matchers restart
    from the top and walk down the grid.
    """
    match = await find_row(ctx, matcher)
    if match is not None:
        await match.locator.scroll_into_view_if_needed()
        return match.locator

    if not isinstance(matcher, ByAriaPosition):
        await _set_scroll_top(ctx, 0)

    viewport = ctx.body_viewport()
    for step in range(MAX_SCROLL_STEPS):
        match = await find_row(ctx, matcher)
        if match is not None:
            ctx.logger.debug("Row %s rendered after %d scroll steps", format_row_matcher(matcher), step)
            await match.locator.scroll_into_view_if_needed()
            return match.locator

        metrics = await viewport_metrics(viewport)
        distance = max(int(metrics.client_height * ROW_STEP_RATIO), 1)
        direction = await _step_direction(ctx, matcher)
        target = min(max(metrics.scroll_top + direction * distance, 0), metrics.max_scroll_top)
        if target == metrics.scroll_top:
            break
        await _set_scroll_top(ctx, target)

    match = await find_row(ctx, matcher)
    if match is not None:
        await match.locator.scroll_into_view_if_needed()
        return match.locator
    raise GridActionError(f"Could not scroll to row matching {format_row_matcher(matcher)}")


async def scroll_to_column(ctx: LocatorContext, column_id: str) -> None:
    header = ctx.grid().locator(sel.build_header_cell_selector(column_id))
    viewport = ctx.body_viewport()
    for _ in range(MAX_SCROLL_STEPS):
        if await header.count() > 0:
            await header.first.scroll_into_view_if_needed()
            return
        metrics = await viewport_metrics(viewport)
        distance = max(int(metrics.client_width * COLUMN_STEP_RATIO), 1)
        target = min(metrics.scroll_left + distance, metrics.max_scroll_left)
        if target == metrics.scroll_left:
            break
        await _set_scroll_left(ctx, target)
    if await header.count() > 0:
        await header.first.scroll_into_view_if_needed()
        return
    raise GridActionError(f'Could not scroll to column "{column_id}"')


async def scroll_to_top(ctx: LocatorContext) -> None:
    await _set_scroll_top(ctx, 0)


async def scroll_to_bottom(ctx: LocatorContext) -> None:
    metrics = await viewport_metrics(ctx.body_viewport())
    await _set_scroll_top(ctx, metrics.max_scroll_top)


async def get_scroll_position(ctx: LocatorContext) -> ScrollPosition:
    metrics = await viewport_metrics(ctx.body_viewport())
    return ScrollPosition(top=metrics.scroll_top, left=metrics.scroll_left)


async def set_scroll_position(ctx: LocatorContext, top: int | None = None, left: int | None = None) -> None:
    if top is not None:
        await _set_scroll_top(ctx, top)
    if left is not None:
        await _set_scroll_left(ctx, left)
