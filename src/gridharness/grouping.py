from __future__ import annotations

import re
from typing import TYPE_CHECKING

from . import selectors as sel
from .errors import ExpandLimitError, GridActionError
from .matchers import RowMatcher, format_row_matcher
from .row_data import resolve_row
from .waits import wait_until

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .locators import LocatorContext

MAX_EXPAND_ITERATIONS = 100


async def is_row_expanded(row: Locator) -> bool:
    """Expansion state of a group, tree or master row.

    ``aria-expanded`` wins when present; otherwise the row's expanded
    class or a visible collapse control decides.
    """
    if await row.count() == 0:
        return False
    aria = await row.get_attribute(sel.ATTR_ARIA_EXPANDED)
    if aria is not None:
        return aria == "true"
    class_attr = await row.get_attribute("class") or ""
    if sel.ROW_GROUP_EXPANDED_CLASS in class_attr.split():
        return True
    return await row.locator(sel.not_hidden(sel.MASTER_COLLAPSE_CONTROL)).count() > 0


async def toggle_row(ctx: LocatorContext, matcher: RowMatcher, expand: bool, control_selector: str) -> bool:
    row = await resolve_row(ctx, matcher)
    if await is_row_expanded(row) == expand:
        return False

    control = row.locator(sel.not_hidden(control_selector))
    if await control.count() == 0:
        verb = "expand" if expand else "collapse"
        raise GridActionError(f"Row matching {format_row_matcher(matcher)} has no {verb} control")
    await control.first.click()

    async def settled() -> bool:
        return await is_row_expanded(row) == expand

    state = "expanded" if expand else "collapsed"
    await wait_until(settled, ctx.config.timeouts.row_load, f"row matching {format_row_matcher(matcher)} to be {state}")
    return True


async def expand_group(ctx: LocatorContext, matcher: RowMatcher) -> None:
    if await toggle_row(ctx, matcher, True, sel.GROUP_CONTRACTED):
        ctx.child_logger("grouping").info("Expanded group %s", format_row_matcher(matcher))


async def collapse_group(ctx: LocatorContext, matcher: RowMatcher) -> None:
    if await toggle_row(ctx, matcher, False, sel.GROUP_EXPANDED):
        ctx.child_logger("grouping").info("Collapsed group %s", format_row_matcher(matcher))


async def toggle_all(ctx: LocatorContext, control_selector: str, feature: str, verb: str) -> int:
    """Click the first matching control until none are left.

    Expanding a parent can render new collapsed children, so the control
    set is re-queried on every pass. Returns the number of clicks made.
    """
    logger = ctx.child_logger(feature)
    controls = ctx.grid().locator(sel.not_hidden(control_selector))
    for iteration in range(MAX_EXPAND_ITERATIONS):
        if await controls.count() == 0:
            logger.debug("%s all finished after %d clicks", verb, iteration)
            return iteration
        await controls.first.click()
        await ctx.page.wait_for_timeout(ctx.config.timeouts.scroll)

    if await controls.count() == 0:
        return MAX_EXPAND_ITERATIONS
    logger.warning("%s all stopped at the %d iteration cap with controls remaining", verb, MAX_EXPAND_ITERATIONS)
    raise ExpandLimitError(
        f"{verb} all did not finish within {MAX_EXPAND_ITERATIONS} iterations",
        MAX_EXPAND_ITERATIONS,
    )


async def expand_all_groups(ctx: LocatorContext) -> int:
    return await toggle_all(ctx, sel.GROUP_CONTRACTED, "grouping", "Expand")


async def collapse_all_groups(ctx: LocatorContext) -> int:
    return await toggle_all(ctx, sel.GROUP_EXPANDED, "grouping", "Collapse")


async def get_group_child_count(ctx: LocatorContext, matcher: RowMatcher) -> int:
    row = await resolve_row(ctx, matcher)
    badge = row.locator(sel.GROUP_CHILD_COUNT)
    if await badge.count() == 0:
        return 0
    digits = re.search(r"\d+", await badge.first.text_content() or "")
    return int(digits.group(0)) if digits else 0
