from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from . import selectors as sel
from .errors import GridAssertionError, GridTimeoutError
from .matchers import ByAriaPosition, format_row_matcher
from .models import CellPosition, KeyboardState
from .row_data import find_row, resolve_cell
from .waits import poll_until, wait_until

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .locators import LocatorContext

FOCUS_TIMEOUT_MS = 2000
TAB_SETTLE_TIMEOUT_MS = 1000
HEADER_CELL_FOCUS = ".ag-header-cell-focus"

ARROW_KEYS = {
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
}


def platform_modifier() -> str:
    return "Meta" if sys.platform == "darwin" else "Control"


def keyboard_action_keys() -> dict[str, str]:
    modifier = platform_modifier()
    redo = f"{modifier}+Shift+z" if modifier == "Meta" else f"{modifier}+y"
    return {
        "enter": "Enter",
        "escape": "Escape",
        "tab": "Tab",
        "shift_tab": "Shift+Tab",
        "space": "Space",
        "delete": "Delete",
        "copy": f"{modifier}+c",
        "cut": f"{modifier}+x",
        "paste": f"{modifier}+v",
        "undo": f"{modifier}+z",
        "redo": redo,
        "select_all": f"{modifier}+a",
        "home": "Home",
        "end": "End",
        "ctrl_home": f"{modifier}+Home",
        "ctrl_end": f"{modifier}+End",
        "page_up": "PageUp",
        "page_down": "PageDown",
    }


def _chord(key: str, *, shift: bool = False, ctrl: bool = False, alt: bool = False) -> str:
    modifiers = []
    if ctrl:
        modifiers.append(platform_modifier())
    if shift:
        modifiers.append("Shift")
    if alt:
        modifiers.append("Alt")
    return "+".join([*modifiers, key])


async def _cell_position_in(ctx: LocatorContext, marker: str) -> CellPosition | None:
    rows = ctx.row_elements()
    count = await rows.count()
    for index in range(count):
        row = rows.nth(index)
        marked = row.locator(marker)
        if await marked.count() == 0:
            continue
        column_id = await marked.first.get_attribute(sel.ATTR_COL_ID)
        aria = sel.parse_int_attribute(await row.get_attribute(sel.ATTR_ARIA_ROW_INDEX))
        if column_id and aria > 0:
            return CellPosition(row=ByAriaPosition(aria), column_id=column_id)
    return None


async def get_focused_cell(ctx: LocatorContext) -> CellPosition | None:
    return await _cell_position_in(ctx, sel.CELL_FOCUS)


async def _has_focus(ctx: LocatorContext) -> bool:
    return await ctx.grid().locator(sel.CELL_FOCUS).count() > 0


async def _ensure_focus(ctx: LocatorContext) -> None:
    if not await _has_focus(ctx):
        await ctx.grid().locator(f"{sel.ROW} {sel.CELL}").first.click()


async def _settle(ctx: LocatorContext, previous: CellPosition | None = None, timeout_ms: int = FOCUS_TIMEOUT_MS) -> bool:
    """Wait for a focused cell to exist and, given ``previous``, to have moved."""

    async def settled() -> bool:
        if not await _has_focus(ctx):
            return False
        if previous is None:
            return True
        return await get_focused_cell(ctx) != previous

    return bool(await poll_until(settled, timeout_ms))


async def _press(ctx: LocatorContext, key: str) -> None:
    ctx.child_logger("keyboard").debug("Pressing %s", key)
    await ctx.page.keyboard.press(key)


async def focus_cell(ctx: LocatorContext, position: CellPosition) -> None:
    cell = await resolve_cell(ctx, position.row, position.column_id)
    await cell.click()

    async def focused() -> bool:
        class_attr = await cell.get_attribute("class") or ""
        return sel.CELL_FOCUS.lstrip(".") in class_attr.split()

    await wait_until(focused, FOCUS_TIMEOUT_MS, f"cell {position.column_id} to take focus")


async def navigate(
    ctx: LocatorContext,
    direction: str,
    count: int = 1,
    *,
    shift: bool = False,
    ctrl: bool = False,
    alt: bool = False,
) -> CellPosition | None:
    if direction not in ARROW_KEYS:
        raise ValueError(f"Unknown navigation direction: {direction}")
    await _ensure_focus(ctx)
    chord = _chord(ARROW_KEYS[direction], shift=shift, ctrl=ctrl, alt=alt)
    for _ in range(count):
        await _press(ctx, chord)
        if not await _settle(ctx):
            raise GridTimeoutError(
                f"Timed out after {FOCUS_TIMEOUT_MS}ms waiting for focus after {chord}",
                timeout_ms=FOCUS_TIMEOUT_MS,
                condition=f"focus to settle after {chord}",
            )
    return await get_focused_cell(ctx)


async def perform_keyboard_action(ctx: LocatorContext, action: str) -> None:
    keys = keyboard_action_keys()
    if action not in keys:
        raise ValueError(f"Unknown keyboard action: {action}")
    await _press(ctx, keys[action])
    await _settle(ctx, timeout_ms=TAB_SETTLE_TIMEOUT_MS)


async def _jump(ctx: LocatorContext, key: str) -> CellPosition | None:
    await _ensure_focus(ctx)
    await _press(ctx, key)
    await _settle(ctx)
    return await get_focused_cell(ctx)


async def navigate_to_first_cell(ctx: LocatorContext) -> CellPosition | None:
    return await _jump(ctx, f"{platform_modifier()}+Home")


async def navigate_to_last_cell(ctx: LocatorContext) -> CellPosition | None:
    return await _jump(ctx, f"{platform_modifier()}+End")


async def navigate_to_row_start(ctx: LocatorContext) -> CellPosition | None:
    return await _jump(ctx, "Home")


async def navigate_to_row_end(ctx: LocatorContext) -> CellPosition | None:
    return await _jump(ctx, "End")


async def _tab(ctx: LocatorContext, key: str) -> CellPosition | None:
    previous = await get_focused_cell(ctx)
    await _press(ctx, key)
    await _settle(ctx, previous, TAB_SETTLE_TIMEOUT_MS)
    return await get_focused_cell(ctx)


async def tab_to_next_cell(ctx: LocatorContext) -> CellPosition | None:
    return await _tab(ctx, "Tab")


async def tab_to_previous_cell(ctx: LocatorContext) -> CellPosition | None:
    return await _tab(ctx, "Shift+Tab")


def _editing_cells(ctx: LocatorContext) -> Locator:
    return ctx.grid().locator(sel.CELL_EDITING)


async def is_in_edit_mode(ctx: LocatorContext) -> bool:
    return await _editing_cells(ctx).count() > 0


async def enter_edit_mode(ctx: LocatorContext, use_f2: bool = False) -> None:
    await _press(ctx, "F2" if use_f2 else "Enter")

    async def editing() -> bool:
        return await is_in_edit_mode(ctx)

    await wait_until(editing, FOCUS_TIMEOUT_MS, "a cell to enter edit mode")


async def exit_edit_mode(ctx: LocatorContext, confirm: bool = True) -> None:
    await _press(ctx, "Enter" if confirm else "Escape")

    async def not_editing() -> bool:
        return not await is_in_edit_mode(ctx)

    await wait_until(not_editing, FOCUS_TIMEOUT_MS, "the cell editor to close")


async def type_in_cell(ctx: LocatorContext, text: str, clear_first: bool = True) -> None:
    if await ctx.grid().locator(sel.CELL_EDITOR_INPUT).count() == 0:
        await enter_edit_mode(ctx)
    if clear_first:
        await _press(ctx, f"{platform_modifier()}+a")
    await ctx.page.keyboard.type(text)


async def get_keyboard_state(ctx: LocatorContext) -> KeyboardState:
    editing_cell = await _cell_position_in(ctx, sel.CELL_EDITING)
    return KeyboardState(
        focused_cell=await get_focused_cell(ctx),
        is_editing=await is_in_edit_mode(ctx),
        editing_cell=editing_cell,
        is_header_focused=await ctx.grid().locator(HEADER_CELL_FOCUS).count() > 0,
    )


async def _aria_position_of(ctx: LocatorContext, position: CellPosition) -> int | None:
    if isinstance(position.row, ByAriaPosition):
        return position.row.position
    match = await find_row(ctx, position.row)
    return None if match is None else match.data.aria_position


async def expect_cell_focused(ctx: LocatorContext, position: CellPosition) -> None:
    focused = await get_focused_cell(ctx)
    expected_aria = await _aria_position_of(ctx, position)
    label = f"{format_row_matcher(position.row)}, column {position.column_id}"
    if focused is None:
        raise GridAssertionError(f"Expected cell ({label}) to be focused, but no cell has focus")
    focused_aria = focused.row.position if isinstance(focused.row, ByAriaPosition) else None
    if focused.column_id != position.column_id or focused_aria != expected_aria:
        raise GridAssertionError(
            f"Expected cell ({label}) to be focused, but focus is on "
            f"({format_row_matcher(focused.row)}, column {focused.column_id})"
        )


async def expect_in_edit_mode(ctx: LocatorContext) -> None:
    if not await is_in_edit_mode(ctx):
        raise GridAssertionError("Expected a cell to be in edit mode, but none is editing")


async def expect_not_in_edit_mode(ctx: LocatorContext) -> None:
    editing = await _cell_position_in(ctx, sel.CELL_EDITING)
    if editing is not None or await is_in_edit_mode(ctx):
        where = "" if editing is None else f" ({format_row_matcher(editing.row)}, column {editing.column_id})"
        raise GridAssertionError(f"Expected no cell to be in edit mode, but a cell is editing{where}")
