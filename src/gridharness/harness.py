from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Sequence

from . import actions, assertions, column_groups, grouping, keyboard, master_detail, range_selection, scroll
from . import server_side, state, waits
from .config import normalize_config
from .locators import LocatorContext, create_locator_context
from .matchers import RowMatcher
from .row_data import RowMatch, find_closest_match, find_row, get_all_visible_row_data, resolve_cell, resolve_row

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

    from .models import (
        CellPosition,
        CellRange,
        ClosestMatchResult,
        ColumnGroupState,
        GridConfig,
        GridState,
        KeyboardState,
        RangeSelectionState,
        RowData,
        ScrollPosition,
        ServerSideState,
    )


class GridHarness:
    """Test-facing handle on one grid instance.

    Locator accessors are synchronous and lazy. Everything that reads from
    or acts on the page is a coroutine. Detail grids are harnesses of their
    own, chained to the harness of their master grid.
    """

    def __init__(self, page: Page, config: str | GridConfig | Mapping[str, Any]) -> None:
        self.context = create_locator_context(page, normalize_config(config))

    @classmethod
    def _from_context(cls, context: LocatorContext) -> GridHarness:
        harness = cls.__new__(cls)
        harness.context = context
        return harness

    @property
    def page(self) -> Page:
        return self.context.page

    @property
    def config(self) -> GridConfig:
        return self.context.config

    @property
    def logger(self) -> logging.Logger:
        return self.context.logger

    @property
    def depth(self) -> int:
        return self.context.depth

    @property
    def parent(self) -> GridHarness | None:
        if self.context.parent is None:
            return None
        return GridHarness._from_context(self.context.parent)

    @property
    def root(self) -> GridHarness:
        return GridHarness._from_context(self.context.root_context)

    # Locators

    @property
    def grid(self) -> Locator:
        return self.context.grid()

    def visible_rows(self) -> Locator:
        return self.context.rows()

    def row(self, matcher: RowMatcher) -> Locator:
        return self.context.row(matcher)

    def cell(self, matcher: RowMatcher, column_id: str) -> Locator:
        return self.context.cell(matcher, column_id)

    def header_cell(self, column_id: str) -> Locator:
        return self.context.header_cell(column_id)

    def filter_input(self, column_id: str) -> Locator:
        return self.context.filter_input(column_id)

    async def resolve_row(self, matcher: RowMatcher) -> Locator:
        return await resolve_row(self.context, matcher)

    async def resolve_cell(self, matcher: RowMatcher, column_id: str) -> Locator:
        return await resolve_cell(self.context, matcher, column_id)

    # Waits

    async def wait_for_ready(self, timeout: int | None = None) -> None:
        await waits.wait_for_ready(self.context, timeout)

    async def wait_for_data_loaded(self, timeout: int | None = None) -> None:
        await waits.wait_for_data_loaded(self.context, timeout)

    async def wait_for_row_count(self, count: int, timeout: int | None = None) -> None:
        await waits.wait_for_row_count(self.context, count, timeout)

    async def wait_for_row(self, matcher: RowMatcher, timeout: int | None = None) -> Locator:
        match = await waits.wait_for_row(self.context, matcher, timeout)
        return match.locator

    async def wait_for_no_rows_overlay(self, timeout: int | None = None) -> None:
        await waits.wait_for_no_rows_overlay(self.context, timeout)

    async def wait_for_cell_editing(self, matcher: RowMatcher, column_id: str) -> None:
        cell = await resolve_cell(self.context, matcher, column_id)
        await waits.wait_for_cell_editing(cell, self.config.timeouts.cell_edit)

    # Assertions

    async def expect_row_count(
        self,
        count: int | None = None,
        *,
        min: int | None = None,
        max: int | None = None,
        timeout: int | None = None,
    ) -> None:
        await assertions.expect_row_count(self.context, count, min=min, max=max, timeout=timeout)

    async def expect_row_contains(
        self,
        values: Mapping[str, Any] | None = None,
        *,
        timeout: int | None = None,
        **columns: Any,
    ) -> RowData:
        return await assertions.expect_row_contains(self.context, {**(values or {}), **columns}, timeout)

    async def expect_row_not_contains(
        self,
        values: Mapping[str, Any] | None = None,
        *,
        timeout: int | None = None,
        **columns: Any,
    ) -> None:
        await assertions.expect_row_not_contains(self.context, {**(values or {}), **columns}, timeout)

    async def expect_cell_value(self, matcher: RowMatcher, column_id: str, expected: Any, *, exact: bool = False) -> None:
        await assertions.expect_cell_value(self.context, matcher, column_id, expected, exact=exact)

    async def expect_sorted_by(self, column_id: str, direction: str) -> None:
        await assertions.expect_sorted_by(self.context, column_id, direction)

    async def expect_empty(self, timeout: int | None = None) -> None:
        await assertions.expect_empty(self.context, timeout)

    async def expect_row_selected(self, matcher: RowMatcher) -> None:
        await assertions.expect_row_selected(self.context, matcher)

    async def expect_no_rows_overlay(self) -> None:
        await assertions.expect_no_rows_overlay(self.context)

    # Actions

    async def click_cell(self, matcher: RowMatcher, column_id: str) -> None:
        await actions.click_cell(self.context, matcher, column_id)

    async def right_click_cell(self, matcher: RowMatcher, column_id: str) -> None:
        await actions.right_click_cell(self.context, matcher, column_id)

    async def edit_cell(self, matcher: RowMatcher, column_id: str, value: str) -> None:
        await actions.edit_cell(self.context, matcher, column_id, value)

    async def press_cell_key(self, matcher: RowMatcher, column_id: str, key: str) -> None:
        await actions.press_cell_key(self.context, matcher, column_id, key)

    async def sort_by_column(self, column_id: str, direction: str | None = None) -> None:
        await actions.sort_by_column(self.context, column_id, direction)

    async def filter_column(self, column_id: str, value: str) -> None:
        await actions.filter_column(self.context, column_id, value)

    async def clear_filter(self, column_id: str) -> None:
        await actions.clear_filter(self.context, column_id)

    async def clear_all_filters(self) -> None:
        await actions.clear_all_filters(self.context)

    async def select_row(self, matcher: RowMatcher) -> None:
        await actions.select_row(self.context, matcher)

    async def deselect_row(self, matcher: RowMatcher) -> None:
        await actions.deselect_row(self.context, matcher)

    async def select_all_rows(self) -> None:
        await actions.select_all_rows(self.context)

    async def deselect_all_rows(self) -> None:
        await actions.deselect_all_rows(self.context)

    async def drag_row_to(self, source: RowMatcher, target: RowMatcher) -> None:
        await actions.drag_row_to(self.context, source, target)

    # Scrolling

    async def scroll_to_row(self, matcher: RowMatcher) -> Locator:
        return await scroll.scroll_to_row(self.context, matcher)

    async def scroll_to_column(self, column_id: str) -> None:
        await scroll.scroll_to_column(self.context, column_id)

    async def scroll_to_top(self) -> None:
        await scroll.scroll_to_top(self.context)

    async def scroll_to_bottom(self) -> None:
        await scroll.scroll_to_bottom(self.context)

    async def get_scroll_position(self) -> ScrollPosition:
        return await scroll.get_scroll_position(self.context)

    async def set_scroll_position(self, top: int | None = None, left: int | None = None) -> None:
        await scroll.set_scroll_position(self.context, top, left)

    # Data

    async def find_row(self, matcher: RowMatcher) -> RowMatch | None:
        return await find_row(self.context, matcher)

    async def get_row_data(self, matcher: RowMatcher) -> RowData | None:
        match = await find_row(self.context, matcher)
        return None if match is None else match.data

    async def get_cell_value(self, matcher: RowMatcher, column_id: str) -> Any:
        match = await find_row(self.context, matcher)
        return None if match is None else match.data.cells.get(column_id)

    async def get_all_visible_row_data(self) -> list[RowData]:
        return await get_all_visible_row_data(self.context)

    async def find_closest_match(self, expected: Mapping[str, Any]) -> ClosestMatchResult | None:
        return await find_closest_match(self.context, expected)

    async def get_grid_state(self) -> GridState:
        return await state.get_grid_state(self.context)

    async def get_selected_row_ids(self) -> list[str]:
        return await actions.get_selected_row_ids(self.context)

    # Grouping and tree data

    async def expand_group(self, matcher: RowMatcher) -> None:
        await grouping.expand_group(self.context, matcher)

    async def collapse_group(self, matcher: RowMatcher) -> None:
        await grouping.collapse_group(self.context, matcher)

    async def expand_all_groups(self) -> int:
        return await grouping.expand_all_groups(self.context)

    async def collapse_all_groups(self) -> int:
        return await grouping.collapse_all_groups(self.context)

    async def get_group_child_count(self, matcher: RowMatcher) -> int:
        return await grouping.get_group_child_count(self.context, matcher)

    # Master/detail

    async def expand_master_row(self, matcher: RowMatcher) -> None:
        await master_detail.expand_master_row(self.context, matcher)

    async def collapse_master_row(self, matcher: RowMatcher) -> None:
        await master_detail.collapse_master_row(self.context, matcher)

    async def is_detail_expanded(self, matcher: RowMatcher) -> bool:
        return await master_detail.is_detail_expanded(self.context, matcher)

    async def detail_grid(self, matcher: RowMatcher) -> GridHarness:
        return GridHarness._from_context(await master_detail.detail_grid(self.context, matcher))

    async def detail_grid_by_path(self, path: Sequence[RowMatcher]) -> GridHarness:
        return GridHarness._from_context(await master_detail.detail_grid_by_path(self.context, path))

    async def expand_detail_path(self, path: Sequence[RowMatcher]) -> GridHarness:
        return GridHarness._from_context(await master_detail.expand_detail_path(self.context, path))

    async def collapse_detail_path(self, path: Sequence[RowMatcher]) -> None:
        await master_detail.collapse_detail_path(self.context, path)

    async def expand_all_details(self) -> int:
        return await master_detail.expand_all_details(self.context)

    async def collapse_all_details(self) -> int:
        return await master_detail.collapse_all_details(self.context)

    # Server-side row model

    async def wait_for_block_load(self, row_index: int, timeout: int | None = None) -> None:
        await server_side.wait_for_block_load(self.context, row_index, timeout)

    async def refresh_server_side_data(self, timeout: int | None = None) -> None:
        await server_side.refresh_server_side_data(self.context, timeout)

    async def scroll_to_server_side_row(self, row_index: int, timeout: int | None = None) -> None:
        await server_side.scroll_to_server_side_row(self.context, row_index, timeout)

    async def is_row_loaded(self, row_index: int) -> bool:
        return await server_side.is_row_loaded(self.context, row_index)

    async def wait_for_loaded_rows(self, min_rows: int, timeout: int | None = None) -> None:
        await server_side.wait_for_loaded_rows(self.context, min_rows, timeout)

    async def get_server_side_state(self) -> ServerSideState:
        return await server_side.get_server_side_state(self.context)

    # Range selection

    async def select_cell_range(self, cell_range: CellRange, *, add: bool = False, extend: bool = False) -> None:
        await range_selection.select_cell_range(self.context, cell_range, add=add, extend=extend)

    async def select_cells_by_drag(self, start: CellPosition, end: CellPosition) -> None:
        await range_selection.select_cells_by_drag(self.context, start, end)

    async def add_cell_to_selection(self, position: CellPosition) -> None:
        await range_selection.add_cell_to_selection(self.context, position)

    async def clear_range_selection(self) -> None:
        await range_selection.clear_range_selection(self.context)

    async def get_range_selection_state(self) -> RangeSelectionState:
        return await range_selection.get_range_selection_state(self.context)

    async def get_selected_range_values(self) -> list[list[Any]]:
        return await range_selection.get_selected_range_values(self.context)

    async def expect_range_selected(self, cell_range: CellRange) -> None:
        await range_selection.expect_range_selected(self.context, cell_range)

    async def is_cell_selected(self, position: CellPosition) -> bool:
        return await range_selection.is_cell_selected(self.context, position)

    async def fill_down(self, row_count: int) -> None:
        await range_selection.fill_down(self.context, row_count)

    async def fill_right(self, column_count: int) -> None:
        await range_selection.fill_right(self.context, column_count)

    async def copy_selected_cells(self) -> None:
        await range_selection.copy_selected_cells(self.context)

    async def paste_to_selected_cells(self) -> None:
        await range_selection.paste_to_selected_cells(self.context)

    # Keyboard

    async def focus_cell(self, position: CellPosition) -> None:
        await keyboard.focus_cell(self.context, position)

    async def get_focused_cell(self) -> CellPosition | None:
        return await keyboard.get_focused_cell(self.context)

    async def navigate(
        self,
        direction: str,
        count: int = 1,
        *,
        shift: bool = False,
        ctrl: bool = False,
        alt: bool = False,
    ) -> CellPosition | None:
        return await keyboard.navigate(self.context, direction, count, shift=shift, ctrl=ctrl, alt=alt)

    async def perform_keyboard_action(self, action: str) -> None:
        await keyboard.perform_keyboard_action(self.context, action)

    async def navigate_to_first_cell(self) -> CellPosition | None:
        return await keyboard.navigate_to_first_cell(self.context)

    async def navigate_to_last_cell(self) -> CellPosition | None:
        return await keyboard.navigate_to_last_cell(self.context)

    async def navigate_to_row_start(self) -> CellPosition | None:
        return await keyboard.navigate_to_row_start(self.context)

    async def navigate_to_row_end(self) -> CellPosition | None:
        return await keyboard.navigate_to_row_end(self.context)

    async def tab_to_next_cell(self) -> CellPosition | None:
        return await keyboard.tab_to_next_cell(self.context)

    async def tab_to_previous_cell(self) -> CellPosition | None:
        return await keyboard.tab_to_previous_cell(self.context)

    async def enter_edit_mode(self, use_f2: bool = False) -> None:
        await keyboard.enter_edit_mode(self.context, use_f2)

    async def exit_edit_mode(self, confirm: bool = True) -> None:
        await keyboard.exit_edit_mode(self.context, confirm)

    async def type_in_cell(self, text: str, clear_first: bool = True) -> None:
        await keyboard.type_in_cell(self.context, text, clear_first)

    async def is_in_edit_mode(self) -> bool:
        return await keyboard.is_in_edit_mode(self.context)

    async def get_keyboard_state(self) -> KeyboardState:
        return await keyboard.get_keyboard_state(self.context)

    async def expect_cell_focused(self, position: CellPosition) -> None:
        await keyboard.expect_cell_focused(self.context, position)

    async def expect_in_edit_mode(self) -> None:
        await keyboard.expect_in_edit_mode(self.context)

    async def expect_not_in_edit_mode(self) -> None:
        await keyboard.expect_not_in_edit_mode(self.context)

    # Column groups

    def column_group_header(self, group_id: str) -> Locator:
        return column_groups.column_group_header(self.context, group_id)

    async def expand_column_group(self, group_id: str) -> None:
        await column_groups.expand_column_group(self.context, group_id)

    async def collapse_column_group(self, group_id: str) -> None:
        await column_groups.collapse_column_group(self.context, group_id)

    async def toggle_column_group(self, group_id: str) -> None:
        await column_groups.toggle_column_group(self.context, group_id)

    async def is_column_group_expanded(self, group_id: str) -> bool:
        return await column_groups.is_column_group_expanded(self.context, group_id)

    async def get_column_group_ids(self) -> list[str]:
        return await column_groups.get_column_group_ids(self.context)

    async def get_group_visible_columns(self, group_id: str) -> list[str]:
        return await column_groups.get_group_visible_columns(self.context, group_id)

    async def get_column_group_states(self) -> list[ColumnGroupState]:
        return await column_groups.get_column_group_states(self.context)

    async def expand_all_column_groups(self) -> None:
        await column_groups.expand_all_column_groups(self.context)

    async def collapse_all_column_groups(self) -> None:
        await column_groups.collapse_all_column_groups(self.context)

    async def expect_column_group_expanded(self, group_id: str) -> None:
        await column_groups.expect_column_group_expanded(self.context, group_id)

    async def expect_column_group_collapsed(self, group_id: str) -> None:
        await column_groups.expect_column_group_collapsed(self.context, group_id)


def grid_harness(page: Page, config: str | GridConfig | Mapping[str, Any]) -> GridHarness:
    return GridHarness(page, config)
