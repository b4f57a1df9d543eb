import pytest

from fake_dom import FakePage, grid, h, header, row
from gridharness.config import normalize_config
from gridharness.locators import create_locator_context
from gridharness.models import GridState, SortEntry
from gridharness.state import get_grid_state, get_sort_state, get_total_row_count


def _ctx(rows=None, headers=None, extra=None):
    root = grid("orders", rows or [], headers=headers or [header("name")], extra=extra)
    return create_locator_context(FakePage(root), normalize_config("orders"))


def _rows(count):
    return [row(aria, {"name": f"Row {aria}"}, row_id=str(aria)) for aria in range(2, 2 + count)]


@pytest.mark.asyncio
async def test_total_rows_come_from_the_paging_panel_first() -> None:
    ctx = _ctx(
        _rows(2),
        extra=[h(".ag-paging-panel", text="1 to 20 of 57"), h(".ag-status-bar", text="99 rows")],
    )

    assert await get_total_row_count(ctx) == 57


@pytest.mark.asyncio
async def test_total_rows_fall_back_to_the_status_bar() -> None:
    ctx = _ctx(_rows(2), extra=[h(".ag-paging-panel", text="Page 1"), h(".ag-status-bar", text="Total: 120 Rows")])

    assert await get_total_row_count(ctx) == 120


@pytest.mark.asyncio
async def test_totals_with_thousands_separators_are_read_whole() -> None:
    paged = _ctx(_rows(2), extra=[h(".ag-paging-panel", text="1 to 100 of 1,234")])
    status = _ctx(_rows(2), extra=[h(".ag-status-bar", text="5,000 rows")])

    assert await get_total_row_count(paged) == 1234
    assert await get_total_row_count(status) == 5000


@pytest.mark.asyncio
async def test_total_rows_fall_back_to_rendered_rows() -> None:
    assert await get_total_row_count(_ctx(_rows(3))) == 3


@pytest.mark.asyncio
async def test_sort_state_reads_header_indicators() -> None:
    ctx = _ctx(
        headers=[
            header("name", sort="none"),
            header("amount", sort="ascending"),
            header("date", sort="descending"),
        ]
    )

    assert await get_sort_state(ctx) == [SortEntry("amount", "asc"), SortEntry("date", "desc")]


@pytest.mark.asyncio
async def test_grid_state_snapshot() -> None:
    rows = _rows(3)
    rows[1].add_class("ag-row-selected")
    ctx = _ctx(
        rows,
        headers=[header("name", sort="descending")],
        extra=[h(".ag-overlay-loading-center", text="Loading")],
    )

    assert await get_grid_state(ctx) == GridState(
        total_rows=3,
        visible_rows=3,
        selected_rows=1,
        is_loading=True,
        sorted_by=(SortEntry("name", "desc"),),
    )


@pytest.mark.asyncio
async def test_unsorted_grid_has_no_sort_entries() -> None:
    state = await get_grid_state(_ctx(_rows(1)))

    assert state.sorted_by is None
    assert state.is_loading is False
