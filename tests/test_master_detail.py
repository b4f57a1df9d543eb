import logging

import pytest

from fake_dom import FakePage, cell, grid, h, header, row
from gridharness.config import normalize_config
from gridharness.errors import ConfigurationError, GridActionError
from gridharness.locators import create_locator_context
from gridharness.master_detail import (
    MAX_DETAIL_PATH_DEPTH,
    collapse_all_details,
    collapse_detail_path,
    collapse_master_row,
    detail_grid,
    detail_grid_by_path,
    expand_all_details,
    expand_detail_path,
    expand_master_row,
    is_detail_expanded,
)
from gridharness.matchers import by_aria_position, by_stable_id
from gridharness.row_data import get_all_visible_row_data

FAST = {"ready": 500, "row_load": 500, "cell_edit": 500, "scroll": 0}


def detail_wrapper(rows):
    return h(
        ".ag-root-wrapper",
        h(".ag-header", h(".ag-header-row.ag-header-row-column", header("line"))),
        h(".ag-body-viewport", h(".ag-center-cols-container", *rows)),
    )


def master_row(aria, row_id, detail_rows):
    """A master row that renders a detail grid below itself when expanded."""
    contracted = h("span.ag-group-contracted")
    expanded = h("span.ag-group-expanded.ag-hidden")
    element = row(
        aria,
        [cell("expand", contracted, expanded), cell("name", text=row_id or f"master {aria}")],
        row_id=row_id,
        aria_expanded=False,
    )
    region = h(
        ".ag-row.ag-details-row",
        h(".ag-details-grid", detail_wrapper(detail_rows)),
        row_id=f"{row_id}-detail" if row_id else None,
    )

    def expand(event):
        element.set("aria-expanded", "true")
        contracted.add_class("ag-hidden")
        expanded.remove_class("ag-hidden")
        element.insert_after(region)

    def collapse(event):
        element.set("aria-expanded", "false")
        expanded.add_class("ag-hidden")
        contracted.remove_class("ag-hidden")
        region.remove()

    contracted.on("click", expand)
    expanded.on("click", collapse)
    element.icons = (contracted, expanded)
    return element


def _lines(prefix, count=2, start=100):
    return [row(start + index, {"line": f"{prefix} line {index}"}, row_id=f"{prefix}-l{index}") for index in range(count)]


def _ctx(page):
    return create_locator_context(page, normalize_config({"address": "orders", "timeouts": FAST}))


def _orders():
    nested = master_row(50, "1-a", _lines("1-a", start=200))
    masters = [master_row(2, "1", [nested, *_lines("1")]), master_row(3, "2", _lines("2", start=300))]
    page = FakePage(grid("orders", masters, columns=["expand", "name"]))
    return page, _ctx(page), masters, nested


@pytest.mark.asyncio
async def test_expanding_twice_is_a_no_op() -> None:
    page, ctx, _, _ = _orders()

    await expand_master_row(ctx, by_stable_id("2"))
    await expand_master_row(ctx, by_stable_id("2"))

    assert len(page.actions("click")) == 1
    assert await is_detail_expanded(ctx, by_stable_id("2"))
    assert len(page.document.find('.ag-details-row[row-id="2-detail"]')) == 1


@pytest.mark.asyncio
async def test_collapse_master_row_is_idempotent() -> None:
    page, ctx, _, _ = _orders()
    await expand_master_row(ctx, by_stable_id("2"))

    await collapse_master_row(ctx, by_stable_id("2"))
    await collapse_master_row(ctx, by_stable_id("2"))

    assert len(page.actions("click")) == 2
    assert not await is_detail_expanded(ctx, by_stable_id("2"))


@pytest.mark.asyncio
async def test_is_detail_expanded_needs_a_rendered_row() -> None:
    _, ctx, _, _ = _orders()

    with pytest.raises(GridActionError, match='No rendered master row matches rowId="9"'):
        await is_detail_expanded(ctx, by_stable_id("9"))


@pytest.mark.asyncio
async def test_detail_region_presence_decides_without_aria() -> None:
    master = row(2, {"name": "m"}, row_id="m")
    page = FakePage(grid("orders", [master, h(".ag-row.ag-details-row", detail_wrapper([]), row_id="m-detail")]))

    assert await is_detail_expanded(_ctx(page), by_stable_id("m"))


@pytest.mark.asyncio
async def test_detail_grid_is_scoped_to_its_region(caplog) -> None:
    _, ctx, _, _ = _orders()
    await expand_master_row(ctx, by_stable_id("2"))

    with caplog.at_level(logging.INFO, logger="gridharness.grid"):
        detail = await detail_grid(ctx, by_stable_id("2"))

    rows = await get_all_visible_row_data(detail)
    assert [data.cells["line"] for data in rows] == ["2 line 0", "2 line 1"]
    assert detail.depth == 1
    assert detail.parent is ctx
    assert detail.logger.name == "gridharness.grid.detail1"
    assert any("depth 1" in record.getMessage() for record in caplog.records)


@pytest.mark.asyncio
async def test_detail_grid_needs_a_rendered_master() -> None:
    _, ctx, _, _ = _orders()

    with pytest.raises(GridActionError):
        await detail_grid(ctx, by_stable_id("nope"))


@pytest.mark.asyncio
async def test_nested_detail_path() -> None:
    _, ctx, _, _ = _orders()

    deepest = await expand_detail_path(ctx, [by_stable_id("1"), by_stable_id("1-a")])

    assert deepest.depth == 2
    assert deepest.root_context is ctx
    rows = await get_all_visible_row_data(deepest)
    assert [data.stable_id for data in rows] == ["1-a-l0", "1-a-l1"]

    again = await detail_grid_by_path(ctx, [by_stable_id("1"), by_stable_id("1-a")])
    assert [data.stable_id for data in await get_all_visible_row_data(again)] == ["1-a-l0", "1-a-l1"]


@pytest.mark.asyncio
async def test_collapse_detail_path_starts_at_the_deepest_level() -> None:
    page, ctx, masters, nested = _orders()
    await expand_detail_path(ctx, [by_stable_id("1"), by_stable_id("1-a")])

    await collapse_detail_path(ctx, [by_stable_id("1"), by_stable_id("1-a")])

    clicked = [entry[0] for entry in page.actions("click")]
    assert clicked[-2:] == [nested.icons[1], masters[0].icons[1]]
    assert page.document.find(".ag-details-row") == []


@pytest.mark.asyncio
async def test_detail_paths_are_validated() -> None:
    _, ctx, _, _ = _orders()

    with pytest.raises(ConfigurationError):
        await detail_grid_by_path(ctx, [])
    with pytest.raises(ConfigurationError):
        await expand_detail_path(ctx, [])
    with pytest.raises(ConfigurationError, match="limit is 10"):
        await expand_detail_path(ctx, [by_stable_id("1")] * (MAX_DETAIL_PATH_DEPTH + 1))


@pytest.mark.asyncio
async def test_masters_without_row_ids_use_region_order() -> None:
    masters = [master_row(2, None, _lines("a", start=100)), master_row(3, None, _lines("b", start=200))]
    page = FakePage(grid("orders", masters))
    ctx = _ctx(page)
    await expand_master_row(ctx, by_aria_position(2))
    await expand_master_row(ctx, by_aria_position(3))

    second = await detail_grid(ctx, by_aria_position(3))
    first = await detail_grid(ctx, by_aria_position(2))

    assert second.detail_index == 1
    assert [data.stable_id for data in await get_all_visible_row_data(second)] == ["b-l0", "b-l1"]
    assert [data.stable_id for data in await get_all_visible_row_data(first)] == ["a-l0", "a-l1"]


@pytest.mark.asyncio
async def test_expand_and_collapse_all_details() -> None:
    masters = [master_row(2, "1", _lines("1")), master_row(3, "2", _lines("2", start=300))]
    page = FakePage(grid("orders", masters))
    ctx = _ctx(page)

    assert await expand_all_details(ctx) == 2
    assert len(page.document.find(".ag-details-row")) == 2

    assert await collapse_all_details(ctx) == 2
    assert page.document.find(".ag-details-row") == []
