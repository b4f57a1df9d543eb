import logging

import pytest

from fake_dom import FakePage, cell, grid, h, row
from gridharness.config import normalize_config
from gridharness.errors import ExpandLimitError, GridActionError
from gridharness.grouping import (
    MAX_EXPAND_ITERATIONS,
    collapse_all_groups,
    collapse_group,
    expand_all_groups,
    expand_group,
    get_group_child_count,
    is_row_expanded,
)
from gridharness.locators import create_locator_context
from gridharness.matchers import by_cell_values, by_stable_id

FAST = {"ready": 500, "row_load": 500, "cell_edit": 500, "scroll": 0}


def group_row(aria, row_id, name, children=(), level=0):
    """A group row whose toggle icons insert or remove its child rows."""
    contracted = h("span.ag-group-contracted")
    expanded = h("span.ag-group-expanded.ag-hidden")
    element = row(
        aria,
        [
            cell(
                "group",
                contracted,
                expanded,
                h("span.ag-group-value", text=name),
                h("span.ag-group-child-count", text=f"({len(children)})"),
            )
        ],
        row_id=row_id,
        classes="ag-row-group",
        aria_expanded=False,
        aria_level=level,
    )

    def expand(event):
        element.set("aria-expanded", "true")
        contracted.add_class("ag-hidden")
        expanded.remove_class("ag-hidden")
        anchor = element
        for child in children:
            anchor.insert_after(child)
            anchor = child

    def collapse(event):
        element.set("aria-expanded", "false")
        expanded.add_class("ag-hidden")
        contracted.remove_class("ag-hidden")
        for child in children:
            if child.get("aria-expanded") == "true":
                child.collapse_children(event)
            child.remove()

    contracted.on("click", expand)
    expanded.on("click", collapse)
    element.collapse_children = collapse
    return element


def _ctx(page):
    return create_locator_context(page, normalize_config({"address": "orders", "timeouts": FAST}))


def _regions():
    countries = [row(10 + index, {"group": name}, row_id=f"c-{name}", aria_level=2) for index, name in enumerate(["France", "Spain"])]
    west = group_row(5, "g-west", "West", countries, level=1)
    europe = group_row(2, "g-europe", "Europe", [west])
    asia = group_row(3, "g-asia", "Asia", [row(20, {"group": "Japan"}, row_id="c-japan", aria_level=1)])
    page = FakePage(grid("orders", [europe, asia]))
    return page, _ctx(page)


@pytest.mark.asyncio
async def test_expand_group_is_idempotent() -> None:
    page, ctx = _regions()

    await expand_group(ctx, by_stable_id("g-asia"))
    await expand_group(ctx, by_stable_id("g-asia"))

    assert len(page.actions("click")) == 1
    assert await ctx.row(by_stable_id("c-japan")).count() == 1
    assert await is_row_expanded(ctx.row(by_stable_id("g-asia")))


@pytest.mark.asyncio
async def test_collapse_group() -> None:
    page, ctx = _regions()
    await expand_group(ctx, by_cell_values(group="Asia(1)"))

    await collapse_group(ctx, by_stable_id("g-asia"))
    await collapse_group(ctx, by_stable_id("g-asia"))

    assert len(page.actions("click")) == 2
    assert await ctx.row(by_stable_id("c-japan")).count() == 0


@pytest.mark.asyncio
async def test_expand_all_groups_reaches_groups_revealed_by_their_parents(caplog) -> None:
    page, ctx = _regions()

    with caplog.at_level(logging.DEBUG, logger="gridharness.grid"):
        clicks = await expand_all_groups(ctx)

    assert clicks == 3
    assert await ctx.row(by_stable_id("c-France")).count() == 1
    assert await ctx.row(by_stable_id("c-japan")).count() == 1
    assert any(record.name == "gridharness.grid.grouping" for record in caplog.records)


@pytest.mark.asyncio
async def test_collapse_all_groups() -> None:
    page, ctx = _regions()
    await expand_all_groups(ctx)

    clicks = await collapse_all_groups(ctx)

    assert clicks >= 1
    assert await ctx.rows().count() == 2


@pytest.mark.asyncio
async def test_expand_all_raises_when_controls_never_go_away(caplog) -> None:
    stuck = row(2, [cell("group", h("span.ag-group-contracted"))], row_id="stuck", classes="ag-row-group")
    page = FakePage(grid("orders", [stuck]))

    with caplog.at_level(logging.WARNING, logger="gridharness.grid"):
        with pytest.raises(ExpandLimitError) as excinfo:
            await expand_all_groups(_ctx(page))

    assert excinfo.value.iterations == MAX_EXPAND_ITERATIONS
    assert len(page.actions("click")) == MAX_EXPAND_ITERATIONS
    assert any(record.levelno == logging.WARNING for record in caplog.records)


@pytest.mark.asyncio
async def test_group_without_a_toggle_control() -> None:
    page = FakePage(grid("orders", [row(2, {"group": "Leaf"}, row_id="leaf", aria_expanded=False)]))

    with pytest.raises(GridActionError, match="has no expand control"):
        await expand_group(_ctx(page), by_stable_id("leaf"))


@pytest.mark.asyncio
async def test_expansion_falls_back_to_class_and_controls() -> None:
    page = FakePage(
        grid(
            "orders",
            [
                row(2, {"group": "A"}, row_id="by-class", classes="ag-row-group ag-row-group-expanded"),
                row(3, [cell("group", h("span.ag-group-expanded"))], row_id="by-control"),
                row(4, [cell("group", h("span.ag-group-expanded.ag-hidden"))], row_id="hidden-control"),
            ],
        )
    )
    ctx = _ctx(page)

    assert await is_row_expanded(ctx.row(by_stable_id("by-class")))
    assert await is_row_expanded(ctx.row(by_stable_id("by-control")))
    assert not await is_row_expanded(ctx.row(by_stable_id("hidden-control")))
    assert not await is_row_expanded(ctx.row(by_stable_id("absent")))


@pytest.mark.asyncio
async def test_group_child_count() -> None:
    _, ctx = _regions()

    assert await get_group_child_count(ctx, by_stable_id("g-europe")) == 1
    assert await get_group_child_count(ctx, by_stable_id("g-asia")) == 1

    await expand_all_groups(ctx)
    assert await get_group_child_count(ctx, by_stable_id("g-west")) == 2
    assert await get_group_child_count(ctx, by_stable_id("c-japan")) == 0
