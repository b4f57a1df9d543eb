import pytest

from fake_dom import FakePage, cell, grid, h, header, row
from gridharness.actions import (
    MAX_SORT_CLICKS,
    clear_all_filters,
    clear_filter,
    click_cell,
    deselect_all_rows,
    deselect_row,
    drag_row_to,
    edit_cell,
    filter_column,
    get_selected_row_ids,
    press_cell_key,
    right_click_cell,
    select_all_rows,
    select_row,
    sort_by_column,
)
from gridharness.config import normalize_config
from gridharness.errors import GridActionError
from gridharness.locators import create_locator_context
from gridharness.matchers import by_aria_position, by_cell_values, by_stable_id

FAST = {"ready": 500, "row_load": 500, "cell_edit": 500, "scroll": 0}
SORT_CYCLE = {None: "ascending", "ascending": "descending", "descending": None}


def _ctx(page):
    return create_locator_context(page, normalize_config({"address": "orders", "timeouts": FAST}))


def _people(**grid_kwargs):
    rows = [
        row(2, {"name": "Ann", "status": "Active"}, row_id="a"),
        row(3, {"name": "Bob", "status": "Closed"}, row_id="b"),
    ]
    page = FakePage(grid("orders", rows, columns=["name", "status"], **grid_kwargs))
    return page, _ctx(page)


def _sortable_header(column_id):
    element = header(column_id)

    def cycle(event):
        element.set("aria-sort", SORT_CYCLE[element.get("aria-sort")])

    return element.on("click", cycle)


def _toggle_selection_on_click(element):
    def toggle(event):
        element.toggle_class("ag-row-selected", not element.has_class("ag-row-selected"))

    return element.on("click", toggle)


def _checkbox_row(aria, row_id):
    checkbox = h("input", type="checkbox")
    element = row(aria, [cell("select", h(".ag-selection-checkbox", checkbox)), cell("name", text=row_id)], row_id=row_id)
    checkbox.on("change", lambda event: element.toggle_class("ag-row-selected", checkbox.checked))
    return element


@pytest.mark.asyncio
async def test_click_and_right_click_cell() -> None:
    page, ctx = _people()

    await click_cell(ctx, by_stable_id("b"), "status")
    await right_click_cell(ctx, by_cell_values(name="Ann"), "name")

    (target, modifiers, button), (other, _, other_button) = page.actions("click")
    assert target.text_content() == "Closed"
    assert button == "left"
    assert other.text_content() == "Ann"
    assert other_button == "right"


@pytest.mark.asyncio
async def test_edit_cell_fills_the_editor_and_commits() -> None:
    page, ctx = _people()
    target = page.document.find('.ag-row[row-id="a"] .ag-cell[col-id="status"]')[0]

    def start_editing(event):
        editor = h("input", value=target.text)
        target.text = ""
        target.add_class("ag-cell-editing")
        target.append(h(".ag-cell-editor", editor))

        def commit(key_event):
            if key_event.key == "Enter":
                target.clear_children()
                target.remove_class("ag-cell-editing")
                target.text = editor.value

        editor.on("keydown", commit)

    target.on("dblclick", start_editing)

    await edit_cell(ctx, by_stable_id("a"), "status", "Pending")

    assert target.text_content() == "Pending"
    assert not target.has_class("ag-cell-editing")
    assert [entry[1] for entry in page.actions("fill")] == ["Pending"]


@pytest.mark.asyncio
async def test_press_cell_key_focuses_the_cell_first() -> None:
    page, ctx = _people()

    await press_cell_key(ctx, by_aria_position(3), "name", "Delete")

    assert [entry[0] for entry in page.log] == ["click", "press"]
    assert page.actions("press")[0][1] == "Delete"


@pytest.mark.asyncio
async def test_sort_by_column_clicks_until_the_direction_is_reached() -> None:
    page = FakePage(grid("orders", [], headers=[_sortable_header("amount")]))
    ctx = _ctx(page)

    await sort_by_column(ctx, "amount", "desc")
    assert len(page.actions("click")) == 2
    assert page.document.find(".ag-header-cell")[0].get("aria-sort") == "descending"

    await sort_by_column(ctx, "amount", "desc")
    assert len(page.actions("click")) == 2

    await sort_by_column(ctx, "amount")
    assert len(page.actions("click")) == 3


@pytest.mark.asyncio
async def test_sort_by_column_gives_up_after_three_clicks() -> None:
    page = FakePage(grid("orders", [], headers=[header("amount")]))

    with pytest.raises(GridActionError, match='Could not sort column "amount" to "asc" after 3 attempts'):
        await sort_by_column(_ctx(page), "amount", "asc")

    assert len(page.actions("click")) == MAX_SORT_CLICKS


@pytest.mark.asyncio
async def test_filters() -> None:
    filters = [
        h(".ag-floating-filter", h("input"), col_id="name"),
        h(".ag-floating-filter", h("input", value="Closed"), col_id="status"),
        h(".ag-floating-filter", h("input"), col_id="city"),
    ]
    page, ctx = _people(header_extra=filters)

    await filter_column(ctx, "name", "Ann")
    assert filters[0].children[0].value == "Ann"

    await clear_filter(ctx, "name")
    assert filters[0].children[0].value == ""

    await filter_column(ctx, "name", "Bob")
    await clear_all_filters(ctx)
    assert [item.children[0].value for item in filters] == ["", "", ""]
    cleared = [entry[0] for entry in page.actions("fill") if entry[1] == ""]
    assert filters[2].children[0] not in cleared


@pytest.mark.asyncio
async def test_select_row_with_checkbox_is_idempotent() -> None:
    page = FakePage(grid("orders", [_checkbox_row(2, "a"), _checkbox_row(3, "b")]))
    ctx = _ctx(page)

    await select_row(ctx, by_stable_id("a"))
    await select_row(ctx, by_stable_id("a"))
    assert len(page.actions("check")) == 1
    assert await get_selected_row_ids(ctx) == ["a"]

    await deselect_row(ctx, by_stable_id("a"))
    await deselect_row(ctx, by_stable_id("a"))
    assert len(page.actions("uncheck")) == 1
    assert await get_selected_row_ids(ctx) == []


@pytest.mark.asyncio
async def test_select_row_without_checkbox_clicks_the_row() -> None:
    rows = [_toggle_selection_on_click(row(2, {"name": "Ann"}, row_id="a"))]
    page = FakePage(grid("orders", rows))
    ctx = _ctx(page)

    await select_row(ctx, by_cell_values(name="Ann"))
    await select_row(ctx, by_cell_values(name="Ann"))
    assert len(page.actions("click")) == 1
    assert rows[0].has_class("ag-row-selected")

    await deselect_row(ctx, by_stable_id("a"))
    assert not rows[0].has_class("ag-row-selected")


@pytest.mark.asyncio
async def test_select_all_needs_the_header_checkbox() -> None:
    _, ctx = _people()

    with pytest.raises(GridActionError, match="Select all checkbox not found"):
        await select_all_rows(ctx)


@pytest.mark.asyncio
async def test_select_and_deselect_all_rows() -> None:
    select_all = h("input", type="checkbox")
    rows = [row(2, {"name": "Ann"}, row_id="a"), row(3, {"name": "Bob"}, row_id="b")]

    def apply(event):
        for element in rows:
            element.toggle_class("ag-row-selected", select_all.checked)

    select_all.on("change", apply)
    page = FakePage(grid("orders", rows, header_extra=[h(".ag-header-select-all", select_all)]))
    ctx = _ctx(page)

    await select_all_rows(ctx)
    assert await get_selected_row_ids(ctx) == ["a", "b"]

    await deselect_all_rows(ctx)
    assert await get_selected_row_ids(ctx) == []


@pytest.mark.asyncio
async def test_selected_row_ids_are_deduplicated_across_containers() -> None:
    page = FakePage(
        grid(
            "orders",
            [row(2, {"amount": "1"}, row_id="a", classes="ag-row-selected")],
            pinned_left=[row(2, {"name": "Ann"}, row_id="a", classes="ag-row-selected")],
        )
    )

    assert await get_selected_row_ids(_ctx(page)) == ["a"]


@pytest.mark.asyncio
async def test_drag_row_to_prefers_the_drag_handle() -> None:
    handle = h(".ag-drag-handle")
    source = row(2, [cell("name", handle, text="Ann")], row_id="a")
    target = row(3, {"name": "Bob"}, row_id="b")
    plain = row(4, {"name": "Cid"}, row_id="c")
    page = FakePage(grid("orders", [source, target, plain]))
    ctx = _ctx(page)

    await drag_row_to(ctx, by_stable_id("a"), by_stable_id("b"))
    await drag_row_to(ctx, by_stable_id("c"), by_stable_id("a"))

    assert page.actions("drag") == [(handle, target), (plain, source)]
