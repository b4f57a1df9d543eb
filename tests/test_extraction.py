import pytest

from fake_dom import FakePage, cell, h
from gridharness.extraction import BUILTIN_RENDERERS, extract_cell_value, normalize_text
from gridharness.models import CellRendererConfig, ColumnDef


def _cell_locator(*children, text=""):
    page = FakePage(cell("value", *children, text=text))
    return page.locator(".ag-cell").first


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, ""), ("  Ann \n  Lee ", "Ann Lee"), ("\t", ""), (42, "42")],
)
def test_normalize_text(value, expected) -> None:
    assert normalize_text(value) == expected


def test_builtin_renderers_are_tried_in_a_fixed_order() -> None:
    assert [renderer.name for renderer in BUILTIN_RENDERERS] == [
        "checkbox",
        "link",
        "input",
        "select",
        "badge",
        "button",
    ]


@pytest.mark.asyncio
async def test_plain_text_is_normalized() -> None:
    assert await extract_cell_value(_cell_locator(text="  Ann   Lee ")) == "Ann Lee"


@pytest.mark.asyncio
async def test_checkbox_cells_read_as_true_or_false() -> None:
    assert await extract_cell_value(_cell_locator(h("input", type="checkbox", checked=True))) == "true"
    assert await extract_cell_value(_cell_locator(h("input", type="checkbox"))) == "false"


@pytest.mark.asyncio
async def test_link_input_select_badge_and_button_cells() -> None:
    assert await extract_cell_value(_cell_locator(h("a", text=" Order 7 ", href="/orders/7"))) == "Order 7"
    assert await extract_cell_value(_cell_locator(h("input", type="text", value="42"))) == "42"
    assert await extract_cell_value(_cell_locator(h("select", value="EUR"))) == "EUR"
    assert await extract_cell_value(_cell_locator(h("span.badge", text="Active"))) == "Active"
    assert await extract_cell_value(_cell_locator(h("span.chip", text="New"))) == "New"
    assert await extract_cell_value(_cell_locator(h("button", text="Approve"))) == "Approve"


@pytest.mark.asyncio
async def test_checkbox_wins_over_later_renderers() -> None:
    locator = _cell_locator(h("a", text="details"), h("input", type="checkbox", checked=True))

    assert await extract_cell_value(locator) == "true"


@pytest.mark.asyncio
async def test_value_extractor_wins_over_everything() -> None:
    async def extract(target):
        return (await target.get_attribute("col-id")).upper()

    locator = _cell_locator(h("input", type="checkbox", checked=True))

    assert await extract_cell_value(locator, ColumnDef("value", value_extractor=extract)) == "VALUE"


@pytest.mark.asyncio
async def test_configured_renderer_reads_its_sub_element() -> None:
    locator = _cell_locator(h("span.icon", text="*"), h("span.status-pill", text=" Paid "))

    assert await extract_cell_value(locator, renderer=CellRendererConfig(value_selector=".status-pill")) == "Paid"


@pytest.mark.asyncio
async def test_configured_renderer_uses_its_extract_function() -> None:
    async def extract(target):
        return await target.get_attribute("data-amount")

    locator = _cell_locator(h("span.money", text="$1,200", data_amount="1200"))
    renderer = CellRendererConfig(value_selector=".money", extract_value=extract)

    assert await extract_cell_value(locator, renderer=renderer) == "1200"


@pytest.mark.asyncio
async def test_missing_renderer_sub_element_falls_through() -> None:
    locator = _cell_locator(h("span.badge", text="Active"))

    assert await extract_cell_value(locator, renderer=CellRendererConfig(value_selector=".status-pill")) == "Active"
