"""Reading a normalized value out of a grid cell.

Strategies are tried in a fixed order and the first one that applies wins:
a per-column ``value_extractor``, a configured cell renderer, the built-in
renderer table below, then the cell's normalized text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .models import CellRendererConfig, ColumnDef


def normalize_text(value: Any) -> str:
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


async def _text_value(element: Locator) -> str:
    return normalize_text(await element.text_content())


async def _checkbox_value(element: Locator) -> str:
    return "true" if await element.is_checked() else "false"


async def _input_value(element: Locator) -> str:
    return await element.input_value()


@dataclass(frozen=True, slots=True)
class BuiltinRenderer:
    name: str
    trigger: str
    extract: Callable[[Locator], Awaitable[Any]]


BUILTIN_RENDERERS: tuple[BuiltinRenderer, ...] = (
    BuiltinRenderer("checkbox", 'input[type="checkbox"]', _checkbox_value),
    BuiltinRenderer("link", "a", _text_value),
    BuiltinRenderer("input", 'input:not([type="checkbox"])', _input_value),
    BuiltinRenderer("select", "select", _input_value),
    BuiltinRenderer("badge", ".badge, .tag, .chip, .label", _text_value),
    BuiltinRenderer("button", "button", _text_value),
)


async def _first_present(cell: Locator, selector: str) -> Locator | None:
    candidate = cell.locator(selector)
    if await candidate.count() == 0:
        return None
    return candidate.first


async def extract_cell_value(
    cell: Locator,
    column: ColumnDef | None = None,
    renderer: CellRendererConfig | None = None,
) -> Any:
    if column is not None and column.value_extractor is not None:
        return await column.value_extractor(cell)

    if renderer is not None:
        target = await _first_present(cell, renderer.value_selector)
        if target is not None:
            if renderer.extract_value is not None:
                return await renderer.extract_value(target)
            return await _text_value(target)

    for builtin in BUILTIN_RENDERERS:
        target = await _first_present(cell, builtin.trigger)
        if target is not None:
            return await builtin.extract(target)

    return await _text_value(cell)
