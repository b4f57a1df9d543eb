from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from . import selectors as sel
from .config import column_pinned
from .matchers import RowMatcher, format_row_matcher, is_direct_matcher
from .models import GridConfig

if TYPE_CHECKING:
    from playwright.async_api import Locator, Page

LOGGER_NAME = "gridharness.grid"


def resolve_root(page: Page, address: str) -> Locator:
    """Locate a grid root by structural selector, or by test id with a literal fallback."""
    if sel.is_structural_selector(address):
        return page.locator(address)
    return page.locator(sel.data_testid_selector(address)).or_(page.locator(address))


@dataclass(slots=True)
class LocatorContext:
    """A page handle bound to one grid.

    Every accessor builds a fresh lazy locator; nothing is cached because
    row elements come and go as the grid virtualizes. A context created
    for a detail grid is scoped beneath its parent's grid root.
    """

    page: Page
    config: GridConfig
    parent: LocatorContext | None = None
    detail_index: int = 0
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(LOGGER_NAME))

    @property
    def depth(self) -> int:
        return 0 if self.parent is None else self.parent.depth + 1

    @property
    def root_context(self) -> LocatorContext:
        context = self
        while context.parent is not None:
            context = context.parent
        return context

    def child_logger(self, feature: str) -> logging.Logger:
        return self.logger.getChild(feature)

    def grid(self) -> Locator:
        if self.parent is None:
            return resolve_root(self.page, self.config.address)
        region = self.parent.grid().locator(self.config.address).nth(self.detail_index)
        return region.locator(sel.ROOT_WRAPPER).first

    def rows(self) -> Locator:
        return self.grid().locator(sel.in_row_containers(sel.ROW))

    def row_elements(self) -> Locator:
        """Every rendered row element, including the parts drawn in pinned containers."""
        return self.grid().locator(sel.ROW)

    def row(self, matcher: RowMatcher) -> Locator:
        row_selector = sel.build_row_selector(matcher)
        if row_selector is None:
            raise TypeError(
                f"{format_row_matcher(matcher)} needs row data to resolve; use an async row lookup instead"
            )
        return self.grid().locator(sel.in_row_containers(row_selector))

    def cell(self, matcher: RowMatcher, column_id: str) -> Locator:
        return self.cell_in_row(self._row_scope(matcher, column_id), column_id)

    def cell_in_row(self, row: Locator, column_id: str) -> Locator:
        return row.locator(sel.build_cell_selector(column_id)).first

    def header_cell(self, column_id: str) -> Locator:
        return self.grid().locator(sel.build_header_cell_selector(column_id)).first

    def header_cells(self) -> Locator:
        return self.grid().locator(sel.HEADER_CELL)

    def filter_input(self, column_id: str) -> Locator:
        return self.grid().locator(sel.build_filter_input_selector(column_id)).first

    def body_viewport(self) -> Locator:
        return self.grid().locator(sel.BODY_VIEWPORT).first

    def _row_scope(self, matcher: RowMatcher, column_id: str) -> Locator:
        if not is_direct_matcher(matcher):
            return self.row(matcher)
        container = sel.pinned_container_selector(column_pinned(self.config, column_id))
        row_selector = sel.build_row_selector(matcher)
        if container is None:
            return self.grid().locator(row_selector)
        return self.grid().locator(container).locator(row_selector)


def create_locator_context(
    page: Page,
    config: GridConfig,
    parent: LocatorContext | None = None,
    detail_index: int = 0,
) -> LocatorContext:
    if parent is None:
        return LocatorContext(page=page, config=config)
    logger = parent.root_context.logger.getChild(f"detail{parent.depth + 1}")
    return LocatorContext(page=page, config=config, parent=parent, detail_index=detail_index, logger=logger)
