from __future__ import annotations

from .matchers import ByAriaPosition, ByStableId, ByViewportIndex, RowMatcher

STRUCTURAL_SELECTOR_SIGILS = ("#", ".", "[", "/", "xpath=", "css=")
TEST_ID_ATTRIBUTE = "data-testid"

ROOT_WRAPPER = ".ag-root-wrapper"
HEADER = ".ag-header"
HEADER_CELL = ".ag-header-cell"
HEADER_ROW_COLUMN = ".ag-header-row-column"
BODY_VIEWPORT = ".ag-body-viewport"
CENTER_CONTAINER = ".ag-center-cols-container"
PINNED_LEFT_CONTAINER = ".ag-pinned-left-cols-container"
PINNED_RIGHT_CONTAINER = ".ag-pinned-right-cols-container"
FULL_WIDTH_CONTAINER = ".ag-full-width-container"
ROW_CONTAINERS = (CENTER_CONTAINER, FULL_WIDTH_CONTAINER)
PINNED_CONTAINERS = (PINNED_LEFT_CONTAINER, PINNED_RIGHT_CONTAINER)

ROW = ".ag-row:not(.ag-details-row)"
CELL = ".ag-cell"
ROW_GROUP_CLASS = "ag-row-group"
ROW_SELECTED_CLASS = "ag-row-selected"
ROW_SELECTED = ".ag-row-selected"
CELL_FOCUS = ".ag-cell-focus"
CELL_EDITING = ".ag-cell-editing"
CELL_EDITOR_INPUT = ".ag-cell-editor input, .ag-cell-editor textarea, .ag-cell-edit-input"
CELL_EDIT_INPUT = "input, textarea"

LOADING_OVERLAY = ".ag-overlay-loading-center"
NO_ROWS_OVERLAY = ".ag-overlay-no-rows-center"
OVERLAY_ACTIVE_MARKER = ".visible"

PAGING_PANEL = ".ag-paging-panel"
STATUS_BAR = ".ag-status-bar"

GROUP_EXPANDED = ".ag-group-expanded"
GROUP_CONTRACTED = ".ag-group-contracted"
GROUP_CHILD_COUNT = ".ag-group-child-count"
MASTER_EXPAND_CONTROL = ".ag-group-contracted, .ag-icon-tree-closed"
MASTER_COLLAPSE_CONTROL = ".ag-group-expanded, .ag-icon-tree-open"
ROW_GROUP_EXPANDED_CLASS = "ag-row-group-expanded"
DETAILS_ROW = ".ag-details-row"
DRAG_HANDLE = ".ag-drag-handle"
HIDDEN = ".ag-hidden"

FLOATING_FILTER = ".ag-floating-filter"
SELECTION_CHECKBOX_INPUT = ".ag-selection-checkbox input"
HEADER_SELECT_ALL_INPUT = ".ag-header-select-all input"

ATTR_COL_ID = "col-id"
ATTR_ROW_INDEX = "row-index"
ATTR_ROW_ID = "row-id"
ATTR_ARIA_ROW_INDEX = "aria-rowindex"
ATTR_ARIA_COL_INDEX = "aria-colindex"
ATTR_ARIA_SORT = "aria-sort"
ATTR_ARIA_SELECTED = "aria-selected"
ATTR_ARIA_EXPANDED = "aria-expanded"
ATTR_ARIA_LEVEL = "aria-level"

DETAIL_ROW_ID_SUFFIX = "-detail"


def escape_css_attribute_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def is_structural_selector(address: str) -> bool:
    return address.strip().startswith(STRUCTURAL_SELECTOR_SIGILS)


def data_testid_selector(value: str) -> str:
    return f'[{TEST_ID_ATTRIBUTE}="{escape_css_attribute_value(value)}"]'


def attribute_selector(base: str, attribute: str, value: str | int) -> str:
    return f'{base}[{attribute}="{escape_css_attribute_value(str(value))}"]'


def build_row_selector(matcher: RowMatcher) -> str | None:
    """Structural address for a direct matcher, or None for derived ones."""
    if isinstance(matcher, ByAriaPosition):
        return attribute_selector(".ag-row", ATTR_ARIA_ROW_INDEX, matcher.position) + ":not(.ag-details-row)"
    if isinstance(matcher, ByStableId):
        return attribute_selector(".ag-row", ATTR_ROW_ID, matcher.stable_id) + ":not(.ag-details-row)"
    if isinstance(matcher, ByViewportIndex):
        return attribute_selector(".ag-row", ATTR_ROW_INDEX, matcher.index) + ":not(.ag-details-row)"
    return None


def build_cell_selector(column_id: str) -> str:
    return attribute_selector(CELL, ATTR_COL_ID, column_id)


def build_header_cell_selector(column_id: str) -> str:
    return attribute_selector(HEADER_CELL, ATTR_COL_ID, column_id)


def build_filter_input_selector(column_id: str) -> str:
    return attribute_selector(FLOATING_FILTER, ATTR_COL_ID, column_id) + " input"


def build_detail_region_selector(master_stable_id: str) -> str:
    return attribute_selector(DETAILS_ROW, ATTR_ROW_ID, f"{master_stable_id}{DETAIL_ROW_ID_SUFFIX}")


def in_row_containers(row_selector: str) -> str:
    """Scope a row selector to the containers holding one element per row; pinned parts are excluded."""
    return ", ".join(f"{container} {row_selector}" for container in ROW_CONTAINERS)


def pinned_container_selector(pinned: str | None) -> str | None:
    if pinned == "left":
        return PINNED_LEFT_CONTAINER
    if pinned == "right":
        return PINNED_RIGHT_CONTAINER
    return None


def sort_direction_from_aria(value: str | None) -> str | None:
    if value == "ascending":
        return "asc"
    if value == "descending":
        return "desc"
    return None


def parse_int_attribute(value: str | None, default: int = -1) -> int:
    if value is None:
        return default
    text = value.strip()
    if not text.lstrip("-").isdigit():
        return default
    return int(text)


def not_hidden(selector: str) -> str:
    """Append ``:not(.ag-hidden)`` to every alternative of a selector group."""
    return ", ".join(f"{part.strip()}:not({HIDDEN})" for part in selector.split(","))
