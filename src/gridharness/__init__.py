"""Playwright test harness for virtualized enterprise data grids."""

from .config import normalize_config
from .errors import (
    AssertionTimeoutError,
    ConfigurationError,
    ExpandLimitError,
    GridActionError,
    GridAssertionError,
    GridHarnessError,
    GridTimeoutError,
)
from .harness import GridHarness, grid_harness
from .matchers import (
    ByAriaPosition,
    ByCellValues,
    ByPredicate,
    ByStableId,
    ByViewportIndex,
    RowMatcher,
    by_aria_position,
    by_cell_values,
    by_predicate,
    by_stable_id,
    by_viewport_index,
    format_row_matcher,
)
from .models import (
    CellPosition,
    CellRange,
    CellRendererConfig,
    ClosestMatchResult,
    ColumnDef,
    ColumnGroupState,
    GridConfig,
    GridState,
    KeyboardState,
    RangeSelectionState,
    RowData,
    ScrollPosition,
    ServerSideState,
    SortEntry,
    Timeouts,
)

__version__ = "0.1.0"

__all__ = [
    "AssertionTimeoutError",
    "ByAriaPosition",
    "ByCellValues",
    "ByPredicate",
    "ByStableId",
    "ByViewportIndex",
    "CellPosition",
    "CellRange",
    "CellRendererConfig",
    "ClosestMatchResult",
    "ColumnDef",
    "ColumnGroupState",
    "ConfigurationError",
    "ExpandLimitError",
    "GridActionError",
    "GridAssertionError",
    "GridConfig",
    "GridHarness",
    "GridHarnessError",
    "GridState",
    "GridTimeoutError",
    "KeyboardState",
    "RangeSelectionState",
    "RowData",
    "RowMatcher",
    "ScrollPosition",
    "ServerSideState",
    "SortEntry",
    "Timeouts",
    "by_aria_position",
    "by_cell_values",
    "by_predicate",
    "by_stable_id",
    "by_viewport_index",
    "format_row_matcher",
    "grid_harness",
    "normalize_config",
]
