from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Literal

if TYPE_CHECKING:
    from playwright.async_api import Locator

    from .matchers import RowMatcher

PinnedPosition = Literal["left", "right", "none"]
ColumnType = Literal["text", "number", "date", "boolean", "custom"]
SortDirection = Literal["asc", "desc"]
NavigationDirection = Literal["up", "down", "left", "right"]

ValueExtractor = Callable[["Locator"], Awaitable[Any]]


@dataclass(frozen=True, slots=True)
class Timeouts:
    ready: int = 30000
    row_load: int = 10000
    cell_edit: int = 5000
    scroll: int = 50


@dataclass(frozen=True, slots=True)
class ColumnDef:
    column_id: str
    display_name: str | None = None
    pinned: PinnedPosition | None = None
    type: ColumnType | None = None
    value_extractor: ValueExtractor | None = None


@dataclass(frozen=True, slots=True)
class CellRendererConfig:
    value_selector: str
    extract_value: ValueExtractor | None = None


@dataclass(frozen=True, slots=True)
class GridConfig:
    address: str
    columns: tuple[ColumnDef, ...] = ()
    cell_renderers: tuple[tuple[str, CellRendererConfig], ...] = ()
    timeouts: Timeouts = field(default_factory=Timeouts)

    def column(self, column_id: str) -> ColumnDef | None:
        for column in self.columns:
            if column.column_id == column_id:
                return column
        return None

    def renderer(self, column_id: str) -> CellRendererConfig | None:
        for key, renderer in self.cell_renderers:
            if key == column_id:
                return renderer
        return None


@dataclass(slots=True)
class RowData:
    viewport_index: int
    aria_position: int
    cells: dict[str, Any] = field(default_factory=dict)
    stable_id: str | None = None
    is_group_row: bool | None = None
    is_expanded: bool | None = None
    group_level: int | None = None


@dataclass(frozen=True, slots=True)
class SortEntry:
    column_id: str
    direction: SortDirection


@dataclass(frozen=True, slots=True)
class GridState:
    total_rows: int
    visible_rows: int
    selected_rows: int
    is_loading: bool
    sorted_by: tuple[SortEntry, ...] | None = None


@dataclass(frozen=True, slots=True)
class FieldMismatch:
    field: str
    expected: Any
    actual: Any


@dataclass(frozen=True, slots=True)
class ClosestMatchResult:
    candidate_row: RowData
    matched_field_count: int
    total_field_count: int
    mismatches: tuple[FieldMismatch, ...] = ()


@dataclass(frozen=True, slots=True)
class RowCountRange:
    min: int | None = None
    max: int | None = None

    def contains(self, count: int) -> bool:
        if self.min is not None and count < self.min:
            return False
        if self.max is not None and count > self.max:
            return False
        return True

    def describe(self) -> str:
        if self.min is not None and self.max is not None:
            return f"between {self.min} and {self.max}"
        if self.min is not None:
            return f"at least {self.min}"
        if self.max is not None:
            return f"at most {self.max}"
        return "any number of"


@dataclass(frozen=True, slots=True)
class ViewportMetrics:
    scroll_top: int = 0
    scroll_left: int = 0
    client_height: int = 0
    client_width: int = 0
    scroll_height: int = 0
    scroll_width: int = 0

    @property
    def max_scroll_top(self) -> int:
        return max(self.scroll_height - self.client_height, 0)

    @property
    def max_scroll_left(self) -> int:
        return max(self.scroll_width - self.client_width, 0)


@dataclass(frozen=True, slots=True)
class ScrollPosition:
    top: int
    left: int


@dataclass(frozen=True, slots=True)
class CellPosition:
    row: RowMatcher
    column_id: str


@dataclass(frozen=True, slots=True)
class CellRange:
    start: CellPosition
    end: CellPosition


@dataclass(frozen=True, slots=True)
class RangeSelectionState:
    ranges: tuple[CellRange, ...]
    cell_count: int
    row_count: int
    column_count: int


@dataclass(frozen=True, slots=True)
class LoadedRange:
    start: int
    end: int


@dataclass(frozen=True, slots=True)
class ServerSideState:
    is_loading: bool
    loaded_range: LoadedRange | None
    total_server_rows: int
    cached_blocks: int


@dataclass(frozen=True, slots=True)
class ColumnGroupState:
    group_id: str
    is_expanded: bool
    visible_children: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class KeyboardState:
    focused_cell: CellPosition | None
    is_editing: bool
    editing_cell: CellPosition | None
    is_header_focused: bool
