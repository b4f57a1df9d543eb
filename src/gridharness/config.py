from __future__ import annotations

from dataclasses import fields
from typing import Any, Mapping

from .errors import ConfigurationError
from .models import CellRendererConfig, ColumnDef, GridConfig, Timeouts

DEFAULT_TIMEOUTS = Timeouts()
DEFAULT_ASSERTION_TIMEOUT_MS = 5000

_TIMEOUT_FIELDS = tuple(item.name for item in fields(Timeouts))
_PINNED_VALUES = ("left", "right", "none")


def normalize_config(value: str | GridConfig | Mapping[str, Any]) -> GridConfig:
    """Return a fully populated, validated ``GridConfig``.

    A bare string is taken as the grid address and gets default timeouts with
    no column metadata. Structured input is validated; normalizing an already
    normalized config returns an equal config.
    """
    if isinstance(value, str):
        if not value.strip():
            raise ConfigurationError("missing address")
        return GridConfig(address=value, timeouts=DEFAULT_TIMEOUTS)

    if isinstance(value, GridConfig):
        raw: Mapping[str, Any] = {
            "address": value.address,
            "columns": value.columns,
            "cell_renderers": value.cell_renderers,
            "timeouts": value.timeouts,
        }
    elif isinstance(value, Mapping):
        raw = value
    else:
        raise ConfigurationError("missing address")

    address = raw.get("address")
    if not isinstance(address, str) or not address.strip():
        raise ConfigurationError("missing address")

    columns = _normalize_columns(raw.get("columns") or ())
    renderers = _normalize_renderers(raw.get("cell_renderers") or ())
    timeouts = _normalize_timeouts(raw.get("timeouts"))
    return GridConfig(address=address, columns=columns, cell_renderers=renderers, timeouts=timeouts)


def _normalize_columns(raw_columns: Any) -> tuple[ColumnDef, ...]:
    columns: list[ColumnDef] = []
    seen: set[str] = set()
    for raw in raw_columns:
        column = _coerce_column(raw)
        if column.column_id in seen:
            raise ConfigurationError(f"duplicate column id: {column.column_id}")
        seen.add(column.column_id)
        columns.append(column)
    return tuple(columns)


def _coerce_column(raw: Any) -> ColumnDef:
    if isinstance(raw, ColumnDef):
        column_id = raw.column_id
        data: Mapping[str, Any] = {
            "display_name": raw.display_name,
            "pinned": raw.pinned,
            "type": raw.type,
            "value_extractor": raw.value_extractor,
        }
    elif isinstance(raw, Mapping):
        column_id = raw.get("column_id")
        data = raw
    else:
        raise ConfigurationError("invalid column id")

    if not isinstance(column_id, str) or not column_id.strip():
        raise ConfigurationError("invalid column id")

    pinned = data.get("pinned")
    if pinned is not None and pinned not in _PINNED_VALUES:
        raise ConfigurationError(f"invalid pinned position for column {column_id}: {pinned}")

    extractor = data.get("value_extractor")
    if extractor is not None and not callable(extractor):
        raise ConfigurationError(f"value_extractor for column {column_id} is not callable")

    return ColumnDef(
        column_id=column_id,
        display_name=data.get("display_name"),
        pinned=pinned,
        type=data.get("type"),
        value_extractor=extractor,
    )


def _normalize_renderers(raw_renderers: Any) -> tuple[tuple[str, CellRendererConfig], ...]:
    items = raw_renderers.items() if isinstance(raw_renderers, Mapping) else raw_renderers
    renderers: list[tuple[str, CellRendererConfig]] = []
    for column_id, raw in items:
        if not isinstance(column_id, str) or not column_id.strip():
            raise ConfigurationError("invalid column id")
        if isinstance(raw, CellRendererConfig):
            renderer = raw
        elif isinstance(raw, Mapping) and isinstance(raw.get("value_selector"), str):
            renderer = CellRendererConfig(
                value_selector=raw["value_selector"],
                extract_value=raw.get("extract_value"),
            )
        else:
            raise ConfigurationError(f"invalid cell renderer for column {column_id}")
        renderers.append((column_id, renderer))
    return tuple(renderers)


def _normalize_timeouts(raw: Any) -> Timeouts:
    if raw is None:
        return DEFAULT_TIMEOUTS
    if isinstance(raw, Timeouts):
        raw = {name: getattr(raw, name) for name in _TIMEOUT_FIELDS}
    if not isinstance(raw, Mapping):
        raise ConfigurationError("invalid timeout: timeouts")

    merged: dict[str, int] = {}
    for name in _TIMEOUT_FIELDS:
        value = raw.get(name)
        if value is None:
            merged[name] = getattr(DEFAULT_TIMEOUTS, name)
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            raise ConfigurationError(f"invalid timeout: {name}")
        merged[name] = int(value)
    return Timeouts(**merged)


def column_display_name(config: GridConfig, column_id: str) -> str:
    column = config.column(column_id)
    if column is not None and column.display_name:
        return column.display_name
    return column_id


def column_pinned(config: GridConfig, column_id: str) -> str | None:
    column = config.column(column_id)
    if column is None or column.pinned in (None, "none"):
        return None
    return column.pinned


def display_names(config: GridConfig) -> dict[str, str]:
    return {column.column_id: column.display_name for column in config.columns if column.display_name}
