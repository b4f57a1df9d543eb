from __future__ import annotations

from typing import Any, Iterable, Mapping

from .matchers import normalize_for_comparison
from .models import ClosestMatchResult, FieldMismatch, RowData


def score_row(row: RowData, expected: Mapping[str, Any]) -> ClosestMatchResult:
    matched = 0
    mismatches: list[FieldMismatch] = []
    for column_id, expected_value in expected.items():
        actual = row.cells.get(column_id)
        if normalize_for_comparison(expected_value) == normalize_for_comparison(actual):
            matched += 1
        else:
            mismatches.append(FieldMismatch(field=column_id, expected=expected_value, actual=actual))
    return ClosestMatchResult(
        candidate_row=row,
        matched_field_count=matched,
        total_field_count=len(expected),
        mismatches=tuple(mismatches),
    )


def closest_match(rows: Iterable[RowData], expected: Mapping[str, Any]) -> ClosestMatchResult | None:
    """Best-scoring row by matched field count; the earliest row wins ties."""
    best: ClosestMatchResult | None = None
    for row in rows:
        scored = score_row(row, expected)
        if best is None or scored.matched_field_count > best.matched_field_count:
            best = scored
    return best
