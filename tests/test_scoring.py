from gridharness.models import FieldMismatch, RowData
from gridharness.scoring import closest_match, score_row


def _row(index: int, **cells) -> RowData:
    return RowData(viewport_index=index, aria_position=index + 2, cells=cells)


def test_score_row_counts_matches_and_lists_mismatches() -> None:
    result = score_row(_row(0, name="Ann", status="Active"), {"name": "ann", "status": "Closed"})

    assert result.matched_field_count == 1
    assert result.total_field_count == 2
    assert result.mismatches == (FieldMismatch(field="status", expected="Closed", actual="Active"),)


def test_missing_cells_are_mismatches_with_no_actual_value() -> None:
    result = score_row(_row(0, name="Ann"), {"city": "Oslo"})

    assert result.matched_field_count == 0
    assert result.mismatches == (FieldMismatch(field="city", expected="Oslo", actual=None),)


def test_closest_match_picks_the_highest_score() -> None:
    rows = [
        _row(0, name="Bob", status="Closed", city="Rome"),
        _row(1, name="Ann", status="Active", city="Rome"),
        _row(2, name="Ann", status="Closed", city="Rome"),
    ]

    result = closest_match(rows, {"name": "Ann", "status": "Active", "city": "Oslo"})

    assert result is not None
    assert result.candidate_row is rows[1]
    assert result.matched_field_count == 2
    assert [item.field for item in result.mismatches] == ["city"]


def test_ties_go_to_the_first_row_seen() -> None:
    rows = [_row(0, name="Ann", status="Closed"), _row(1, name="Bob", status="Active")]

    result = closest_match(rows, {"name": "Ann", "status": "Active"})

    assert result is not None
    assert result.candidate_row is rows[0]


def test_adding_a_correct_field_never_lowers_the_score() -> None:
    expected = {"name": "Ann", "status": "Active", "city": "Oslo"}
    partial = _row(0, name="Ann")
    fuller = _row(0, name="Ann", status="Active")

    assert score_row(fuller, expected).matched_field_count >= score_row(partial, expected).matched_field_count


def test_closest_match_of_no_rows_is_none() -> None:
    assert closest_match([], {"name": "Ann"}) is None
