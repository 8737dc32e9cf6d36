import copy

import pytest

from csv_cleaner.cleaning import (
    CLEANING_STEPS,
    clean,
    fix_column_counts,
    normalize_header_value,
    trim_value,
)
from csv_cleaner.errors import EmptyAfterCleaning, EmptyInput
from csv_cleaner.models import CleaningOptions

ALL_OFF = CleaningOptions(
    trim=False,
    remove_empty=False,
    fix_columns=False,
    dedupe=False,
    normalize_header=False,
    normalize_line_endings=False,
    consistent_quotes=False,
    encoding_marker=False,
)


def test_steps_run_in_documented_order():
    assert [name for name, _ in CLEANING_STEPS] == [
        "strip_bom_residue",
        "normalize_cell_line_endings",
        "trim_cells",
        "remove_empty_rows",
        "fix_column_counts",
        "normalize_header",
        "dedupe_rows",
    ]


def test_round_trip_scenario():
    grid = [["Name", " Email "], ["Alice", "a@x.com"], ["  ", "   "], ["Alice", "a@x.com"]]
    options = CleaningOptions(dedupe=True)

    cleaned, stats = clean(grid, options)

    assert cleaned == [["name", "email"], ["Alice", "a@x.com"]]
    assert stats.removed_empty == 1
    assert stats.duplicates_removed == 1
    assert len(grid) == 4
    assert len(cleaned) == 2


def test_ragged_columns_are_padded_and_truncated():
    grid = [["a", "b", "c"], ["1", "2"], ["3", "4", "5", "6"]]

    cleaned, stats = clean(grid, CleaningOptions())

    assert cleaned == [["a", "b", "c"], ["1", "2", ""], ["3", "4", "5"]]
    assert stats.padded_columns == 1
    assert stats.trimmed_columns == 1


def test_no_op_when_everything_is_disabled():
    grid = [["id", "name"], ["1", "Ada"], ["2", "Grace"]]

    cleaned, stats = clean(grid, ALL_OFF)

    assert cleaned == grid
    assert stats.model_dump() == {
        "removed_empty": 0,
        "duplicates_removed": 0,
        "trimmed_columns": 0,
        "padded_columns": 0,
    }


def test_input_grid_is_not_mutated():
    grid = [["\ufeffName ", "X"], [" a ", "b\r\nc"], ["", ""], ["a", "b\nc", "extra"]]
    snapshot = copy.deepcopy(grid)

    cleaned, _ = clean(grid, CleaningOptions(dedupe=True))

    assert grid == snapshot
    assert cleaned is not grid


def test_bom_residue_is_stripped_from_first_header_cell():
    cleaned, _ = clean([["\ufeffid", "name"], ["1", "x"]], ALL_OFF)
    assert cleaned[0] == ["id", "name"]


def test_cell_line_breaks_normalized_even_with_toggles_off():
    cleaned, _ = clean([["h"], ["a\r\nb\rc\nd"]], ALL_OFF)
    assert cleaned[1] == ["a\nb\nc\nd"]


def test_trim_toggle():
    grid = [["h"], ["  padded  "]]
    assert clean(grid, CleaningOptions(trim=True))[0][1] == ["padded"]
    assert clean(grid, CleaningOptions(trim=False))[0][1] == ["  padded  "]


def test_empty_rows_detected_by_whitespace_even_without_trim():
    options = ALL_OFF.model_copy(update={"remove_empty": True})

    cleaned, stats = clean([["h"], ["   "], ["\t", ""], ["x"]], options)

    assert cleaned == [["h"], ["x"]]
    assert stats.removed_empty == 2


def test_removing_every_row_raises():
    with pytest.raises(EmptyAfterCleaning):
        clean([["", " "], ["   "]], CleaningOptions())


def test_empty_grid_raises():
    with pytest.raises(EmptyInput):
        clean([], CleaningOptions())


def test_expected_width_comes_from_first_surviving_row():
    cleaned, stats = clean([["", ""], ["A", "B", "C"], ["1"]], CleaningOptions())

    assert cleaned == [["a", "b", "c"], ["1", "", ""]]
    assert stats.removed_empty == 1
    assert stats.padded_columns == 1


def test_column_reconciliation_accounts_for_every_row():
    grid = [["a", "b", "c"], ["1"], ["1", "2", "3"], ["1", "2", "3", "4", "5"], [], ["1", "2"]]

    out, counts = fix_column_counts(grid, CleaningOptions())

    assert all(len(row) == 3 for row in out)
    unchanged = sum(1 for row in grid if len(row) == 3)
    assert counts["trimmed_columns"] + counts["padded_columns"] + unchanged == len(grid)
    # only trailing cells change
    assert out[3] == ["1", "2", "3"]
    assert out[1] == ["1", "", ""]


def test_fix_columns_disabled_keeps_ragged_rows():
    grid = [["a", "b"], ["1"], ["1", "2", "3"]]
    options = CleaningOptions(fix_columns=False, normalize_header=False)

    cleaned, stats = clean(grid, options)

    assert cleaned == grid
    assert stats.padded_columns == stats.trimmed_columns == 0


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("  First Name ", "first_name"),
        ("E-mail Address!", "e_mail_address"),
        ("__Already__Snake__", "already_snake"),
        ("Unit Price ($)", "unit_price"),
        ("Größe", "gr_e"),
        ("%%%", ""),
        ("   ", ""),
        ("id", "id"),
    ],
)
def test_header_normalization(raw, expected):
    assert normalize_header_value(raw) == expected


@pytest.mark.parametrize("raw", ["  First Name ", "E-mail Address!", "a  b\tc", "x__y", "ÄÖÜ 1", ""])
def test_header_normalization_is_idempotent(raw):
    once = normalize_header_value(raw)
    assert normalize_header_value(once) == once


def test_header_normalization_only_touches_first_row():
    cleaned, _ = clean([["Full Name"], ["Full Name Here"]], CleaningOptions())
    assert cleaned == [["full_name"], ["Full Name Here"]]


def test_dedupe_keeps_first_occurrence_in_order():
    grid = [["h"], ["x"], ["y"], ["x"], ["z"], ["y"], ["x"]]

    cleaned, stats = clean(grid, CleaningOptions(dedupe=True))

    assert cleaned == [["h"], ["x"], ["y"], ["z"]]
    assert stats.duplicates_removed == 3


def test_dedupe_compares_whole_rows():
    grid = [["a", "b"], ["1", "2"], ["1", "3"], ["12", ""], ["1", "2"]]

    cleaned, stats = clean(grid, CleaningOptions(dedupe=True))

    assert cleaned == [["a", "b"], ["1", "2"], ["1", "3"], ["12", ""]]
    assert stats.duplicates_removed == 1


def test_data_row_equal_to_header_is_dropped_as_duplicate():
    grid = [["a", "b"], ["a", "b"], ["1", "2"]]

    cleaned, stats = clean(grid, CleaningOptions(dedupe=True))

    assert cleaned == [["a", "b"], ["1", "2"]]
    assert stats.duplicates_removed == 1


def test_dedupe_disabled_keeps_duplicates():
    grid = [["h"], ["x"], ["x"]]
    cleaned, stats = clean(grid, CleaningOptions(dedupe=False))
    assert cleaned == grid
    assert stats.duplicates_removed == 0


def test_row_count_changes_are_fully_attributed():
    grid = [["H", "I"], ["1", "2"], ["", ""], ["1", "2"], ["3"], [" ", ""], ["3", ""]]

    cleaned, stats = clean(grid, CleaningOptions(dedupe=True))

    assert len(grid) - len(cleaned) == stats.removed_empty + stats.duplicates_removed
    assert stats.removed_empty == 2
    # ["3"] is padded to ["3", ""] and then collides with the later row
    assert stats.duplicates_removed == 2


def test_trim_removes_stray_byte_order_marks():
    assert trim_value(" \ufeffx \ufeff") == "x"
    assert trim_value("a\ufeffb") == "a\ufeffb"

    cleaned, _ = clean([["\ufeffid", "name"], [" \ufeff1 ", "Ada"]], ALL_OFF.model_copy(update={"trim": True}))

    assert cleaned == [["id", "name"], ["1", "Ada"]]


def test_row_of_byte_order_marks_is_empty():
    grid = [["a", "b"], ["\ufeff", " \ufeff "], ["1", "2"]]

    cleaned, stats = clean(grid, ALL_OFF.model_copy(update={"remove_empty": True}))

    assert cleaned == [["a", "b"], ["1", "2"]]
    assert stats.removed_empty == 1


def test_header_normalization_drops_byte_order_mark():
    assert normalize_header_value("\ufeffUser Name") == "user_name"
