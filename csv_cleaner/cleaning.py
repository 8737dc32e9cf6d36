"""
Cleaning engine.

Cleaning is an ordered list of pure steps. Each step takes a grid and the
options and returns a new grid plus the counters it touched; ``clean`` folds
the grid through ``CLEANING_STEPS`` in order. Order matters: every step sees
the output of the steps before it.

Steps (in order):
- strip a BOM left in the first header cell
- normalize line breaks inside cells to LF (always on)
- trim cell whitespace
- drop empty rows
- pad / truncate rows to the header width
- normalize header names
- drop duplicate data rows
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from typing import Callable, Dict, Sequence, Tuple

from .errors import EmptyAfterCleaning, EmptyInput
from .models import CleaningOptions, CleaningStats
from .parser import Grid, Row
from .rules import BOM, DEDUPE_KEY_SEPARATOR

logger = logging.getLogger(__name__)

StepResult = Tuple[Grid, Dict[str, int]]
Step = Callable[[Grid, CleaningOptions], StepResult]

_CELL_LINE_BREAK = re.compile(r"\r\n|\r")
# whitespace plus stray BOM code points
_EDGE_SPACE = re.compile(r"\A[\s\ufeff]+|[\s\ufeff]+\Z")
_WHITESPACE_RUN = re.compile(r"\s+")
_NON_IDENTIFIER = re.compile(r"[^a-z0-9_]")
_UNDERSCORE_RUN = re.compile(r"_+")


def _copy(grid: Sequence[Sequence[str]]) -> Grid:
    return [list(row) for row in grid]


def trim_value(value: str) -> str:
    return _EDGE_SPACE.sub("", value)


def _is_empty_row(row: Row) -> bool:
    return all(trim_value(cell) == "" for cell in row)


def normalize_header_value(value: str) -> str:
    raw = trim_value(value).lower()
    if not raw:
        return ""
    raw = _WHITESPACE_RUN.sub("_", raw)
    raw = _NON_IDENTIFIER.sub("_", raw)
    raw = _UNDERSCORE_RUN.sub("_", raw)
    return raw.strip("_")


def row_key(row: Row) -> str:
    return DEDUPE_KEY_SEPARATOR.join(row)


# --- steps ---


def strip_bom_residue(grid: Grid, options: CleaningOptions) -> StepResult:
    out = _copy(grid)
    if out and out[0] and out[0][0].startswith(BOM):
        out[0][0] = out[0][0][len(BOM):]
    return out, {}


def normalize_cell_line_endings(grid: Grid, options: CleaningOptions) -> StepResult:
    return [[_CELL_LINE_BREAK.sub("\n", cell) for cell in row] for row in grid], {}


def trim_cells(grid: Grid, options: CleaningOptions) -> StepResult:
    if not options.trim:
        return _copy(grid), {}
    return [[trim_value(cell) for cell in row] for row in grid], {}


def remove_empty_rows(grid: Grid, options: CleaningOptions) -> StepResult:
    if not options.remove_empty:
        return _copy(grid), {}

    kept = [list(row) for row in grid if not _is_empty_row(row)]
    removed = len(grid) - len(kept)
    if not kept:
        raise EmptyAfterCleaning("All rows were removed during cleaning. Check your options.")
    return kept, {"removed_empty": removed}


def fix_column_counts(grid: Grid, options: CleaningOptions) -> StepResult:
    if not options.fix_columns or not grid:
        return _copy(grid), {}

    expected = len(grid[0])
    out: Grid = []
    trimmed = padded = 0
    for row in grid:
        diff = len(row) - expected
        if diff > 0:
            out.append(list(row[:expected]))
            trimmed += 1
        elif diff < 0:
            out.append(list(row) + [""] * -diff)
            padded += 1
        else:
            out.append(list(row))
    return out, {"trimmed_columns": trimmed, "padded_columns": padded}


def normalize_header(grid: Grid, options: CleaningOptions) -> StepResult:
    out = _copy(grid)
    if options.normalize_header and out:
        out[0] = [normalize_header_value(cell) for cell in out[0]]
    return out, {}


def dedupe_rows(grid: Grid, options: CleaningOptions) -> StepResult:
    if not options.dedupe or not grid:
        return _copy(grid), {}

    header = list(grid[0])
    # The header key is seeded too, so a data row equal to the header is dropped.
    seen = {row_key(header)}
    out: Grid = [header]
    dropped = 0
    for row in grid[1:]:
        key = row_key(row)
        if key in seen:
            dropped += 1
            continue
        seen.add(key)
        out.append(list(row))
    return out, {"duplicates_removed": dropped}


CLEANING_STEPS: Tuple[Tuple[str, Step], ...] = (
    ("strip_bom_residue", strip_bom_residue),
    ("normalize_cell_line_endings", normalize_cell_line_endings),
    ("trim_cells", trim_cells),
    ("remove_empty_rows", remove_empty_rows),
    ("fix_column_counts", fix_column_counts),
    ("normalize_header", normalize_header),
    ("dedupe_rows", dedupe_rows),
)


def clean(grid: Grid, options: CleaningOptions) -> Tuple[Grid, CleaningStats]:
    """
    Run every cleaning step over ``grid`` and return the cleaned copy with stats.

    The input grid is never modified.
    Raises EmptyInput for an empty grid and EmptyAfterCleaning when empty-row
    removal leaves nothing.
    """
    if not grid:
        raise EmptyInput("No CSV data to clean.")

    counts: Counter = Counter()
    current: Grid = _copy(grid)
    for name, step in CLEANING_STEPS:
        current, delta = step(current, options)
        if delta:
            logger.debug("Step %s: %s", name, delta)
        counts.update(delta)

    stats = CleaningStats(**counts)
    logger.info(
        "Cleaned %d -> %d row(s): empty=%d duplicates=%d trimmed=%d padded=%d",
        len(grid),
        len(current),
        stats.removed_empty,
        stats.duplicates_removed,
        stats.trimmed_columns,
        stats.padded_columns,
    )
    return current, stats
