from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from typing import List

from .errors import EmptyInput, ParseFailure
from .rules import DEFAULT_DELIMITER, SNIFF_DELIMITERS

logger = logging.getLogger(__name__)

Row = List[str]
Grid = List[Row]

DEFAULT_SAMPLE_SIZE = 4096


@dataclass(frozen=True)
class ParsedTable:
    rows: Grid
    delimiter: str
    field_count: int
    line_ending: str


def detect_line_ending(text: str) -> str:
    crlf = text.count("\r\n")
    counts = {
        "crlf": crlf,
        "cr": text.count("\r") - crlf,
        "lf": text.count("\n") - crlf,
    }
    best = max(counts, key=counts.get)
    return best if counts[best] else "lf"


def _count_unquoted(line: str, delimiter: str) -> int:
    count = 0
    in_quotes = False
    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            count += 1
    return count


def guess_delimiter_by_frequency(sample: str, max_lines: int = 20) -> str | None:
    """Candidate with the highest average per-line count, if that average is at least 1."""
    lines = [line for line in sample.splitlines() if line.strip()][:max_lines]
    if not lines:
        return None

    best, best_avg = None, 0.0
    for delim in SNIFF_DELIMITERS:
        avg = sum(_count_unquoted(line, delim) for line in lines) / len(lines)
        if avg > best_avg:
            best, best_avg = delim, avg
    return best if best_avg >= 1 else None


def detect_delimiter(text: str, sample_size: int = DEFAULT_SAMPLE_SIZE) -> str:
    sample = text[:sample_size]
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=SNIFF_DELIMITERS)
    except csv.Error:
        # the sniffer wants a consistent count per line; ragged files land here
        guessed = guess_delimiter_by_frequency(sample)
        if guessed is None:
            logger.debug("Delimiter could not be sniffed; using %r", DEFAULT_DELIMITER)
            return DEFAULT_DELIMITER
        logger.debug("Delimiter guessed by frequency: %r", guessed)
        return guessed
    return dialect.delimiter


def parse(text: str, sample_size: int = DEFAULT_SAMPLE_SIZE) -> ParsedTable:
    """
    Split decoded text into rows of string cells.

    The delimiter is sniffed from the start of the text. Blank lines come back
    as a row holding one empty cell so that removing them stays a cleaning
    decision.
    """
    if not text:
        raise EmptyInput("Parsed CSV is empty or invalid.")

    delimiter = detect_delimiter(text, sample_size)
    line_ending = detect_line_ending(text)

    # no cell can be longer than the whole text
    csv.field_size_limit(max(csv.field_size_limit(), len(text)))
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    rows: Grid = []
    try:
        for row in reader:
            rows.append(row if row else [""])
    except csv.Error as exc:
        logger.warning("Tokenizer failed near line %d: %s", reader.line_num, exc)
        raise ParseFailure(str(exc)) from exc

    if not rows:
        raise EmptyInput("Parsed CSV is empty or invalid.")

    table = ParsedTable(
        rows=rows,
        delimiter=delimiter,
        field_count=len(rows[0]),
        line_ending=line_ending,
    )
    logger.info(
        "Parsed %d row(s), delimiter=%r, columns=%d, line endings=%s",
        len(rows),
        delimiter,
        table.field_count,
        line_ending,
    )
    return table
