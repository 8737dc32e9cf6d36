from __future__ import annotations

import csv
import io
import re
from typing import Optional

from .models import CleaningOptions
from .parser import Grid
from .rules import (
    DEFAULT_BASENAME,
    NORMALIZED_DELIMITER,
    NORMALIZED_LINE_TERMINATOR,
    OUTPUT_FILENAME_PREFIX,
    PLAIN_ENCODING,
    QUOTE_CHAR,
    TARGET_ENCODING,
)

_ANY_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_FINAL_EXTENSION = re.compile(r"\.[^/.]+$")


def to_text(grid: Grid, options: CleaningOptions) -> str:
    """Write ``grid`` as comma-delimited, CRLF-terminated text."""
    outp = io.StringIO(newline="")
    writer = csv.writer(
        outp,
        delimiter=NORMALIZED_DELIMITER,
        quotechar=QUOTE_CHAR,
        doublequote=True,
        lineterminator=NORMALIZED_LINE_TERMINATOR,
        quoting=csv.QUOTE_ALL if options.consistent_quotes else csv.QUOTE_MINIMAL,
    )
    writer.writerows(grid)
    text = outp.getvalue()

    if options.normalize_line_endings:
        # also rewrites LF line breaks inside quoted cells
        text = _ANY_LINE_BREAK.sub(NORMALIZED_LINE_TERMINATOR, text)

    return text


def output_encoding(options: CleaningOptions) -> str:
    return TARGET_ENCODING if options.encoding_marker else PLAIN_ENCODING


def serialize(grid: Grid, options: CleaningOptions) -> bytes:
    """
    Serialize a cleaned grid to UTF-8 bytes.

    With ``encoding_marker`` the output starts with a UTF-8 BOM (utf-8-sig),
    which spreadsheet tools use to recognise the encoding.
    """
    return to_text(grid, options).encode(output_encoding(options))


def output_filename(original: Optional[str]) -> str:
    """``report.final.csv`` -> ``cleaned_report.final.csv``."""
    base = _FINAL_EXTENSION.sub("", original or "")
    if not original:
        base = DEFAULT_BASENAME
    return f"{OUTPUT_FILENAME_PREFIX}{base}.csv"
