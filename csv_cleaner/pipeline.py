"""
Pipeline orchestration.

bytes -> resolve -> parse -> clean -> serialize -> bytes

A ``CleaningSession`` keeps exactly one ``PipelineState``. Every successful
step builds a new state and swaps it in; a failing step raises and leaves the
previous state as it was.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field, replace
from typing import List, Optional

from .cleaning import clean
from .encoding import DecodedText, resolve
from .errors import InvalidState
from .models import CleaningOptions, CleaningStats, Diagnostics, Preview
from .parser import DEFAULT_SAMPLE_SIZE, Grid, ParsedTable, parse
from .rules import OUTPUT_MEDIA_TYPE
from .serializer import output_encoding, output_filename, serialize

logger = logging.getLogger(__name__)

DEFAULT_PREVIEW_ROWS = 50
PREVIEW_HEADER_MAX = 40
PREVIEW_CELL_MAX = 60


@dataclass(frozen=True)
class RawInput:
    data: bytes
    filename: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ExportResult:
    content: bytes
    filename: str
    encoding: str
    media_type: str = OUTPUT_MEDIA_TYPE

    @property
    def sha256(self) -> str:
        return hashlib.sha256(self.content).hexdigest()


@dataclass(frozen=True)
class PipelineState:
    source: Optional[RawInput] = None
    decoded: Optional[DecodedText] = None
    table: Optional[ParsedTable] = None
    options: Optional[CleaningOptions] = None
    cleaned: Optional[Grid] = None
    stats: Optional[CleaningStats] = None
    warnings: tuple = field(default_factory=tuple)


def encoding_warnings(decoded: DecodedText) -> List[str]:
    if not decoded.invalid_character_count:
        return []
    return [
        f"Possible encoding issues: {decoded.invalid_character_count} invalid character(s) "
        f"after decoding as {decoded.encoding_label.upper()}."
    ]


def size_warnings(source: RawInput, limit_mb: Optional[float]) -> List[str]:
    if limit_mb is None or source.size <= limit_mb * 1024 * 1024:
        return []
    return [f"Large file ({source.size / (1024 * 1024):.1f} MB); processing may be slow."]


def shorten(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "\u2026"


def column_label(value: str, index: int) -> str:
    """Display label for a header cell; empty names become ``(col N)``."""
    return shorten(value, PREVIEW_HEADER_MAX) or f"(col {index + 1})"


def preview(grid: Grid, limit: int = DEFAULT_PREVIEW_ROWS) -> Preview:
    """First ``limit`` rows (header included), fitted to the header width.

    Long header names and cell values are shortened with an ellipsis.
    """
    if not grid:
        return Preview()
    header = grid[0]
    width = len(header)
    rows = [
        [shorten(cell, PREVIEW_CELL_MAX) for cell in (list(row) + [""] * width)[:width]]
        for row in grid[1:limit]
    ]
    return Preview(
        headers=[column_label(cell, i) for i, cell in enumerate(header)],
        rows=rows,
        total_rows=len(grid),
    )


class CleaningSession:
    """Holds the current load/clean result for one input at a time."""

    def __init__(
        self,
        sniff_sample_size: int = DEFAULT_SAMPLE_SIZE,
        large_file_warning_mb: Optional[float] = None,
    ):
        self.sniff_sample_size = sniff_sample_size
        self.large_file_warning_mb = large_file_warning_mb
        self._state = PipelineState()

    @property
    def state(self) -> PipelineState:
        return self._state

    def load(self, data: bytes, filename: str) -> PipelineState:
        source = RawInput(data=bytes(data), filename=filename)
        warnings = size_warnings(source, self.large_file_warning_mb)
        for message in warnings:
            logger.warning("%s: %s", filename, message)

        decoded = resolve(source.data)
        table = parse(decoded.text, self.sniff_sample_size)

        self._state = PipelineState(
            source=source,
            decoded=decoded,
            table=table,
            warnings=tuple(warnings + encoding_warnings(decoded)),
        )
        return self._state

    def clean(self, options: Optional[CleaningOptions] = None) -> PipelineState:
        state = self._state
        if state.table is None:
            raise InvalidState("Please upload a CSV file first.")

        snapshot = options or CleaningOptions()
        cleaned, stats = clean(state.table.rows, snapshot)
        self._state = replace(state, options=snapshot, cleaned=cleaned, stats=stats)
        return self._state

    def export(self, options: Optional[CleaningOptions] = None) -> ExportResult:
        state = self._state
        if state.cleaned is None or state.source is None:
            raise InvalidState("Nothing to download. Clean a CSV first.")

        snapshot = options or state.options or CleaningOptions()
        content = serialize(state.cleaned, snapshot)
        result = ExportResult(
            content=content,
            filename=output_filename(state.source.filename),
            encoding=output_encoding(snapshot),
        )
        logger.info("Exported %s (%d bytes)", result.filename, len(content))
        return result

    def diagnostics(self) -> Diagnostics:
        state = self._state
        if state.stats is None or state.cleaned is None:
            raise InvalidState("No cleaning result yet. Clean a CSV first.")

        return Diagnostics(
            rows_before=len(state.table.rows),
            rows_after=len(state.cleaned),
            **state.stats.model_dump(),
            encoding_label=state.decoded.encoding_label,
            invalid_character_count=state.decoded.invalid_character_count,
            detected_delimiter=state.table.delimiter,
            detected_column_count=state.table.field_count,
            line_ending=state.table.line_ending,
            warnings=list(state.warnings),
        )

    def preview(self, limit: int = DEFAULT_PREVIEW_ROWS) -> Preview:
        state = self._state
        if state.cleaned is not None:
            return preview(state.cleaned, limit)
        if state.table is not None:
            return preview(state.table.rows, limit)
        raise InvalidState("Please upload a CSV file first.")


@dataclass(frozen=True)
class PipelineResult:
    export: ExportResult
    diagnostics: Diagnostics
    preview: Preview


def run_pipeline(
    data: bytes,
    filename: str,
    options: Optional[CleaningOptions] = None,
    sniff_sample_size: int = DEFAULT_SAMPLE_SIZE,
    large_file_warning_mb: Optional[float] = None,
    preview_rows: int = DEFAULT_PREVIEW_ROWS,
) -> PipelineResult:
    """Load, clean and export ``data`` in a fresh session."""
    session = CleaningSession(
        sniff_sample_size=sniff_sample_size,
        large_file_warning_mb=large_file_warning_mb,
    )
    session.load(data, filename)
    session.clean(options)
    return PipelineResult(
        export=session.export(),
        diagnostics=session.diagnostics(),
        preview=session.preview(preview_rows),
    )
