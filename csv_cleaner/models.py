from __future__ import annotations

from typing import List
from pydantic import BaseModel, ConfigDict, Field


class CleaningOptions(BaseModel):
    """Independent toggles for the cleaning and export steps.

    Instances are frozen; use ``reset`` or ``model_copy(update=...)`` to derive
    a new set of options.
    """

    model_config = ConfigDict(frozen=True)

    trim: bool = True
    remove_empty: bool = True
    fix_columns: bool = True
    dedupe: bool = False
    normalize_header: bool = True
    normalize_line_endings: bool = True
    consistent_quotes: bool = True
    encoding_marker: bool = True

    @classmethod
    def defaults(cls) -> "CleaningOptions":
        return cls()

    def reset(self, *names: str) -> "CleaningOptions":
        """Return a copy with the named toggles (all of them if none) at their defaults."""
        fields = type(self).model_fields
        targets = names or tuple(fields)
        unknown = [n for n in targets if n not in fields]
        if unknown:
            raise ValueError(f"Unknown option(s): {', '.join(unknown)}")
        return self.model_copy(update={n: fields[n].default for n in targets})


class CleaningStats(BaseModel):
    removed_empty: int = 0
    duplicates_removed: int = 0
    trimmed_columns: int = 0
    padded_columns: int = 0


class Diagnostics(BaseModel):
    rows_before: int
    rows_after: int
    removed_empty: int = 0
    duplicates_removed: int = 0
    trimmed_columns: int = 0
    padded_columns: int = 0
    encoding_label: str
    invalid_character_count: int = 0
    detected_delimiter: str = Field(default=",", examples=[",", ";", "\t"])
    detected_column_count: int
    line_ending: str = Field(default="lf", examples=["lf", "crlf", "cr"])
    warnings: List[str] = Field(default_factory=list)


class CleanedCsv(BaseModel):
    filename: str
    sha256: str
    encoding: str = Field(default="utf-8-sig")
    media_type: str = Field(default="text/csv; charset=utf-8")
    content_b64: str


class Preview(BaseModel):
    headers: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)
    total_rows: int = 0


class CleanResponse(BaseModel):
    cleaned_csv: CleanedCsv
    diagnostics: Diagnostics
    preview: Preview


class ErrorResponse(BaseModel):
    detail: str
    code: str


class HealthResponse(BaseModel):
    ok: bool = True
