"""
Deterministic cleaning rules.

This file keeps the fixed constants of the pipeline in one place so the
canonical output format is explicit and enforceable.
"""

# Tried in order; ties go to the earlier entry.
ENCODING_CANDIDATES = ("utf-8", "windows-1252", "iso-8859-1")
FALLBACK_ENCODING = "utf-8"

INVALID_CHARACTER_MARKER = "\ufffd"
BOM = "\ufeff"

SNIFF_DELIMITERS = ",;\t|"
DEFAULT_DELIMITER = ","

NORMALIZED_DELIMITER = ","
NORMALIZED_LINE_TERMINATOR = "\r\n"
QUOTE_CHAR = '"'

TARGET_ENCODING = "utf-8-sig"  # UTF-8 with BOM
PLAIN_ENCODING = "utf-8"
OUTPUT_MEDIA_TYPE = "text/csv; charset=utf-8"

# Not expected in real cell text.
DEDUPE_KEY_SEPARATOR = "\u0001"

OUTPUT_FILENAME_PREFIX = "cleaned_"
DEFAULT_BASENAME = "data"
