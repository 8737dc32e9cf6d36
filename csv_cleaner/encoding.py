"""
Encoding resolution.

Every candidate in ``rules.ENCODING_CANDIDATES`` is tried with a non-strict
decode; the one that leaves the fewest replacement characters wins, and ties
go to the earlier candidate. Resolution never fails: a raw byte buffer always
yields some text, with the number of replacement characters reported so the
caller can warn about possible mojibake.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .rules import BOM, ENCODING_CANDIDATES, FALLBACK_ENCODING, INVALID_CHARACTER_MARKER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodedText:
    text: str
    encoding_label: str
    invalid_character_count: int


@dataclass(frozen=True)
class EncodingTrial:
    """Outcome of decoding the input with one candidate.

    ``text`` and ``invalid_count`` are None when the codec itself could not be
    used (unknown name or a codec-level failure).
    """

    encoding: str
    text: Optional[str] = None
    invalid_count: Optional[int] = None
    error: Optional[str] = None

    @property
    def usable(self) -> bool:
        return self.text is not None


def count_invalid_characters(text: str) -> int:
    return text.count(INVALID_CHARACTER_MARKER)


def strip_leading_bom(text: str) -> str:
    """Drop one BOM at position 0. Later BOM code points are left alone."""
    if text.startswith(BOM):
        return text[1:]
    return text


def try_decode(raw: bytes, encoding: str) -> EncodingTrial:
    try:
        text = raw.decode(encoding, errors="replace")
    except (LookupError, UnicodeError) as exc:
        return EncodingTrial(encoding=encoding, error=str(exc))
    return EncodingTrial(encoding=encoding, text=text, invalid_count=count_invalid_characters(text))


def select_best(trials: Iterable[EncodingTrial]) -> Optional[EncodingTrial]:
    best: Optional[EncodingTrial] = None
    for trial in trials:
        if not trial.usable:
            continue
        # strict comparison keeps the earlier candidate on ties
        if best is None or trial.invalid_count < best.invalid_count:
            best = trial
    return best


def resolve(raw: bytes, candidates: Iterable[str] = ENCODING_CANDIDATES) -> DecodedText:
    """
    Decode ``raw`` with the candidate producing the fewest replacement characters.

    Rules:
    - Each candidate is decoded with errors="replace".
    - A candidate whose codec cannot be used is skipped, never raised.
    - If no candidate is usable, fall back to a permissive UTF-8 decode.
    - One leading BOM code point is removed from the chosen text.
    """
    trials: List[EncodingTrial] = [try_decode(raw, enc) for enc in candidates]
    for trial in trials:
        if trial.usable:
            logger.debug("Encoding trial %s: %d invalid character(s)", trial.encoding, trial.invalid_count)
        else:
            logger.debug("Encoding trial %s unusable: %s", trial.encoding, trial.error)

    best = select_best(trials)
    if best is None:
        text = raw.decode(FALLBACK_ENCODING, errors="replace")
        best = EncodingTrial(
            encoding=FALLBACK_ENCODING,
            text=text,
            invalid_count=count_invalid_characters(text),
        )
        logger.warning("No encoding candidate was usable; falling back to %s", FALLBACK_ENCODING)

    decoded = DecodedText(
        text=strip_leading_bom(best.text),
        encoding_label=best.encoding,
        invalid_character_count=best.invalid_count,
    )

    if decoded.invalid_character_count:
        logger.warning(
            "Decoded as %s with %d invalid character(s)",
            decoded.encoding_label,
            decoded.invalid_character_count,
        )
    else:
        logger.info("Decoded as %s", decoded.encoding_label)

    return decoded
