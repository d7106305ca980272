"""
Numbered blank detection.

A numbered blank is a parenthesized integer placeholder such as "(3)"
or "( 12 )". Years ("(2019)") and any integer with three or more
digits are never blanks.
"""

from __future__ import annotations

import logging
from typing import List

from exam_ingest.common.patterns import (
    NUMBERED_BLANK_PATTERN,
    SINGLE_PARENS_BLANK_PATTERN,
    UNDERSCORE_BLANK_PATTERN,
)
from exam_ingest.core.models import Blank

logger = logging.getLogger(__name__)


def extract_numbered_blanks(text: str) -> List[Blank]:
    """
    Extract numbered blanks left to right.

    Duplicate indices are kept as separate spans since the same logical
    blank may be referenced more than once.

    Args:
        text: Passage text (full-width digits and brackets are accepted)

    Returns:
        Blanks in order of appearance; empty for text without blanks.
    """
    if not text:
        return []
    blanks = [
        Blank(index=int(m.group(1)), span=(m.start(), m.end()))
        for m in NUMBERED_BLANK_PATTERN.finditer(text)
    ]
    logger.debug(f"Found {len(blanks)} numbered blanks")
    return blanks


def _is_question_header(text: str, start: int) -> bool:
    line_start = text.rfind("\n", 0, start) + 1
    return text[line_start:start].strip() in ("", "()", "( )")


def extract_passage_blanks(text: str) -> List[Blank]:
    """Numbered blanks, skipping "(1)" question headers that open a line."""
    return [b for b in extract_numbered_blanks(text) if not _is_question_header(text, b.span[0])]


def unique_blank_indices(blanks: List[Blank]) -> List[int]:
    """Distinct blank indices in first-seen order."""
    seen: list[int] = []
    for blank in blanks:
        if blank.index not in seen:
            seen.append(blank.index)
    return seen


def count_single_parens_blanks(text: str) -> int:
    """Count empty "( )" blanks."""
    return sum(1 for _ in SINGLE_PARENS_BLANK_PATTERN.finditer(text or ""))


def count_underscore_blanks(text: str) -> int:
    """Count "____" blanks; a long run counts once."""
    return sum(1 for _ in UNDERSCORE_BLANK_PATTERN.finditer(text or ""))
