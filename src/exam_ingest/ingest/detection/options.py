"""
Lettered option extraction.

Options come in three layouts: one per line ("A. cat"), inline runs
("(A) cat (B) dog") and loose layouts where the marker and its text sit
on different lines. Primary extraction handles the first two; the
reconstruction fallback handles the third.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Tuple

from exam_ingest.common.patterns import (
    INLINE_OPTION_MARKER_PATTERN,
    LEADING_SEPARATOR_PATTERN,
    LINE_OPTION_MARKER_PATTERN,
    OPTION_TEXT_STOP_PATTERN,
    RECONSTRUCT_OPTION_PATTERN,
    normalize_option_key,
)
from exam_ingest.common.thresholds import PARSING_THRESHOLDS, ParsingThresholds
from exam_ingest.core.models import Option, OptionMarker

logger = logging.getLogger(__name__)


def _line_end(text: str, pos: int) -> int:
    end = text.find("\n", pos)
    return len(text) if end == -1 else end


def extract_option_markers(text: str) -> List[OptionMarker]:
    """
    Find option markers in original width and case.

    Both line-start markers ("Ｂ. dog") and parenthesized inline markers
    ("(c) bird") are returned, ordered by position. Overlapping matches
    are reported once.
    """
    if not text:
        return []
    found = [
        (m.start(), m.end(), m.group(1))
        for pattern in (LINE_OPTION_MARKER_PATTERN, INLINE_OPTION_MARKER_PATTERN)
        for m in pattern.finditer(text)
    ]
    found.sort()

    markers: list[OptionMarker] = []
    last_end = -1
    for start, end, key in found:
        if start < last_end:
            continue
        markers.append(OptionMarker(key=key, span=(start, end)))
        last_end = end
    return markers


def _extract_line_options(
    text: str, thresholds: ParsingThresholds
) -> Tuple[List[Option], Optional[int]]:
    options: list[Option] = []
    seen: set[str] = set()
    first_start = None
    for m in LINE_OPTION_MARKER_PATTERN.finditer(text):
        key = normalize_option_key(m.group(1))
        if key in seen:
            continue
        body = text[m.end():_line_end(text, m.end())]
        stop = OPTION_TEXT_STOP_PATTERN.search(body)
        if stop:
            body = body[:stop.start()]
        body = body.strip()[: thresholds.max_option_chars]
        if not body:
            continue
        seen.add(key)
        options.append(Option(key=key, text=body))
        if first_start is None:
            first_start = m.start()
    return options, first_start


def extract_options(text: str, thresholds: ParsingThresholds = PARSING_THRESHOLDS) -> List[Option]:
    """
    Extract options whose marker starts a line.

    Markers are A-E in either width and case, optionally parenthesized,
    followed by ".", ")", "、" or whitespace. The text runs to the next
    marker or the end of the line and is capped at max_option_chars.
    The first occurrence of each normalized key wins.
    """
    if not text:
        return []
    return _extract_line_options(text, thresholds)[0]


def _extract_inline_options(
    text: str, thresholds: ParsingThresholds
) -> Tuple[List[Option], Optional[int]]:
    matches = list(INLINE_OPTION_MARKER_PATTERN.finditer(text))
    options: list[Option] = []
    seen: set[str] = set()
    first_start = None
    for i, m in enumerate(matches):
        key = normalize_option_key(m.group(1))
        if key in seen:
            continue
        end = matches[i + 1].start() if i + 1 < len(matches) else len(text)
        end = min(end, _line_end(text, m.end()))
        body = text[m.end():end].strip()[: thresholds.max_option_chars]
        if not body:
            continue
        seen.add(key)
        options.append(Option(key=key, text=body))
        if first_start is None:
            first_start = m.start()
    return options, first_start


def extract_inline_options(
    text: str, thresholds: ParsingThresholds = PARSING_THRESHOLDS
) -> List[Option]:
    """Extract "(A) x (B) y" style options wherever they appear."""
    if not text:
        return []
    return _extract_inline_options(text, thresholds)[0]


def _reconstruct(text: str, thresholds: ParsingThresholds) -> Tuple[List[Option], Optional[int]]:
    markers = list(RECONSTRUCT_OPTION_PATTERN.finditer(text))
    options: list[Option] = []
    seen: set[str] = set()
    for i, m in enumerate(markers):
        key = m.group(1).upper()
        if key in seen:
            continue
        end = markers[i + 1].start() if i + 1 < len(markers) else len(text)
        chunk = LEADING_SEPARATOR_PATTERN.sub("", text[m.end(1):end], count=1)
        first_line = chunk.split("\n", 1)[0].strip()[: thresholds.max_option_chars]
        if not first_line:
            continue
        seen.add(key)
        options.append(Option(key=key, text=first_line))

    if len(options) < thresholds.min_reconstructed_options:
        return [], None
    return options, markers[0].start()


def reconstruct_options_from_text(
    text: str, thresholds: ParsingThresholds = PARSING_THRESHOLDS
) -> List[Option]:
    """
    Rebuild options when primary extraction found fewer than two.

    Marker positions come from a looser A-D pattern; each option is the
    first line of the text between consecutive markers with leading
    separators removed. A single marker is never trusted, so fewer than
    min_reconstructed_options results in an empty list.
    """
    if not text:
        return []
    options, _ = _reconstruct(text, thresholds)
    if options:
        logger.debug(f"Reconstructed {len(options)} options from loose layout")
    return options


def _parse(text: str, thresholds: ParsingThresholds) -> Tuple[List[Option], Optional[int]]:
    inline, inline_start = _extract_inline_options(text, thresholds)
    line, line_start = _extract_line_options(text, thresholds)
    if len(inline) >= 2 and len(inline) >= len(line):
        return inline, inline_start
    if len(line) >= 2:
        return line, line_start

    rebuilt, rebuilt_start = _reconstruct(text, thresholds)
    if rebuilt:
        return rebuilt, rebuilt_start
    if line:
        return line, line_start
    return inline, inline_start


def parse_options(text: str, thresholds: ParsingThresholds = PARSING_THRESHOLDS) -> List[Option]:
    """
    Best-effort option list for a question.

    Prefers inline runs, then line-start options, then reconstruction.
    Never raises; text without markers gives an empty list.
    """
    if not text:
        return []
    return _parse(text, thresholds)[0]


def split_stem_and_options(
    text: str, thresholds: ParsingThresholds = PARSING_THRESHOLDS
) -> Tuple[str, List[Option]]:
    """
    Split a question into its stem and options.

    The stem is everything before the first marker of the chosen option
    set; without options the whole text is the stem.
    """
    if not text:
        return "", []
    options, start = _parse(text, thresholds)
    if not options or start is None:
        return text.strip(), options
    return text[:start].strip(), options
