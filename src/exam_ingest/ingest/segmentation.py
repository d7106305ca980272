"""
Module: ingest.segmentation

Purpose:
    Split a batched paste of several questions into one segment per
    question. Explicit numbering ("1.", "2)") is the strongest signal and
    always wins; otherwise each run of exactly four "(A)".."(D)" markers
    closes one question. Unsegmentable input becomes a single segment.

Key Functions:
    - segment_questions(): Text to QuestionSegment list
    - detect_multiple_questions(): Cheap check used before segmenting
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from exam_ingest.common.patterns import (
    INLINE_OPTION_MARKER_PATTERN,
    QUESTION_NUMBER_PATTERN,
    normalize_input,
    normalize_option_key,
)
from exam_ingest.common.thresholds import PARSING_THRESHOLDS, ParsingThresholds
from exam_ingest.core.models import Option, QuestionSegment
from exam_ingest.ingest.detection import parse_options

logger = logging.getLogger(__name__)

RUN_KEYS = ("A", "B", "C", "D")

_SENTENCE_BREAK = re.compile(r"[.?!。？！](?=\s)")
_WORD = re.compile(r"\S+")


@dataclass(frozen=True)
class NumberStart:
    """A candidate question number and where it starts."""
    number: int
    start: int
    end: int


def _number_candidates(text: str) -> List[NumberStart]:
    return [
        NumberStart(number=int(m.group(1)), start=m.start(), end=m.end())
        for m in QUESTION_NUMBER_PATTERN.finditer(text)
    ]


def resolve_number_sequence(candidates: Sequence[NumberStart]) -> List[NumberStart]:
    """
    Pick the longest run of consecutive question numbers.

    Numbers must increase by exactly one from start to start, which
    drops incidental matches such as "costs 5. Then" inside a stem.
    One pass: each candidate extends the longest run ending at the
    number before it.
    """
    lengths: list[int] = []
    previous: list[int] = []
    run_end: dict[int, int] = {}  # number -> index of the longest run ending there
    best = -1
    for i, cand in enumerate(candidates):
        before = run_end.get(cand.number - 1, -1)
        lengths.append(lengths[before] + 1 if before >= 0 else 1)
        previous.append(before)
        current = run_end.get(cand.number)
        if current is None or lengths[i] > lengths[current]:
            run_end[cand.number] = i
        if best < 0 or lengths[i] > lengths[best]:
            best = i

    chain: list[NumberStart] = []
    while best >= 0:
        chain.append(candidates[best])
        best = previous[best]
    chain.reverse()
    return chain


def _split_on_numbers(text: str) -> List[QuestionSegment]:
    sequence = resolve_number_sequence(_number_candidates(text))
    if len(sequence) < 2:
        return []

    preamble = text[: sequence[0].start].strip()
    segments = []
    for i, start in enumerate(sequence):
        end = sequence[i + 1].start if i + 1 < len(sequence) else len(text)
        body = text[start.end:end].strip()
        if i == 0 and preamble:
            body = f"{preamble}\n{body}"
        options = parse_options(body)
        segments.append(
            QuestionSegment(
                index=i + 1,
                text=body,
                options=tuple(options) if options else None,
                has_explicit_number=True,
            )
        )
    return segments


def _line_end(text: str, pos: int) -> int:
    end = text.find("\n", pos)
    return len(text) if end == -1 else end


def _last_option_end(text: str, start: int, end: int, siblings: Sequence[Option]) -> int:
    """
    End of a run's last option when the next question shares its line.

    The option stops at the first sentence break, else after as many
    words as the longest of its sibling options.
    """
    segment = text[start:end]
    brk = _SENTENCE_BREAK.search(segment)
    if brk:
        return start + brk.end()
    limit = max((len(o.text.split()) for o in siblings), default=1) or 1
    words = list(_WORD.finditer(segment))
    if len(words) <= limit:
        return end
    return start + words[limit - 1].end()


def _option_runs(text: str) -> List[Tuple[int, int]]:
    """Index ranges into the marker list for each run of exactly A, B, C, D."""
    keys = [normalize_option_key(m.group(1)) for m in INLINE_OPTION_MARKER_PATTERN.finditer(text)]
    runs = []
    i = 0
    while i + len(RUN_KEYS) <= len(keys):
        window = tuple(keys[i:i + len(RUN_KEYS)])
        followed_by_e = i + len(RUN_KEYS) < len(keys) and keys[i + len(RUN_KEYS)] == "E"
        if window == RUN_KEYS and not followed_by_e:
            runs.append((i, i + len(RUN_KEYS)))
            i += len(RUN_KEYS)
        else:
            i += 1
    return runs


def _split_on_option_runs(text: str, thresholds: ParsingThresholds) -> List[QuestionSegment]:
    markers = list(INLINE_OPTION_MARKER_PATTERN.finditer(text))
    runs = _option_runs(text)
    if not runs:
        return []

    segments = []
    stem_start = 0
    for n, (first, last) in enumerate(runs):
        options = []
        run_end = stem_start
        for k in range(first, last):
            m = markers[k]
            end = markers[k + 1].start() if k + 1 < len(markers) else len(text)
            end = min(end, _line_end(text, m.end()))
            if k == last - 1 and k + 1 < len(markers) and end == markers[k + 1].start():
                end = _last_option_end(text, m.end(), end, options)
            body = text[m.end():end].strip()[: thresholds.max_option_chars]
            options.append(Option(key=normalize_option_key(m.group(1)), text=body))
            run_end = end
        segments.append(
            QuestionSegment(
                index=n + 1,
                text=text[stem_start:run_end].strip(),
                options=tuple(options),
                has_explicit_number=False,
            )
        )
        stem_start = run_end
    return segments


def segment_questions(
    text: str, thresholds: ParsingThresholds = PARSING_THRESHOLDS
) -> List[QuestionSegment]:
    """
    Split text into question segments.

    Args:
        text: Raw pasted text, possibly several questions

    Returns:
        At least one segment. Numbered splits set has_explicit_number;
        option-run splits carry their four options; the single fallback
        segment has options=None.
    """
    normalized = normalize_input(text or "")

    segments = _split_on_numbers(normalized)
    if segments:
        logger.debug(f"Segmented {len(segments)} questions by numbering")
        return segments

    segments = _split_on_option_runs(normalized, thresholds)
    if segments:
        logger.debug(f"Segmented {len(segments)} questions by option runs")
        return segments

    return [QuestionSegment(index=1, text=normalized, options=None, has_explicit_number=False)]


def detect_multiple_questions(text: str) -> bool:
    """True when the text holds more than one numbered question or A-D block."""
    normalized = normalize_input(text or "")
    if len(resolve_number_sequence(_number_candidates(normalized))) >= 2:
        return True
    if len(_option_runs(normalized)) >= 2:
        return True
    keys = [normalize_option_key(m.group(1)) for m in INLINE_OPTION_MARKER_PATTERN.finditer(normalized)]
    return keys.count("A") >= 2

