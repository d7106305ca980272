"""
Module: ingest.reading

Purpose:
    Parse a reading-comprehension group: one passage followed by
    several lettered-choice questions headed "(1)", "Q1" or "第1題".
    Produces a deterministic group id so the same passage always maps
    to the same group.

Key Functions:
    - parse_reading(): Raw text to ParsedReading
    - reading_group_id(): "reading-<md5[:8]>" for a passage

Guards:
    Inputs with numbered blanks inside the passage (cloze/discourse)
    and inputs whose choices are single words or short phrases are not
    reading groups; they return an empty ParsedReading with a warning.
"""

from __future__ import annotations

import hashlib
import logging
import re
from typing import List, Optional, Tuple

from exam_ingest.common.patterns import ANSWER_PATTERN, normalize_input
from exam_ingest.common.thresholds import PARSING_THRESHOLDS, ParsingThresholds
from exam_ingest.core.models import Option, ParsedReading, ReadingQuestion
from exam_ingest.ingest.detection.blanks import extract_passage_blanks
from exam_ingest.ingest.detection.shape import detect_choice_shape

logger = logging.getLogger(__name__)

_HEADER = r"(?:\( {0,4}\d{1,3} {0,4}\)|Q {0,4}\d{1,3}\.?|第 {0,4}\d{1,3} {0,4}題)"

Q_MARK = re.compile(rf"^ {{0,8}}(?:\(\s{{0,4}}\))? {{0,8}}{_HEADER}", re.IGNORECASE)
SPLIT_Q = re.compile(rf"^ {{0,8}}(?:\(\s{{0,4}}\))? {{0,8}}{_HEADER}", re.IGNORECASE | re.MULTILINE)
EMPTY_PREFIX = re.compile(rf"^ {{0,8}}\(\s{{0,4}}\)\s{{0,8}}{_HEADER}", re.IGNORECASE)
INLINE_HEADER = re.compile(r"Q\d{1,3}|\( {0,4}\d{1,3} {0,4}\)|第 {0,4}\d{1,3} {0,4}題")
READING_OPTION = re.compile(r"[(（]([A-Da-d])[)）]\s{0,8}")
GUARD_OPTION = re.compile(r"[(（]([A-Da-d])[)）]\s{0,8}([^\n(]{1,160})")

# Break the line before a question header that follows sentence punctuation
_HEADER_BREAK = re.compile(
    r"([.)\]\"'?!？！。»』])[ \t]{0,8}((?:\(\s{0,4}\))?\(\s{0,4}\d{1,3}\s{0,4}\)|Q\s{0,4}\d{1,3}\.?|第\s{0,4}\d{1,3}\s{0,4}題)"
)
_ANSWER_TAIL = re.compile(r"(?:答案|正確答案|Answer)\s{0,4}[：:].*$", re.IGNORECASE | re.DOTALL)
_SENTENCE_BREAK = re.compile(r"[.!?]\s")
_STEM_PREFIX = re.compile(r"^(?:問題|Question)\s{0,4}[：:]\s{0,4}", re.IGNORECASE)

OPTION_KEYS = ("A", "B", "C", "D")


def _warn(warnings: List[str], message: str) -> None:
    if message not in warnings:
        warnings.append(message)


def reading_group_id(passage: str) -> str:
    """Deterministic "reading-<md5[:8]>" id; empty for an empty passage."""
    source = passage.strip()
    if not source:
        return ""
    return "reading-" + hashlib.md5(source.encode("utf-8")).hexdigest()[:8]


def _normalize(raw: str, warnings: List[str]) -> str:
    if re.search(r"[（）。．Ａ-Ｚａ-ｚ０-９]", raw):
        _warn(warnings, "Fullwidth brackets normalized")
    text = normalize_input(raw).replace("。", ".")
    if re.search(r"\(\s{0,4}\)\s{0,8}" + _HEADER, text):
        _warn(warnings, "Found () before (1)")
    text = re.sub(r"[ \t]+\n", "\n", text)
    return _HEADER_BREAK.sub(r"\1\n\2", text)


def _has_passage_blanks(text: str) -> bool:
    return bool(extract_passage_blanks(text))


def _has_word_level_choices(text: str) -> bool:
    choices = [m.group(2).strip() for m in GUARD_OPTION.finditer(text)][:4]
    choices = [c for c in choices if c]
    return bool(choices) and detect_choice_shape(choices) == "words/phrases"


def _clean_stem(text: str) -> str:
    text = Q_MARK.sub("", text, count=1)
    text = _STEM_PREFIX.sub("", text, count=1)
    text = text.strip("\"“”")
    return re.sub(r"\s+", " ", text).strip()


def _remove_passage_prefix(stem: str, passage: str) -> str:
    if not stem or not passage:
        return stem
    fragment = passage[: min(200, int(len(passage) * 0.3))].strip()
    if fragment and stem.lower().startswith(fragment.lower()):
        return re.sub(r"^[.。，,、：:]\s{0,4}", "", stem[len(fragment):]).strip()
    return stem


def _extract_options(
    text: str, warnings: List[str], thresholds: ParsingThresholds
) -> List[Tuple[Option, int, int]]:
    """Options with their [start, end) slice in text."""
    matches = list(READING_OPTION.finditer(text))
    if len(matches) < 2:
        return []

    next_question = SPLIT_Q.search(text, 1)
    answer = ANSWER_PATTERN.search(text)
    reasonable_end = min(
        next_question.start() if next_question else len(text),
        answer.start() if answer and answer.start() > matches[0].start() else len(text),
        matches[-1].start() + thresholds.reading_option_scan_chars,
    )

    slices: list[tuple[Option, int, int]] = []
    seen: set[str] = set()
    for i, m in enumerate(matches):
        start = m.start()
        if i + 1 < len(matches):
            end = matches[i + 1].start()
        else:
            end = min(reasonable_end, start + thresholds.reading_last_option_chars)
        key = m.group(1).upper()
        body = text[m.end():end].strip()

        if len(body) > thresholds.reading_option_leak_chars:
            cut = _SENTENCE_BREAK.search(body)
            if cut:
                body = body[: cut.start() + 1].strip()
                _warn(warnings, f"Option {key} truncated (possible passage leak)")

        body = _ANSWER_TAIL.sub("", body)
        header = INLINE_HEADER.search(body)
        if header and header.start() > 0:
            body = body[: header.start()]
        body = re.sub(r"\(\s{0,4}\)\s{0,8}$", "", body.strip())
        body = re.sub(r"\s+", " ", body).strip()[: thresholds.max_option_chars]
        if not body or key in seen:
            continue
        seen.add(key)
        slices.append((Option(key=key, text=body), start, end))

    if slices:
        region = text[slices[0][1]:slices[-1][2]]
        if "\n" not in region:
            _warn(warnings, "Options inline (A-D)")
        missing = [k for k in OPTION_KEYS if k not in seen]
        if missing:
            _warn(warnings, f"Options missing: {', '.join(missing)}")
    return slices


def _parse_chunk(
    chunk: str, index: int, passage: str, warnings: List[str], thresholds: ParsingThresholds
) -> Optional[ReadingQuestion]:
    trimmed = chunk.strip()
    if not trimmed:
        return None
    if EMPTY_PREFIX.search(trimmed):
        _warn(warnings, "Found () before (1)")

    header = Q_MARK.match(trimmed)
    remainder = trimmed[header.end():].strip() if header else trimmed
    if not remainder:
        remainder = trimmed

    slices = _extract_options(remainder, warnings, thresholds)
    answer = None
    if slices:
        found = ANSWER_PATTERN.search(remainder, slices[-1][2])
        stem_source = remainder[: slices[0][1]]
    else:
        found = ANSWER_PATTERN.search(remainder)
        stem_source = ANSWER_PATTERN.sub("", remainder)
    if found:
        answer = found.group(1).upper()

    stem = _remove_passage_prefix(_clean_stem(stem_source), passage)
    if not stem:
        stem = _clean_stem(remainder) or remainder.split("\n", 1)[0].strip() or f"Question {index + 1}"

    return ReadingQuestion(
        id=index + 1,
        qid=f"Q{index + 1}",
        stem=stem,
        options=tuple(opt for opt, _, _ in slices[:4]),
        answer=answer,
    )


def _split_passage(text: str, warnings: List[str]) -> Tuple[str, str, bool]:
    """Passage, question block and whether the single-question fallback applied."""
    lines = text.split("\n")
    for i, line in enumerate(lines):
        if Q_MARK.match(line):
            return "\n".join(lines[:i]).strip(), "\n".join(lines[i:]), False

    options = list(READING_OPTION.finditer(text))
    if len(options) < 3:
        return text.strip(), "", False

    _warn(warnings, "Detected options but no question header")
    before = text[: options[0].start()]
    boundary = max(before.rfind("\n\n"), before.rfind(". "), before.rfind(".\n"))
    if boundary > 0:
        return before[: boundary + 1].strip(), text[boundary + 1:].strip(), True
    return "", text, True


def parse_reading(raw: str, thresholds: ParsingThresholds = PARSING_THRESHOLDS) -> ParsedReading:
    """
    Parse a passage and its questions.

    Args:
        raw: Pasted reading group text

    Returns:
        ParsedReading. Never raises; non-reading input yields no
        questions and an explanatory warning.
    """
    if not raw or not raw.strip():
        return ParsedReading(passage="", questions=(), group_id="", warnings=("Empty input",))

    warnings: list[str] = []
    text = _normalize(raw, warnings)

    if _has_passage_blanks(text):
        logger.debug("Skipping reading parse: numbered blanks found")
        return ParsedReading("", (), "", ("Skipped: has numbered blanks (cloze or discourse, not reading)",))
    if _has_word_level_choices(text):
        logger.debug("Skipping reading parse: word-level choices")
        return ParsedReading("", (), "", ("Skipped: word-level choices (vocab or cloze, not reading)",))

    passage, block, single = _split_passage(text, warnings)
    if not block:
        _warn(warnings, "No question markers detected")
        return ParsedReading(passage, (), reading_group_id(passage), tuple(warnings))

    starts = [m.start() for m in SPLIT_Q.finditer(block)]
    if starts and starts[0] > 0:
        starts.insert(0, 0)
    chunks = [block[a:b] for a, b in zip(starts, starts[1:] + [len(block)])] if starts else []
    chunks = [c for c in chunks if c.strip()]
    if not chunks and single:
        chunks = [block]

    questions = []
    for chunk in chunks:
        parsed = _parse_chunk(chunk, len(questions), passage, warnings, thresholds)
        if parsed is not None:
            questions.append(parsed)

    if not questions:
        _warn(warnings, "No valid questions parsed")
    for question in questions:
        if not question.options:
            _warn(warnings, f"Question {question.qid} missing options")

    group_id = reading_group_id(passage or text)
    logger.debug(f"Parsed reading: passage={len(passage)} chars, questions={len(questions)}, group={group_id}")
    return ParsedReading(passage=passage, questions=tuple(questions), group_id=group_id, warnings=tuple(warnings))
