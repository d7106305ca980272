"""
Module: patterns

Purpose:
    Shared compiled regular expressions and small normalization helpers
    for exam question text. Every repetition over user-supplied text is
    bounded so that adversarial input cannot trigger catastrophic
    backtracking.

Key Functions:
    - normalize_fullwidth(): Full-width Latin letters to half-width
    - contains_year(): Detect 4-digit year tokens (1000-2999)
    - has_numbered_blank(): Detect "(n)" placeholders that are not years
    - has_single_parens_blank(): Detect an empty "( )" blank
    - normalize_blank_markers(): Circled numbers and "（１）" to "(1)"
    - normalize_input(): Exam text normalization before segmentation

Used By:
    - ingest.detection
    - ingest.segmentation
    - ingest.reading
    - ingest.subject
    - ingest.classification
    - ingest.sanitize
"""

from __future__ import annotations

import re
import unicodedata

FULLWIDTH_OFFSET = 0xFEE0

# Option keys in either width and case
OPTION_KEY_CLASS = "A-Ea-eＡ-Ｅａ-ｅ"

YEAR_PATTERN = re.compile(r"(?<!\d)(?:1\d{3}|2\d{3})(?!\d)")

# "(3)", "( 12 )", "（３）". The lookaheads reject years and any 3+ digit integer.
NUMBERED_BLANK_PATTERN = re.compile(
    r"[(（][ \t　]{0,32}"
    r"(?![12][0-9０-９]{3}(?![0-9０-９]))"
    r"(?![1-9１-９][0-9０-９]{2})"
    r"([1-9１-９][0-9０-９]?)"
    r"[ \t　]{0,32}[)）]"
)

SINGLE_PARENS_BLANK_PATTERN = re.compile(r"[(（][ \t　_]{0,16}[)）]")

UNDERSCORE_BLANK_PATTERN = re.compile(r"(?<!_)_{3,64}")

# "(A)" anywhere in the text
INLINE_OPTION_MARKER_PATTERN = re.compile(
    rf"[(（][ \t]{{0,2}}([{OPTION_KEY_CLASS}])[ \t]{{0,2}}[)）]"
)

# "A.", "(B)", "Ｃ、", "d " at the start of a line
LINE_OPTION_MARKER_PATTERN = re.compile(
    rf"^[ \t　]{{0,8}}[(（]?[ \t]{{0,2}}([{OPTION_KEY_CLASS}])[ \t]{{0,2}}"
    r"(?:[.．)）、][ \t　]{0,8}|[ \t　]{1,8})",
    re.MULTILINE,
)

# Where a line-start option's text stops when more options share the line
OPTION_TEXT_STOP_PATTERN = re.compile(
    rf"[(（][ \t]{{0,2}}[{OPTION_KEY_CLASS}][ \t]{{0,2}}[)）]"
    r"|(?<=[ \t])[A-EＡ-Ｅ][.．、)）](?=[ \t])"
)

# Looser fallback: A-D only, separator may be any whitespace
RECONSTRUCT_OPTION_PATTERN = re.compile(
    r"^[ \t　]{0,8}[(（]?([A-Da-d])[)）.．、\s]",
    re.MULTILINE,
)

LEADING_SEPARATOR_PATTERN = re.compile(r"^[)）.．、:\s]{0,16}")

# "1. ...", "2) ..." numbering preceded by line start or whitespace
QUESTION_NUMBER_PATTERN = re.compile(
    r"(?:^|(?<=\s))(\d{1,3})[.)．、](?!\d)", re.MULTILINE
)

# Reading question headers: "Q1", "(1)", "第1題", "問題1"
QUESTION_MARKER_PATTERN = re.compile(
    r"(?:\bQ\s{0,2}\d{1,3}\b|問題\s{0,2}\d{0,3}|第\s{0,2}\d{1,3}\s{0,2}[題题]"
    r"|^[ \t]{0,8}[(（]\s{0,2}\d{1,2}\s{0,2}[)）])",
    re.MULTILINE,
)

DIALOG_PATTERN = re.compile(
    r"^[ \t]{0,8}(?!(?:Answer|Ans|Question|Note|Hint)\b)([A-Z][a-z]{0,15})[ \t]{0,2}[:：][ \t]",
    re.MULTILINE,
)

ANSWER_PATTERN = re.compile(
    r"(?:Answer|Ans|答案|正確答案)[ \t]{0,4}[:：][ \t]{0,4}"
    r"[(（]?([A-Ea-e])[)）]?",
    re.IGNORECASE,
)

HTML_TAG_PATTERN = re.compile(r"<[^<>]{0,4096}>")

HAN_PATTERN = re.compile(r"[一-鿿]")
LATIN_LETTER_PATTERN = re.compile(r"[A-Za-z]")
ENGLISH_WORD_PATTERN = re.compile(r"\b[A-Za-z]{2,40}\b")
LOWERCASE_RUN_PATTERN = re.compile(r"\b[a-z]{1,40}\s{1,4}[a-z]{1,40}\s{1,4}[a-z]{1,40}\b")

DANGEROUS_PATTERNS = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w{1,256}\s{0,32}=", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"<object", re.IGNORECASE),
    re.compile(r"<embed", re.IGNORECASE),
    re.compile(r"<link", re.IGNORECASE),
    re.compile(r"<meta", re.IGNORECASE),
)

_CIRCLED_NUMBERS = {
    **{chr(0x2460 + i): i + 1 for i in range(20)},  # ①..⑳
    **{chr(0x2776 + i): i + 1 for i in range(10)},  # ❶..❿
    **{chr(0x2780 + i): i + 1 for i in range(10)},  # ➀..➉
}

_ZERO_WIDTH = re.compile(r"[\u200b-\u200d\ufeff]")
_FULLWIDTH_BLANK = re.compile(r"（[ 　]{0,8}([０-９]{1,2})[ 　]{0,8}）")


def normalize_fullwidth(text: str) -> str:
    """Convert full-width Latin letters (Ａ-Ｚ, ａ-ｚ) to half-width."""
    out = []
    for ch in text:
        code = ord(ch)
        if 0xFF21 <= code <= 0xFF3A or 0xFF41 <= code <= 0xFF5A:
            out.append(chr(code - FULLWIDTH_OFFSET))
        else:
            out.append(ch)
    return "".join(out)


def normalize_option_key(key: str) -> str:
    """Half-width upper-case form of an option key."""
    return normalize_fullwidth(key).upper()


def contains_year(text: str) -> bool:
    return YEAR_PATTERN.search(text) is not None


def has_numbered_blank(text: str) -> bool:
    return NUMBERED_BLANK_PATTERN.search(text) is not None


def has_single_parens_blank(text: str) -> bool:
    return SINGLE_PARENS_BLANK_PATTERN.search(text) is not None


def normalize_blank_markers(text: str) -> str:
    """Rewrite circled numbers and full-width "（１）" blanks as "(1)"."""
    text = "".join(
        f"({_CIRCLED_NUMBERS[ch]})" if ch in _CIRCLED_NUMBERS else ch for ch in text
    )
    return _FULLWIDTH_BLANK.sub(lambda m: f"({int(m.group(1))})", text)


def normalize_input(text: str) -> str:
    """
    Normalize pasted or OCR'd exam text.

    Blank markers are rewritten first, then NFKC folds full-width
    brackets, digits, letters and ideographic spaces. Line endings are
    unified and zero-width characters removed.
    """
    if not text:
        return ""
    text = normalize_blank_markers(text)
    text = unicodedata.normalize("NFKC", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _ZERO_WIDTH.sub("", text)
    text = re.sub(r"[ \t]{2,}", " ", text)
    return text.strip()
