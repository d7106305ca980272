"""
Module: ingest.subject

Purpose:
    Decide which subject a question belongs to. Two independent
    detectors are provided:

    - classify_subject(): keyword scoring with an English-sentence boost.
      When the top two candidates are within the ambiguity margin the
      verdict collapses to UNKNOWN so the caller can disambiguate.
    - detect_subject(): character-density detector used ahead of kind
      classification. Reading-style text short-circuits to ENGLISH, and
      validate_subject() pushes a MATH verdict without any digit,
      operator or trig keyword back to ENGLISH.

Key Functions:
    - classify_subject()
    - detect_subject()
    - validate_subject()
    - subject_template()
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Tuple

from exam_ingest.common.patterns import (
    ENGLISH_WORD_PATTERN,
    HAN_PATTERN,
    LATIN_LETTER_PATTERN,
    LOWERCASE_RUN_PATTERN,
)
from exam_ingest.common.thresholds import SUBJECT_THRESHOLDS, SubjectThresholds
from exam_ingest.core.models import Subject, SubjectCandidate, SubjectDetection

logger = logging.getLogger(__name__)

SUBJECT_KEYWORDS: Dict[Subject, Tuple[str, ...]] = {
    Subject.MATH: (
        "三角形", "向量", "矩陣", "函數", "方程式", "不等式", "機率", "統計",
        "幾何", "代數", "三角", "餘弦", "正弦", "對數", "指數", "數列",
        "積分", "微分", "極限", "求值", "求解", "計算", "公式", "距離", "速度", "角度",
    ),
    Subject.ENGLISH: (
        "英文", "單字", "文法", "句型", "閱讀", "寫作", "聽力", "會話",
        "vocabulary", "grammar", "sentence", "reading", "writing", "listening",
        "clause", "relative", "tense", "translation", "paragraph", "insert", "blank",
    ),
    Subject.CHINESE: (
        "國文", "國語", "文言文", "白話文", "成語", "修辭", "注音", "字音", "字形",
        "錯別字", "詩經", "論語", "孟子", "唐詩", "宋詞", "古文", "作者", "詞語",
    ),
}

SUBJECT_TEMPLATES: Dict[Subject, str] = {
    Subject.ENGLISH: "english-mcq",
    Subject.MATH: "math-mcq",
    Subject.CHINESE: "chinese-mcq",
}

READING_MARKER_PATTERN = re.compile(
    r"(?:question|問題|q\d{1,3}|\([0-9０-９]{1,3}\)|（[0-9０-９]{1,3}）|（\s{0,8}）\s{0,8}\([0-9]{1,3}\))",
    re.IGNORECASE,
)
LETTERED_OPTION_PATTERN = re.compile(r"\([A-DＡ-Ｄ]\)|（[A-DＡ-Ｄ]）")
MATH_SYMBOL_PATTERN = re.compile(r"[0-9=+\-−*/×÷√^%]")
MATH_KEYWORD_PATTERN = re.compile(
    r"\b(?:cos|sin|tan|cot|sec|csc|theta|phi|sigma|log|ln|lim|integral|derivative|matrix|vector)\b|π"
)
MATH_GUARD_PATTERN = re.compile(r"[0-9=+\-*/√]|cos|sin|tan", re.IGNORECASE)


def _keyword_hits(text: str, keywords: Tuple[str, ...]) -> int:
    lower = text.lower()
    return sum(1 for keyword in keywords if keyword.lower() in lower)


def is_english_sentence(text: str, thresholds: SubjectThresholds = SUBJECT_THRESHOLDS) -> bool:
    """Latin-dominant text with a run of three lowercase words and no Han characters."""
    compact = re.sub(r"\s+", "", text)
    if not compact or HAN_PATTERN.search(text):
        return False
    latin_ratio = len(LATIN_LETTER_PATTERN.findall(compact)) / len(compact)
    return latin_ratio > thresholds.english_char_ratio and LOWERCASE_RUN_PATTERN.search(text) is not None


def classify_subject(text: str, thresholds: SubjectThresholds = SUBJECT_THRESHOLDS) -> SubjectDetection:
    """
    Score each subject by keyword hits.

    Each candidate starts at base_confidence and gains keyword_increment
    per distinct keyword found, capped at max_confidence. English gets
    english_sentence_boost when the text reads as an English sentence.

    Returns:
        SubjectDetection with ranked candidates. A top-two gap below
        ambiguity_margin yields Subject.UNKNOWN.
    """
    trimmed = (text or "").strip()
    if not trimmed:
        return SubjectDetection(
            subject=Subject.UNKNOWN,
            confidence=thresholds.empty_confidence,
            candidates=tuple(SubjectCandidate(s, 0.0) for s in SUBJECT_KEYWORDS),
        )

    english_boost = thresholds.english_sentence_boost if is_english_sentence(trimmed, thresholds) else 0.0
    scores = []
    for subject, keywords in SUBJECT_KEYWORDS.items():
        score = thresholds.base_confidence + _keyword_hits(trimmed, keywords) * thresholds.keyword_increment
        if subject is Subject.ENGLISH:
            score += english_boost
        scores.append(SubjectCandidate(subject, min(thresholds.max_confidence, score)))

    # sorted() is stable, so ties keep keyword-table order
    ranked = tuple(sorted(scores, key=lambda c: c.confidence, reverse=True))
    top, second = ranked[0], ranked[1]
    delta = top.confidence - second.confidence

    if delta < thresholds.ambiguity_margin:
        logger.debug(f"Subject ambiguous: {top.subject}={top.confidence:.2f} vs {second.subject}={second.confidence:.2f}")
        return SubjectDetection(
            subject=Subject.UNKNOWN,
            confidence=max(thresholds.base_confidence, top.confidence),
            second_best=second,
            confidence_delta=delta,
            candidates=ranked,
        )

    return SubjectDetection(
        subject=top.subject,
        confidence=top.confidence,
        second_best=second,
        confidence_delta=delta,
        candidates=ranked,
    )


def _has_reading_pattern(normalized: str, english_words: int, thresholds: SubjectThresholds) -> bool:
    if len(normalized) > thresholds.reading_min_chars and english_words > thresholds.reading_min_english_words:
        return True
    return bool(READING_MARKER_PATTERN.search(normalized) or LETTERED_OPTION_PATTERN.search(normalized))


def detect_subject(text: str, thresholds: SubjectThresholds = SUBJECT_THRESHOLDS) -> Subject:
    """
    Detect subject from character and word density.

    Mixed math-symbol and English content is treated as English, and
    the default leans toward English rather than math.
    """
    raw = text or ""
    lower = raw.lower()
    normalized = re.sub(r"\s+", " ", raw).strip()
    if not normalized:
        return Subject.UNKNOWN

    english_words = len(ENGLISH_WORD_PATTERN.findall(lower))
    total_tokens = len(normalized.split()) or 1
    english_word_ratio = english_words / total_tokens
    english_char_ratio = len(re.findall(r"[a-z]", lower)) / max(len(normalized), 1)
    han_chars = len(HAN_PATTERN.findall(normalized))

    if _has_reading_pattern(normalized, english_words, thresholds):
        return Subject.ENGLISH

    has_math_signal = bool(MATH_SYMBOL_PATTERN.search(normalized) or MATH_KEYWORD_PATTERN.search(lower))
    mixed_language = english_words > 0 and han_chars > 0

    if (
        english_words > thresholds.english_dominant_words
        or english_char_ratio > thresholds.english_dominant_ratio
        or english_word_ratio > thresholds.english_dominant_ratio
    ):
        return Subject.ENGLISH
    if has_math_signal and english_words > 0:
        return Subject.ENGLISH
    if has_math_signal and english_words <= thresholds.math_max_english_words and not mixed_language:
        return Subject.MATH
    if han_chars > english_words * 2 and han_chars > thresholds.chinese_min_han_chars:
        return Subject.CHINESE
    return Subject.ENGLISH if english_words > 0 else Subject.UNKNOWN


def validate_subject(text: str, subject: Subject) -> Subject:
    """Force a MATH verdict without any math pattern back to ENGLISH."""
    if subject is Subject.MATH and not MATH_GUARD_PATTERN.search(text or ""):
        logger.info("Overriding math -> english (no math patterns found)")
        return Subject.ENGLISH
    return subject


def subject_template(subject: Subject) -> str:
    """Template id for a subject; UNKNOWN uses the English template."""
    return SUBJECT_TEMPLATES.get(subject, SUBJECT_TEMPLATES[Subject.ENGLISH])
