"""
Choice shape detection.

The shape of an option array (full sentences vs. single words or short
phrases) is the main signal separating discourse questions from cloze
and vocabulary questions.
"""

from __future__ import annotations

import re
from typing import Literal, Sequence, Union

from exam_ingest.common.thresholds import (
    CHOICE_SHAPE_THRESHOLDS,
    KIND_THRESHOLDS,
    ChoiceShapeThresholds,
)
from exam_ingest.core.models import Option

ChoiceShape = Literal["sentences", "words/phrases", "mixed", "none"]

_TERMINAL_PUNCTUATION = re.compile(r"[.?!。？！][\"'”’)]?$")


def _texts(options: Sequence[Union[Option, str]]) -> list[str]:
    texts = []
    for option in options:
        text = option.text if isinstance(option, Option) else str(option)
        text = text.strip()
        if text:
            texts.append(text)
    return texts


def is_sentence_like(text: str, thresholds: ChoiceShapeThresholds = CHOICE_SHAPE_THRESHOLDS) -> bool:
    """Capital start, terminal punctuation and enough tokens."""
    text = text.strip()
    return (
        text[:1].isupper()
        and _TERMINAL_PUNCTUATION.search(text) is not None
        and len(text.split()) >= thresholds.sentence_min_tokens
    )


def is_word_like(text: str, thresholds: ChoiceShapeThresholds = CHOICE_SHAPE_THRESHOLDS) -> bool:
    """No terminal punctuation and few tokens."""
    text = text.strip()
    return (
        bool(text)
        and _TERMINAL_PUNCTUATION.search(text) is None
        and len(text.split()) <= thresholds.word_max_tokens
    )


def detect_choice_shape(
    options: Sequence[Union[Option, str]],
    thresholds: ChoiceShapeThresholds = CHOICE_SHAPE_THRESHOLDS,
) -> ChoiceShape:
    """
    Classify an option array by shape.

    Returns:
        "sentences" when at least shape_ratio of the options are
        sentence-like, "words/phrases" when at least shape_ratio are
        word-like, "mixed" otherwise and "none" for no options.
    """
    texts = _texts(options)
    if not texts:
        return "none"
    total = len(texts)
    sentences = sum(1 for t in texts if is_sentence_like(t, thresholds))
    if sentences / total >= thresholds.shape_ratio:
        return "sentences"
    words = sum(1 for t in texts if is_word_like(t, thresholds))
    if words / total >= thresholds.shape_ratio:
        return "words/phrases"
    return "mixed"


def sentence_ratio(
    options: Sequence[Union[Option, str]],
    *,
    min_words: int = KIND_THRESHOLDS.discourse_sentence_min_words,
    thresholds: ChoiceShapeThresholds = CHOICE_SHAPE_THRESHOLDS,
) -> float:
    """Share of options that read as full sentences."""
    texts = _texts(options)
    if not texts:
        return 0.0
    full = sum(
        1 for t in texts if is_sentence_like(t, thresholds) or len(t.split()) >= min_words
    )
    return full / len(texts)


def all_single_words(options: Sequence[Union[Option, str]]) -> bool:
    texts = _texts(options)
    return bool(texts) and all(len(t.split()) == 1 for t in texts)
