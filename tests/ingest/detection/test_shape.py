"""
Tests for ingest.detection.shape
"""
import pytest

from exam_ingest.common.thresholds import ChoiceShapeThresholds
from exam_ingest.core.models import Option
from exam_ingest.ingest.detection import (
    all_single_words,
    detect_choice_shape,
    is_sentence_like,
    is_word_like,
    sentence_ratio,
)

SENTENCES = [
    "He went home early.",
    "She likes to read books.",
    "They were late again!",
    "Is it raining outside today?",
]
WORDS = ["apple", "big house", "run fast", "blue"]


def test_sentences():
    assert detect_choice_shape(SENTENCES) == "sentences"


def test_words_and_phrases():
    assert detect_choice_shape(WORDS) == "words/phrases"


def test_mixed_when_neither_reaches_ratio():
    assert detect_choice_shape(SENTENCES[:2] + WORDS[:2]) == "mixed"


def test_none_for_empty():
    assert detect_choice_shape([]) == "none"
    assert detect_choice_shape(["", "  "]) == "none"


def test_accepts_option_records():
    options = [Option(chr(ord("A") + i), t) for i, t in enumerate(WORDS)]
    assert detect_choice_shape(options) == "words/phrases"


def test_ratio_is_configurable():
    three_of_four = SENTENCES[:3] + WORDS[:1]
    assert detect_choice_shape(three_of_four) == "sentences"
    strict = ChoiceShapeThresholds(shape_ratio=0.8)
    assert detect_choice_shape(three_of_four, strict) == "mixed"


@pytest.mark.parametrize("text,expected", [
    ("He went home early.", True),
    ("he went home early.", False),
    ("Went home.", False),
    ("He went home early", False),
])
def test_is_sentence_like(text, expected):
    assert is_sentence_like(text) is expected


@pytest.mark.parametrize("text,expected", [
    ("apple", True),
    ("one two three four five", True),
    ("one two three four five six", False),
    ("apple.", False),
    ("", False),
])
def test_is_word_like(text, expected):
    assert is_word_like(text) is expected


def test_sentence_ratio_counts_long_unpunctuated_options():
    options = ["one two three four five six seven eight", "cat"]
    assert sentence_ratio(options) == 0.5
    assert sentence_ratio([]) == 0.0


def test_all_single_words():
    assert all_single_words(["cat", "dog"])
    assert not all_single_words(["cat", "big dog"])
    assert not all_single_words([])
