"""
Tests for ingest.pipeline

Test Coverage:
- classify_question(): plain text, subject hints, option hints, batches
"""
import logging

import pytest

from exam_ingest.core.models import CanonicalKind, OptionHint, RawInput, Subject
from exam_ingest.ingest.pipeline import classify_question

VOCAB = "He is a (A) doctor (B) lawyer (C) teacher (D) engineer"


def test_plain_text():
    result = classify_question(VOCAB)

    assert result.kind is CanonicalKind.VOCAB
    assert [o.key for o in result.options] == ["A", "B", "C", "D"]
    assert result.blanks == ()
    assert result.segments == ()
    assert "subject=english" in result.signals


def test_subject_hint_overrides_detection():
    result = classify_question(RawInput(text=VOCAB, subject_hint="English"))

    assert result.subject is Subject.ENGLISH
    assert result.subject_confidence == pytest.approx(1.0)


def test_unknown_subject_hint_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        result = classify_question(RawInput(text="求三角形的面積與角度", subject_hint="physics"))

    assert result.subject is Subject.MATH
    assert "physics" in caplog.text


def test_option_hints_skip_parsing():
    hints = tuple(OptionHint(k, t) for k, t in zip("ABCD", ("doctor", "lawyer", "teacher", "engineer")))
    result = classify_question(RawInput(text="He is a ( ) .", option_hints=hints))

    assert result.kind is CanonicalKind.VOCAB
    assert [o.text for o in result.options] == ["doctor", "lawyer", "teacher", "engineer"]


def test_batched_input_is_segmented():
    text = (
        "1. He is a (A) doctor (B) lawyer (C) teacher (D) nurse\n"
        "2. She likes (A) tea (B) coffee (C) milk (D) juice"
    )
    result = classify_question(text)

    assert len(result.segments) == 2
    assert all(s.has_explicit_number for s in result.segments)


def test_blanks_reported(discourse_passage):
    result = classify_question(discourse_passage)
    assert [b.index for b in result.blanks] == [1, 2, 3, 4, 5]


def test_empty_input_never_raises():
    result = classify_question("")

    assert result.subject is Subject.UNKNOWN
    assert result.kind is CanonicalKind.READING


def test_to_dict_wire_keys():
    data = classify_question(VOCAB).to_dict()
    assert data["kind"] == "vocab"
    assert data["legacyKind"] == "E1"
    assert data["options"][0] == {"key": "A", "text": "doctor"}
